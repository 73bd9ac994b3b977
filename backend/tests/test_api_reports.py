import datetime as dt

import pytest


@pytest.fixture
def ledger(client, directory):
    """A few days of trading at Alpha (North) and Beta (South)."""
    alpha, beta = directory["alpha"]["id"], directory["beta"]["id"]
    bread, milk = directory["bread"]["id"], directory["milk"]["id"]

    def post(**kw):
        body = {"date": "2024-05-01", "storeId": alpha, "productId": bread, "unitPrice": 100, **kw}
        resp = client.post("/api/movements", json=body)
        assert resp.status_code == 201, resp.text

    post(operationType="load", quantity=50)
    post(operationType="sale", quantity=10, paymentType="credit")
    post(operationType="sale", quantity=10, date="2024-05-02")
    post(operationType="return", quantity=2, date="2024-05-02")
    post(operationType="writeoff", quantity=1, date="2024-05-02", comment="crushed")
    post(operationType="sale", quantity=20, storeId=beta, productId=milk, unitPrice=200)
    post(operationType="bonus", quantity=3, storeId=beta, productId=milk, unitPrice=200)

    client.post("/api/store-payments", json={"date": "2024-05-03", "storeId": alpha, "amount": 400})
    client.post("/api/production-batches", json={"date": "2024-05-01", "productId": bread, "producedQty": 100})
    return directory


def test_debts(client, ledger):
    (row,) = client.get("/api/reports/debts").json()
    assert row["storeName"] == "Alpha"
    assert row["creditAmount"] == 1000
    assert row["paymentsAmount"] == 400
    assert row["balance"] == 600

    rows = client.get("/api/reports/debts", params={"dateTo": "2024-05-02"}).json()
    assert rows[0]["balance"] == 1000
    assert client.get("/api/reports/debts", params={"districtId": ledger["south"]["id"]}).json() == []


def test_production(client, ledger):
    (row,) = client.get("/api/reports/production").json()
    assert row["date"] == "2024-05-01"
    assert row["producedQty"] == 100
    assert row["salesQty"] == 10
    assert row["theoreticalRestQty"] == 90


def test_stock(client, ledger):
    rows = client.get("/api/reports/stock", params={"date": "2024-05-01"}).json()
    by_id = {r["id"]: r for r in rows}
    alpha_bread = by_id[f"{ledger['alpha']['id']}-{ledger['bread']['id']}"]
    assert alpha_bread["balance"] == 40

    rows = client.get(
        "/api/reports/stock", params={"date": "2024-05-31", "storeId": ledger["alpha"]["id"]}
    ).json()
    assert [r["balance"] for r in rows] == [50 - 10 - 10 + 2 - 1]


def test_inventory_movements(client, ledger):
    body = client.get("/api/reports/inventory-movements").json()
    assert body["totals"] == {"totalLoaded": 50, "totalReturned": 2, "totalWriteoff": 1, "totalNet": 47}
    assert body["rows"][0]["date"] == "2024-05-02"
    assert body["rows"][0]["comments"] == ["crushed"]


def test_financial(client, ledger):
    body = client.get("/api/reports/financial").json()
    assert set(body) == {"kpis", "districts", "stores", "daily"}
    # sales 20*100 + 20*200, return -2*100
    assert body["kpis"]["revenue"] == 5800
    assert body["kpis"]["ops"] == {"sales": 3, "returns": 1, "exchanges": 0, "bonuses": 1}
    assert [d["date"] for d in body["daily"]] == ["2024-05-01", "2024-05-02"]

    body = client.get(
        "/api/reports/financial", params={"operationType": "bonus", "storeId": ledger["beta"]["id"]}
    ).json()
    assert body["kpis"]["revenue"] == 0
    assert body["kpis"]["cost"] == 150
    assert body["kpis"]["profit"] == -150


def test_revenue(client, ledger):
    body = client.get("/api/reports/revenue").json()
    north = next(d for d in body["districts"] if d["id"] == ledger["north"]["id"])
    assert north["revenue"] == 1800
    assert north["issueQty"] == 2
    assert north["returnRate"] == pytest.approx(10.0)


def test_plan_progress(client, ledger):
    client.post(
        "/api/revenue-plans",
        json={
            "districtId": ledger["south"]["id"],
            "periodStart": "2024-05-01",
            "periodEnd": "2024-05-31",
            "planRevenue": 8000,
        },
    )
    (row,) = client.get("/api/reports/plan-progress").json()
    assert row["actualRevenue"] == 4000
    assert row["completionPct"] == pytest.approx(50.0)
    assert row["remaining"] == 4000


def test_forecast_and_csv(client, ledger):
    params = {"asOf": "2024-05-02", "horizonDays": 7, "planDays": 7, "safetyDays": 1}
    rows = client.get("/api/reports/forecast", params=params).json()
    assert rows
    assert rows == sorted(rows, key=lambda r: r["productionNeed"], reverse=True)
    assert all(isinstance(r["coverageDays"], (int, float)) for r in rows)

    resp = client.get("/api/reports/forecast.csv", params=params)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "production_plan_2024-05-02.csv" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"\xef\xbb\xbf")
    assert len(resp.content.decode("utf-8-sig").splitlines()) == len(rows) + 1


def test_forecast_rejects_bad_horizon(client):
    assert client.get("/api/reports/forecast", params={"horizonDays": 0}).status_code == 400


def test_seasonality(client, ledger):
    points = client.get("/api/reports/seasonality", params={"asOf": "2024-05-02"}).json()
    assert len(points) == 12
    assert points[-1]["weekStart"] == "2024-04-29"
    assert points[-1]["sales"] == 40
    assert points[-1]["isPeak"] is True


def test_seasonality_defaults_to_today(client):
    points = client.get("/api/reports/seasonality").json()
    today = dt.date.today()
    assert points[-1]["weekStart"] == (today - dt.timedelta(days=today.weekday())).isoformat()


def test_anomalies(client, ledger):
    body = client.get("/api/reports/anomalies").json()
    alerts = {(a["storeName"], a["type"]): a["percent"] for a in body["stores"]}
    assert alerts == {("Beta", "bonuses"): 15}
    assert body["products"] == []
