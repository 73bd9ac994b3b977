from pathlib import Path

import pandas as pd
import pytest

from app.routers.upload import _col, _header_map

DATA_DIR = Path(__file__).parent / "data"


def test_upload_csv_by_names(client, directory):
    with (DATA_DIR / "movements_utf8.csv").open("rb") as f:
        resp = client.post("/api/upload/movements", files={"file": ("movements_utf8.csv", f, "text/csv")})
    assert resp.status_code == 200
    j = resp.json()
    assert j == {"total_rows": 2, "success_rows": 2, "error_rows": 0, "errors": []}

    rows = {r["operationType"]: r for r in client.get("/api/movements").json()}
    assert rows["sale"]["paymentType"] == "credit"
    assert rows["sale"]["districtId"] == directory["north"]["id"]
    assert rows["sale"]["comment"] == "first"
    # blank price -> product sale price, blank payment -> cash
    assert rows["return"]["unitPrice"] == 200
    assert rows["return"]["paymentType"] == "cash"


def test_upload_russian_cp1251(client, directory):
    with (DATA_DIR / "movements_cp1251.csv").open("rb") as f:
        resp = client.post("/api/upload/movements", files={"file": ("movements_cp1251.csv", f, "text/csv")})
    j = resp.json()
    assert j["success_rows"] == 8
    sale = next(r for r in client.get("/api/movements").json() if r["operationType"] == "sale")
    assert sale["date"] == "2024-05-01"
    assert sale["unitPrice"] == 100.5
    assert sale["paymentType"] == "credit"


def test_upload_collects_row_errors(client, directory):
    csv = (
        "date,store,district,product,operation,quantity\n"
        "2024-05-01,Alpha,,Bread,sale,5\n"
        "2024-05-01,Nowhere,,Bread,sale,5\n"
        "2024-05-01,Alpha,,Bread,sale,0\n"
        "2024-05-01,Alpha,,Bread,dance,1\n"
        "32.13.2024,Alpha,,Bread,sale,1\n"
        "2024-05-01,Loose,,Bread,sale,1\n"
        f"2024-05-01,,{directory['south']['id']},Bread,load,7\n"
    ).encode("utf-8")
    resp = client.post("/api/upload/movements", files={"file": ("batch.csv", csv, "text/csv")})
    j = resp.json()
    assert j["total_rows"] == 7
    assert j["success_rows"] == 2
    assert [e["row"] for e in j["errors"]] == [3, 4, 5, 6, 7]
    assert "Store not found" in j["errors"][0]["message"]
    assert len(client.get("/api/movements").json()) == 2


def test_upload_rejects_bad_files(client):
    resp = client.post("/api/upload/movements", files={"file": ("empty.csv", b"", "text/csv")})
    assert resp.status_code == 400
    assert resp.json() == {"error": "File is empty"}

    resp = client.post("/api/upload/movements", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400


def test_upload_rejects_non_finite_numbers(client, directory):
    csv = (
        "date,store,product,operation,quantity,unit price\n"
        "2024-05-01,Alpha,Bread,sale,2,100\n"
        "2024-05-01,Alpha,Bread,sale,2,nan\n"
        "2024-05-01,Alpha,Bread,sale,inf,100\n"
        "2024-05-01,Alpha,Bread,sale,2,-Infinity\n"
    ).encode("utf-8")
    resp = client.post("/api/upload/movements", files={"file": ("batch.csv", csv, "text/csv")})
    assert resp.status_code == 200
    j = resp.json()
    assert j["success_rows"] == 1
    assert [e["row"] for e in j["errors"]] == [3, 4, 5]
    assert all("Cannot convert" in e["message"] for e in j["errors"])


def test_header_lookup_is_shared_per_header_row():
    _header_map.cache_clear()
    row = pd.Series({"Unit Price": "5", "Qty_Total": "2"})
    assert _col(row, "unit price") == "5"
    assert _col(row, "qty total") == "2"
    info = _header_map.cache_info()
    assert (info.hits, info.misses, info.maxsize) == (1, 1, 32)

    with pytest.raises(KeyError):
        _col(row, "comment")
