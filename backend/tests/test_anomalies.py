from app.services.anomalies import detect_anomalies, detect_product_anomalies, detect_store_anomalies

from factories import movement, product, store

STORES = [store("s1", "Alpha"), store("s2", "Beta")]
PRODUCTS = [product("p1", "Bread"), product("p2", "Milk")]


def test_returns_threshold_is_strict():
    flagged = detect_store_anomalies([movement("sale", 100), movement("return", 11)], STORES)
    assert [(a.store_id, a.type, a.percent) for a in flagged] == [("s1", "returns", 11)]

    assert detect_store_anomalies([movement("sale", 100), movement("return", 10)], STORES) == []


def test_bonus_and_exchange_thresholds():
    alerts = detect_store_anomalies(
        [movement("sale", 200), movement("bonus", 11), movement("exchange", 21)],
        STORES,
    )
    assert {(a.type, a.percent) for a in alerts} == {("bonuses", 6), ("exchanges", 11)}


def test_percent_rounds_half_up():
    (alert,) = detect_store_anomalies([movement("sale", 200), movement("return", 25)], STORES)
    assert alert.percent == 13  # 12.5


def test_unknown_store_and_no_sales_are_skipped():
    alerts = detect_store_anomalies(
        [
            movement("sale", 10, store_id="gone"),
            movement("return", 10, store_id="gone"),
            movement("return", 5, store_id="s2"),
        ],
        STORES,
    )
    assert alerts == []


def test_product_level_noise_floor_and_rate():
    movements = [
        # 4 sales: below the floor
        movement("sale", 4, product_id="p1"),
        movement("return", 4, product_id="p1"),
        # 10 sales, 1 return + 1 exchange = 20%
        movement("sale", 10, product_id="p2"),
        movement("return", 1, product_id="p2"),
        movement("exchange", 1, product_id="p2"),
        # 20 sales, 6 returns = 30%
        movement("sale", 20, store_id="s2", product_id="p2"),
        movement("return", 6, store_id="s2", product_id="p2"),
        # 20 sales, 3 returns = 15%: not above the threshold
        movement("sale", 20, store_id="s2", product_id="p1"),
        movement("return", 3, store_id="s2", product_id="p1"),
    ]
    alerts = detect_product_anomalies(movements, STORES, PRODUCTS)
    assert [(a.id, a.rate) for a in alerts] == [("s2:p2", 30), ("s1:p2", 20)]
    assert alerts[1].returns == 2
    assert alerts[1].store_name == "Alpha"
    assert alerts[1].product_name == "Milk"


def test_detect_anomalies_combines_both_levels():
    report = detect_anomalies(
        [movement("sale", 10), movement("return", 5)],
        STORES,
        PRODUCTS,
    )
    assert [a.type for a in report.stores] == ["returns"]
    assert [a.id for a in report.products] == ["s1:p1"]
