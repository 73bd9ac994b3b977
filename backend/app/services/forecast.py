"""
Production planning heuristics.

``calculate_forecast`` suggests how many pieces of each product to produce
for the next ``plan_days`` from recent sales velocity and a coarse
half-window trend.  It is deliberately blunt: the trend factor is clamped
and products with comfortable coverage and no demand are hidden from the
plan.

``analyze_seasonality`` buckets sales into the last twelve Monday-start
weeks and marks peaks and drops against the mean.
"""

from __future__ import annotations

import datetime as dt
import io
import logging
import math
from typing import Iterable, Optional

import pandas as pd
from pydantic import field_serializer

from app.schemas import ApiModel, MovementRead, ProductRead
from app.services.filters import as_day, matches, round_half_up
from app.services.stock import movement_sign

logger = logging.getLogger(__name__)

HORIZON_CHOICES = (7, 14, 30)
TREND_MIN = 0.7
TREND_MAX = 1.5
TREND_NEW_DEMAND = 1.2  # first half silent, second half selling
LOW_COVERAGE_DAYS = 2

SEASONALITY_WEEKS = 12
PEAK_FACTOR = 1.2
DROP_FACTOR = 0.8


class ForecastRow(ApiModel):
    product_id: str
    product_name: str
    current_stock: int
    recent_sales: list[int]
    total_sales: int
    avg_daily_sales: float
    trend_factor: float
    trend_pct: int
    effective_daily_demand: float
    forecast_demand: int
    safety_stock: int
    target_stock: int
    production_need: int
    coverage_days: float
    has_recent_sales: bool

    @field_serializer("coverage_days", when_used="json")
    def _finite_coverage(self, v: float) -> Optional[float]:
        # JSON has no Infinity
        return None if math.isinf(v) else round(v, 2)


def trend_factor(buckets: list[int]) -> float:
    """Second-half average over first-half average, clamped.

    With an odd window the middle day belongs to neither half.
    """
    half = len(buckets) // 2
    if half == 0:
        return 1.0
    first = sum(buckets[:half]) / half
    second = sum(buckets[-half:]) / half
    if first == 0:
        return TREND_NEW_DEMAND if second > 0 else 1.0
    return min(TREND_MAX, max(TREND_MIN, second / first))


def coverage_days(current_stock: int, avg_daily_sales: float) -> float:
    if avg_daily_sales > 0:
        return current_stock / avg_daily_sales
    return math.inf if current_stock > 0 else 0.0


def calculate_forecast(
    movements: Iterable[MovementRead],
    products: Iterable[ProductRead],
    as_of: dt.date,
    horizon_days: int = 7,
    plan_days: int = 1,
    safety_days: int = 0,
    store_id: Optional[str] = None,
) -> list[ForecastRow]:
    if horizon_days <= 0:
        raise ValueError("horizon_days must be positive")

    as_of = as_day(as_of)
    window_start = as_of - dt.timedelta(days=horizon_days - 1)
    products = tuple(products)
    stock = {p.id: 0 for p in products}
    buckets = {p.id: [0] * horizon_days for p in products}

    skipped = 0
    for m in movements:
        if not matches(store_id, m.store_id):
            continue
        if m.product_id not in stock:
            skipped += 1
            continue
        day = as_day(m.date)
        if day > as_of:
            continue
        stock[m.product_id] += movement_sign(m.operation_type) * m.quantity
        if m.operation_type == "sale" and day >= window_start:
            buckets[m.product_id][(day - window_start).days] += m.quantity

    if skipped:
        logger.debug("calculate_forecast: %d movement(s) for unknown products skipped", skipped)

    out: list[ForecastRow] = []
    for p in products:
        sales = buckets[p.id]
        current = stock[p.id]
        total = sum(sales)
        avg = total / horizon_days
        trend = trend_factor(sales)
        effective = avg * trend
        forecast_demand = math.ceil(effective * plan_days)
        safety_stock = math.ceil(effective * safety_days)
        target = forecast_demand + safety_stock
        need = max(0, target - current)
        coverage = coverage_days(current, avg)
        has_sales = total > 0

        if need <= 0 and not (has_sales and coverage < LOW_COVERAGE_DAYS):
            continue

        out.append(
            ForecastRow(
                product_id=p.id,
                product_name=p.name,
                current_stock=current,
                recent_sales=sales,
                total_sales=total,
                avg_daily_sales=avg,
                trend_factor=trend,
                trend_pct=round_half_up((trend - 1) * 100),
                effective_daily_demand=effective,
                forecast_demand=forecast_demand,
                safety_stock=safety_stock,
                target_stock=target,
                production_need=need,
                coverage_days=coverage,
                has_recent_sales=has_sales,
            )
        )

    out.sort(key=lambda r: r.production_need, reverse=True)
    return out


CSV_COLUMNS = {
    "product_name": "Product",
    "current_stock": "Stock",
    "forecast_demand": "Forecast demand",
    "safety_stock": "Safety stock",
    "production_need": "To produce",
}


def forecast_to_csv(rows: Iterable[ForecastRow]) -> bytes:
    """Production plan as UTF-8 CSV with BOM so Excel picks the encoding."""
    df = pd.DataFrame([r.model_dump() for r in rows], columns=list(CSV_COLUMNS))
    df = df.rename(columns=CSV_COLUMNS)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8-sig")


# --------------------------------------------------------------------------- #
# Seasonality                                                                 #
# --------------------------------------------------------------------------- #

class SeasonalityPoint(ApiModel):
    week_start: dt.date
    sales: int = 0
    is_peak: bool = False
    is_drop: bool = False


def week_start(day: dt.date) -> dt.date:
    return day - dt.timedelta(days=day.weekday())


def analyze_seasonality(
    movements: Iterable[MovementRead],
    as_of: dt.date,
    weeks: int = SEASONALITY_WEEKS,
    store_id: Optional[str] = None,
) -> list[SeasonalityPoint]:
    last = week_start(as_day(as_of))
    first = last - dt.timedelta(weeks=weeks - 1)
    points = [SeasonalityPoint(week_start=first + dt.timedelta(weeks=i)) for i in range(weeks)]

    for m in movements:
        if m.operation_type != "sale" or not matches(store_id, m.store_id):
            continue
        idx = (week_start(as_day(m.date)) - first).days // 7
        if 0 <= idx < weeks:
            points[idx].sales += m.quantity

    mean = sum(p.sales for p in points) / weeks if weeks else 0.0
    for p in points:
        p.is_peak = p.sales > mean * PEAK_FACTOR
        # empty weeks are not a drop
        p.is_drop = p.sales < mean * DROP_FACTOR and p.sales > 0
    return points
