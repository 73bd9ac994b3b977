"""
Read-only report endpoints: ``/api/reports/*``.

Each handler loads plain snapshots through ``app.services.repository`` and
hands them to one of the pure aggregation services.  Date ranges are whole
days, inclusive at both ends; a ``districtId`` / ``storeId`` of ``all`` (or
none) means no filter.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from app.core.database import SesDep
from app.services import repository
from app.services.anomalies import AnomalyReport, detect_anomalies
from app.services.filters import DateWindow
from app.services.financials import (
    FinancialReport,
    PlanProgressRow,
    RevenueReport,
    build_financial_report,
    build_revenue_report,
    calculate_plan_progress,
)
from app.services.forecast import (
    ForecastRow,
    SeasonalityPoint,
    analyze_seasonality,
    calculate_forecast,
    forecast_to_csv,
)
from app.services.ledger import StoreDebtRow, calculate_debts
from app.services.production import ProductionSummaryRow, calculate_production_summary
from app.services.stock import InventoryMovementSummary, StockRow, calculate_stock, summarize_inventory_movements

router = APIRouter(prefix="/api/reports", tags=["reports"])
logger = logging.getLogger(__name__)

DateFrom = Annotated[Optional[dt.date], Query(alias="dateFrom")]
DateTo = Annotated[Optional[dt.date], Query(alias="dateTo")]
DistrictFilter = Annotated[Optional[str], Query(alias="districtId")]
StoreFilter = Annotated[Optional[str], Query(alias="storeId")]
AsOf = Annotated[Optional[dt.date], Query(alias="asOf")]
HorizonDays = Annotated[int, Query(alias="horizonDays", ge=1, le=366)]
PlanDays = Annotated[int, Query(alias="planDays", ge=1, le=366)]
SafetyDays = Annotated[int, Query(alias="safetyDays", ge=0, le=366)]


@router.get("/debts", response_model=list[StoreDebtRow])
def debts_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
    district_id: DistrictFilter = None,
    store_id: StoreFilter = None,
):
    return calculate_debts(
        repository.list_movements(ses),
        repository.list_payments(ses),
        repository.list_stores(ses),
        repository.list_districts(ses),
        window=DateWindow(date_from, date_to),
        district_id=district_id,
        store_id=store_id,
    )


@router.get("/production", response_model=list[ProductionSummaryRow])
def production_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
):
    return calculate_production_summary(
        repository.list_production_batches(ses),
        repository.list_movements(ses, date_from, date_to),
        repository.list_products(ses),
        window=DateWindow(date_from, date_to),
    )


@router.get("/stock", response_model=list[StockRow])
def stock_report(
    ses: SesDep,
    report_date: Annotated[Optional[dt.date], Query(alias="date")] = None,
    store_id: StoreFilter = None,
):
    report_date = report_date or dt.date.today()
    return calculate_stock(
        repository.list_movements(ses, date_to=report_date),
        repository.list_stores(ses),
        repository.list_products(ses),
        report_date,
        store_id=store_id,
    )


@router.get("/inventory-movements", response_model=InventoryMovementSummary)
def inventory_movements_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
    store_id: StoreFilter = None,
):
    return summarize_inventory_movements(
        repository.list_movements(ses, date_from, date_to),
        repository.list_stores(ses),
        repository.list_products(ses),
        window=DateWindow(date_from, date_to),
        store_id=store_id,
    )


@router.get("/financial", response_model=FinancialReport)
def financial_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
    district_id: DistrictFilter = None,
    store_id: StoreFilter = None,
    operation_type: Annotated[Optional[str], Query(alias="operationType")] = None,
):
    return build_financial_report(
        repository.list_movements(ses, date_from, date_to),
        repository.list_products(ses),
        repository.list_districts(ses),
        repository.list_stores(ses),
        window=DateWindow(date_from, date_to),
        district_id=district_id,
        store_id=store_id,
        operation_type=operation_type,
    )


@router.get("/revenue", response_model=RevenueReport)
def revenue_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
):
    return build_revenue_report(
        repository.list_movements(ses, date_from, date_to),
        repository.list_districts(ses),
        repository.list_stores(ses),
        window=DateWindow(date_from, date_to),
    )


@router.get("/plan-progress", response_model=list[PlanProgressRow])
def plan_progress_report(ses: SesDep):
    return calculate_plan_progress(
        repository.list_revenue_plans(ses),
        repository.list_movements(ses),
        repository.list_products(ses),
        repository.list_districts(ses),
    )


def _forecast_rows(
    ses,
    horizon_days: int,
    plan_days: int,
    safety_days: int,
    store_id: Optional[str],
    as_of: Optional[dt.date],
) -> list[ForecastRow]:
    as_of = as_of or dt.date.today()
    return calculate_forecast(
        repository.list_movements(ses, date_to=as_of),
        repository.list_products(ses),
        as_of,
        horizon_days=horizon_days,
        plan_days=plan_days,
        safety_days=safety_days,
        store_id=store_id,
    )


@router.get("/forecast", response_model=list[ForecastRow])
def forecast_report(
    ses: SesDep,
    horizon_days: HorizonDays = 7,
    plan_days: PlanDays = 1,
    safety_days: SafetyDays = 0,
    store_id: StoreFilter = None,
    as_of: AsOf = None,
):
    return _forecast_rows(ses, horizon_days, plan_days, safety_days, store_id, as_of)


@router.get("/forecast.csv")
def forecast_csv(
    ses: SesDep,
    horizon_days: HorizonDays = 7,
    plan_days: PlanDays = 1,
    safety_days: SafetyDays = 0,
    store_id: StoreFilter = None,
    as_of: AsOf = None,
):
    as_of = as_of or dt.date.today()
    rows = _forecast_rows(ses, horizon_days, plan_days, safety_days, store_id, as_of)
    payload = forecast_to_csv(rows)
    logger.info("forecast export rows=%d as_of=%s", len(rows), as_of)
    return StreamingResponse(
        iter([payload]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="production_plan_{as_of.isoformat()}.csv"'},
    )


@router.get("/seasonality", response_model=list[SeasonalityPoint])
def seasonality_report(
    ses: SesDep,
    as_of: AsOf = None,
    store_id: StoreFilter = None,
):
    as_of = as_of or dt.date.today()
    return analyze_seasonality(repository.list_movements(ses, date_to=as_of), as_of, store_id=store_id)


@router.get("/anomalies", response_model=AnomalyReport)
def anomalies_report(
    ses: SesDep,
    date_from: DateFrom = None,
    date_to: DateTo = None,
):
    return detect_anomalies(
        repository.list_movements(ses, date_from, date_to),
        repository.list_stores(ses),
        repository.list_products(ses),
    )
