"""Store payments and revenue plans."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Query

from app.core.database import SesDep
from app.schemas import RevenuePlanCreate, RevenuePlanRead, StorePaymentCreate, StorePaymentRead
from app.services import movements, repository

payments_router = APIRouter(prefix="/api/store-payments", tags=["store-payments"])
plans_router = APIRouter(prefix="/api/revenue-plans", tags=["revenue-plans"])


@payments_router.get("", response_model=list[StorePaymentRead])
def list_payments(
    ses: SesDep,
    date_from: Optional[dt.date] = Query(None, alias="from"),
    date_to: Optional[dt.date] = Query(None, alias="to"),
):
    return repository.list_payments(ses, date_from, date_to)


@payments_router.post("", response_model=StorePaymentRead, status_code=201)
def create_payment(payload: StorePaymentCreate, ses: SesDep):
    return movements.create_payment(ses, payload)


@plans_router.get("", response_model=list[RevenuePlanRead])
def list_plans(ses: SesDep):
    return repository.list_revenue_plans(ses)


@plans_router.post("", response_model=RevenuePlanRead, status_code=201)
def create_plan(payload: RevenuePlanCreate, ses: SesDep):
    return movements.create_revenue_plan(ses, payload)
