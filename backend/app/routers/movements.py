"""
Movement ledger: ``/api/movements``.

* GET  /api/movements?from=&to=       newest first
* POST /api/movements                 single movement
* POST /api/movements/daily-report    one store's day sheet in one commit
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Query

from app.core.database import SesDep
from app.schemas import DailyReportIn, MovementCreate, MovementRead
from app.services import movements, repository

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.get("", response_model=list[MovementRead])
def list_movements(
    ses: SesDep,
    date_from: Optional[dt.date] = Query(None, alias="from"),
    date_to: Optional[dt.date] = Query(None, alias="to"),
):
    return repository.list_movements(ses, date_from, date_to)


@router.post("", response_model=MovementRead, status_code=201)
def create_movement(payload: MovementCreate, ses: SesDep):
    return movements.create_movement(ses, payload)


@router.post("/daily-report", response_model=list[MovementRead], status_code=201)
def create_daily_report(payload: DailyReportIn, ses: SesDep):
    return movements.create_daily_report(ses, payload)
