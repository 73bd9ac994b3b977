"""
File-upload router.

* POST /api/upload/movements

Accepts a single CSV / Excel file (multipart/form-data) and inserts one
movement per row.  Rows that fail to map are reported back with their
spreadsheet line number; the remaining rows are committed together.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from functools import lru_cache
from time import perf_counter
from typing import Annotated, Callable, Optional

import pandas as pd
from fastapi import APIRouter, File, HTTPException, UploadFile
from sqlmodel import Session, SQLModel

from app.core.database import SesDep
from app.models import Movement
from app.schemas import CONSUMING_OPERATIONS, OPERATION_TYPES, PAYMENT_METHODS
from app.services import repository
from app.services.filters import name_key
from app.services.movements import check_production_cap
from app.utils.file_parser import read_dataframe

router = APIRouter(prefix="/api/upload", tags=["upload"])
logger = logging.getLogger(__name__)

UploadDep = Annotated[UploadFile, File(...)]

# Labels seen in exports of the old spreadsheet-based process
OPERATION_ALIASES: dict[str, str] = {
    "продажа": "sale",
    "возврат": "return",
    "обмен": "exchange",
    "бонус": "bonus",
    "списание": "writeoff",
    "загрузка": "load",
    "write-off": "writeoff",
    "write off": "writeoff",
}
PAYMENT_ALIASES: dict[str, str] = {
    "наличные": "cash",
    "нал": "cash",
    "карта": "card",
    "перевод": "transfer",
    "в долг": "credit",
    "долг": "credit",
    "debt": "credit",
}


# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #

def _generic_insert(
    df: pd.DataFrame,
    model: type[SQLModel],
    mapper: Callable[[pd.Series], object],
    session: Session,
) -> dict:
    """Map every row and insert the ones that mapped, in one commit.

    Row numbers in ``errors`` are spreadsheet lines (header = line 1).
    """
    t0 = perf_counter()
    total = len(df)
    objects: list[SQLModel] = []
    errors: list[dict] = []

    for idx, row in df.iterrows():
        try:
            objects.append(mapper(row))
        except (KeyError, ValueError, LookupError) as exc:
            errors.append({"row": int(idx) + 2, "message": str(exc).strip("'\"")})

    if objects:
        session.add_all(objects)
        session.commit()

    logger.info(
        "_generic_insert[%s]: rows=%d inserted=%d errors=%d elapsed=%.3fs",
        model.__tablename__, total, len(objects), len(errors), perf_counter() - t0,
    )
    return {
        "total_rows": total,
        "success_rows": len(objects),
        "error_rows": len(errors),
        "errors": errors,
    }


def _normalize_header(name: str) -> str:
    """Return a canonicalised CSV/Excel header.

    1. Strip a BOM and surrounding quotes.
    2. Unicode NFKC folding (full-width -> half-width).
    3. Remove every whitespace character, ``_`` and ``-``.
    4. Lower-case.
    """
    name = unicodedata.normalize("NFKC", str(name).lstrip("\ufeff")).strip("'\"")
    return re.sub(r"[\s_\-]+", "", name).lower()


@lru_cache(maxsize=32)
def _header_map(columns: tuple) -> dict[str, str]:
    """Normalised header -> original column name, per header row."""
    return {_normalize_header(col): col for col in columns}


def _col(row: pd.Series, *candidates: str):
    """Return the first matching column value from *candidates*.

    Raises ``KeyError`` if none of the *candidates* are present.
    """
    normalised_map = _header_map(tuple(row.index))

    for cand in candidates:
        if cand in row:
            return row[cand]
        hit = normalised_map.get(_normalize_header(cand))
        if hit is not None:
            return row[hit]

    raise KeyError(f"Column {candidates[0]!r} not found (headers: {list(row.index)[:10]!r})")


def _opt_col(row: pd.Series, *candidates: str):
    try:
        return _col(row, *candidates)
    except KeyError:
        return None


def _blank(val) -> bool:
    return val is None or (isinstance(val, str) and val.strip() == "") or (not isinstance(val, str) and pd.isna(val))


def _clean_float(val) -> Optional[float]:
    """Convert value to float; handles spaces, comma decimals and blanks.

    ``nan`` / ``inf`` spellings are rejected.
    """
    if _blank(val):
        return None
    if isinstance(val, (int, float)):
        number = float(val)
    else:
        cleaned = unicodedata.normalize("NFKC", str(val)).replace(" ", "")
        if "," in cleaned and "." not in cleaned:
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
        try:
            number = float(cleaned)
        except ValueError as exc:
            raise ValueError(f"Cannot convert {val!r} to number") from exc
    if not math.isfinite(number):
        raise ValueError(f"Cannot convert {val!r} to number")
    return number


def _safe_int(val, default: Optional[int] = None) -> int:
    """
    Convert value to ``int`` safely.

    * NaN / None / empty string -> *default* (``ValueError`` when no default)
    * thousands separators and full-width digits are accepted
    """
    if _blank(val):
        if default is not None:
            return default
        raise ValueError("Value required")
    number = _clean_float(val)
    if number is None or number != int(number):
        raise ValueError(f"Cannot convert {val!r} to whole number")
    return int(number)


def _safe_date(val):
    """
    Convert a cell to ``date``.

    Accepts ``2024-08-05``, ``05.08.2024``, ``2024/08/05``, ``20240805`` and
    datetime-like values.
    """
    if _blank(val):
        raise ValueError("Date is required")
    text = str(val).strip()
    if re.fullmatch(r"\d{8}(\.0)?", text):
        parsed = pd.to_datetime(text[:8], format="%Y%m%d", errors="coerce")
    elif re.fullmatch(r"\d{1,2}\.\d{1,2}\.\d{4}", text):
        parsed = pd.to_datetime(text, format="%d.%m.%Y", errors="coerce")
    else:
        parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        raise ValueError(f"Cannot parse date: {val!r}")
    return parsed.date()


def _choice(val, allowed: tuple[str, ...], aliases: dict[str, str], what: str, default: Optional[str] = None) -> str:
    if _blank(val):
        if default is not None:
            return default
        raise ValueError(f"{what} is required")
    key = str(val).strip().lower()
    key = aliases.get(key, key)
    if key not in allowed:
        raise ValueError(f"Unknown {what}: {val!r}")
    return key


class _Lookup:
    """Resolve a cell to an id: exact id first, then case-insensitive name."""

    def __init__(self, entity: str, rows):
        self.entity = entity
        self.by_id = {r.id: r for r in rows}
        self.by_name = {name_key(r.name): r for r in rows}

    def get(self, val):
        if _blank(val):
            return None
        text = str(val).strip()
        hit = self.by_id.get(text) or self.by_name.get(name_key(text))
        if hit is None:
            raise LookupError(f"{self.entity} not found: {text!r}")
        return hit


# --------------------------------------------------------------------------- #
# mappers                                                                     #
# --------------------------------------------------------------------------- #

def _movement_mapper(ses: Session) -> Callable[[pd.Series], Movement]:
    districts = _Lookup("District", repository.list_districts(ses))
    stores = _Lookup("Store", repository.list_stores(ses))
    products = _Lookup("Product", repository.list_products(ses))
    # consuming quantity staged by earlier rows, per (date, product)
    pending: dict[tuple, int] = {}

    def _map(row: pd.Series) -> Movement:
        product = products.get(_col(row, "product"))
        if product is None:
            raise ValueError("Product is required")
        store = stores.get(_opt_col(row, "store"))
        district = districts.get(_opt_col(row, "district"))
        district_id = district.id if district else (store.district_id if store else None)
        if not district_id:
            raise ValueError("District is required (store has no district)")

        quantity = _safe_int(_col(row, "quantity"))
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        unit_price = _clean_float(_opt_col(row, "unit price"))
        if unit_price is None:
            unit_price = product.sale_price
        if unit_price < 0:
            raise ValueError("Unit price must not be negative")

        comment = _opt_col(row, "comment")
        movement = Movement(
            date=_safe_date(_col(row, "date")),
            district_id=district_id,
            store_id=store.id if store else None,
            product_id=product.id,
            operation_type=_choice(_col(row, "operation"), OPERATION_TYPES, OPERATION_ALIASES, "operation type"),
            payment_type=_choice(_opt_col(row, "payment"), PAYMENT_METHODS, PAYMENT_ALIASES, "payment type", "cash"),
            quantity=quantity,
            unit_price=unit_price,
            comment=None if _blank(comment) else str(comment).strip(),
        )
        key = (movement.date, movement.product_id)
        check_production_cap(ses, movement, pending.get(key, 0))
        if movement.operation_type in CONSUMING_OPERATIONS:
            pending[key] = pending.get(key, 0) + quantity
        return movement

    return _map


# --------------------------------------------------------------------------- #
# endpoints                                                                   #
# --------------------------------------------------------------------------- #

@router.post("/movements")
def upload_movements(file: UploadDep, ses: SesDep):
    """Append movements from a CSV / Excel sheet.

    Columns: date, district, store, product, operation, payment, quantity,
    unit price, comment.  District / store / product may be given by id or
    by name; an empty unit price takes the product's sale price.
    """
    logger.info("upload_movements: start filename=%s", file.filename)
    try:
        df = read_dataframe(file)
    except ValueError as exc:
        logger.warning("upload_movements: unreadable file %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    summary = _generic_insert(df, Movement, _movement_mapper(ses), ses)
    logger.info(
        "upload_movements: done total=%s success=%s errors=%s",
        summary["total_rows"], summary["success_rows"], summary["error_rows"],
    )
    return summary
