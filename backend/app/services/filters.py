"""
Shared filter helpers for the report services.

Every report treats its date range as whole calendar days, inclusive at both
ends, and treats a missing / empty / ``"all"`` district or store selector as
"no filter".
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

DayLike = Union[date, datetime, str]


def as_day(value: DayLike) -> date:
    """Calendar day of a date, a datetime, or an ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


@dataclass(frozen=True)
class DateWindow:
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @classmethod
    def of(cls, date_from: Optional[DayLike] = None, date_to: Optional[DayLike] = None) -> "DateWindow":
        return cls(
            as_day(date_from) if date_from else None,
            as_day(date_to) if date_to else None,
        )

    @property
    def unbounded(self) -> bool:
        return self.date_from is None and self.date_to is None

    def contains(self, value: DayLike) -> bool:
        day = as_day(value)
        if self.date_from is not None and day < self.date_from:
            return False
        if self.date_to is not None and day > self.date_to:
            return False
        return True


def is_all(selector: Optional[str]) -> bool:
    return selector is None or selector == "" or selector == "all"


def matches(selector: Optional[str], value: Optional[str]) -> bool:
    return is_all(selector) or value == selector


def name_key(name: str) -> str:
    """Case-insensitive sort key for display names."""
    return name.casefold()


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; percentages are shown half-up
    return int(math.floor(value + 0.5))


def pct(part: float, whole: float) -> float:
    return part * 100.0 / whole if whole else 0.0
