"""
Runtime configuration for the retail operations backend.

Every value is read from the environment once, at import time.  ``app.main``
loads the ``.env`` files before importing anything from ``app.core``, so
values placed there are visible here.

    DATABASE_URL              (default: sqlite:///./retail_ops.db)
    AUTO_CREATE_TABLES        (default: true)
    FRONTEND_ORIGINS          (comma-separated, merged with localhost defaults)
    LOG_LEVEL                 (default: INFO)
    PRODUCTION_CAP_ENFORCED   (default: false)
    PRODUCTION_BATCHES_LIMIT  (default: 500)
"""

from __future__ import annotations

import os

_TRUTHY = ("1", "true", "yes", "on", "y", "t")


def env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in _TRUTHY


def env_list(*names: str) -> list[str]:
    """First non-empty variable among *names*, split on commas."""
    raw = ""
    for name in names:
        raw = os.getenv(name) or ""
        if raw:
            break
    return [item.strip() for item in raw.split(",") if item and item.strip()]


# --------------------------------------------------------------------------- #
# Database                                                                    #
# --------------------------------------------------------------------------- #

DATABASE_URL: str = os.getenv("DATABASE_URL") or "sqlite:///./retail_ops.db"
AUTO_CREATE_TABLES: bool = env_flag("AUTO_CREATE_TABLES", "true")
SQL_ECHO: bool = env_flag("SQL_ECHO", "false")

# --------------------------------------------------------------------------- #
# HTTP                                                                        #
# --------------------------------------------------------------------------- #

DEFAULT_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
FRONTEND_ORIGINS: list[str] = sorted(
    set(DEFAULT_ORIGINS + env_list("FRONTEND_ORIGINS", "FRONTEND_ORIGIN"))
)

# --------------------------------------------------------------------------- #
# Logging                                                                     #
# --------------------------------------------------------------------------- #

LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()

# --------------------------------------------------------------------------- #
# Business rules                                                              #
# --------------------------------------------------------------------------- #

# Reject consuming movements that exceed the day's recorded production.
PRODUCTION_CAP_ENFORCED: bool = env_flag("PRODUCTION_CAP_ENFORCED", "false")
PRODUCTION_BATCHES_LIMIT: int = int(os.getenv("PRODUCTION_BATCHES_LIMIT") or 500)
