"""
Aggregate export for all SQLModel table classes.

Having each model re-exported here guarantees that
`import app.models` registers every table in
`SQLModel.metadata`, so `create_all` sees them all.
"""

# --- Directory -------------------------------------------------------------
from .geo import District, Store  # noqa: F401

# --- Catalog ---------------------------------------------------------------
from .product import Product  # noqa: F401

# --- Ledger ----------------------------------------------------------------
from .movement import Movement  # noqa: F401

# --- Production ------------------------------------------------------------
from .production import ProductionBatch  # noqa: F401

# --- Cash / plans ----------------------------------------------------------
from .finance import RevenuePlan, StorePayment  # noqa: F401

__all__ = [
    "District",
    "Store",
    "Product",
    "Movement",
    "ProductionBatch",
    "StorePayment",
    "RevenuePlan",
]
