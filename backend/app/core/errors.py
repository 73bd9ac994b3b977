"""
Service-level exceptions.

Routers and services raise these; ``app.main`` turns them into the
``{"error": message}`` responses the API returns.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """A requested or referenced id does not exist (HTTP 404)."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found (id: {entity_id})")


class ValidationFailed(ValueError):
    """Input is missing or inconsistent (HTTP 400)."""
