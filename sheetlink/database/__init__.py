"""Database module for SQLAlchemy models."""

from sheetlink.database.models import (
    Plan,
    PlanPage,
    PlanPageLink,
    PlanPageRevision,
)

__all__ = [
    "Plan",
    "PlanPage",
    "PlanPageLink",
    "PlanPageRevision",
]
