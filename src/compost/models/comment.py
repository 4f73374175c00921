"""Data models for reconciliation outcomes."""

from dataclasses import dataclass
from enum import Enum


class ReconcileAction(Enum):
    """What happened to the status comment."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation operation."""

    action: ReconcileAction
    ref: str
    hidden: int = 0
    already_hidden: int = 0
    deleted: int = 0
