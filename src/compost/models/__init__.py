"""Data models and transfer objects."""

from .comment import ReconcileAction, ReconcileResult
from .detect import DetectOptions, DetectResult, Platform, TargetType

__all__ = [
    # Detection models
    "Platform",
    "TargetType",
    "DetectOptions",
    "DetectResult",
    # Reconciliation models
    "ReconcileAction",
    "ReconcileResult",
]
