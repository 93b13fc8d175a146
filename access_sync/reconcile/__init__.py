"""Record normalization and store reconciliation."""

from .normalizer import NormalizationResult, RecordNormalizer, normalize_records
from .reconciler import (
    ReconcileAction,
    ReconcileDecision,
    ReconcileResult,
    Reconciler,
)

__all__ = [
    # Normalizer
    "NormalizationResult",
    "RecordNormalizer",
    "normalize_records",
    # Reconciler
    "ReconcileAction",
    "ReconcileDecision",
    "ReconcileResult",
    "Reconciler",
]
