"""
Doubling Core Module

Data model and doubling-rate estimation for tracked metrics.

This module provides:
- Sample / Metric schemas with the persisted wire layout
- Error taxonomy shared by the store and the CLI
- Pure doubling-rate estimation from a metric's sorted samples
"""

__version__ = "0.1.0"

from .errors import InvalidInput, NotFound, PersistenceFailure, TrackerError
from .estimator import describe, estimate, estimate_all
from .schemas import DoublingRate, Metric, RateStatus, Sample

__all__ = [
    "DoublingRate",
    "InvalidInput",
    "Metric",
    "NotFound",
    "PersistenceFailure",
    "RateStatus",
    "Sample",
    "TrackerError",
    "describe",
    "estimate",
    "estimate_all",
]
