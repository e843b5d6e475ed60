"""
Store Module

Metric storage and persistence layer.

This module provides:
- A small key/value contract (get/set) for persisted state
- SQLite-backed and in-memory key/value backends
- MetricStore, which owns the metrics and their sample invariants
"""

__version__ = "0.1.0"
