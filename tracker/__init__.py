"""
Tracker Module

Configuration, session orchestration and CLI.

This module provides:
- YAML-based configuration loading
- A session object that owns one MetricStore and refreshes doubling rates
- CSV/JSON summary export
- The doubling-tracker command line interface
"""

__version__ = "0.1.0"
