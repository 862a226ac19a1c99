"""
Health module: component-level health evaluation.

This module contains:
- checks.py: SystemHealthChecker, deriving per-provider and performance
  health from a PerformanceMonitor

Public API:
- SystemHealthChecker: Component health evaluation
- DEFAULT_SUCCESS_RATE_THRESHOLDS: Minimum healthy success rate per provider
"""

from vitals.health.checks import (
    DEFAULT_SUCCESS_RATE_THRESHOLDS,
    SystemHealthChecker,
)

__all__ = [
    "DEFAULT_SUCCESS_RATE_THRESHOLDS",
    "SystemHealthChecker",
]
