"""
Vitals: Resilience & Observability Core

A process-wide facility that wraps every call to an external, metered
dependency (AI inference, vector search, nutrition lookup, remote
database) with latency measurement, per-service aggregation, a
failure-driven circuit breaker, and cost accounting.
"""

__version__ = "0.1.0"
