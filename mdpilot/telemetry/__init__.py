"""Telemetry and observability helpers.

This package emits request-scoped run events for deterministic auditing.
"""

from .logger import RunLogger, configure_run_logging

__all__ = ["RunLogger", "configure_run_logging"]
