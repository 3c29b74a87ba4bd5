"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    NOTIFICATIONS,
    PIPELINE_RUNS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    STAGE_FAILURES,
    STAGE_LATENCY,
    observe_request,
    observe_stage,
    record_notification,
    record_run,
    record_stage_failure,
)

__all__ = [
    "ERROR_COUNTER",
    "NOTIFICATIONS",
    "PIPELINE_RUNS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "STAGE_FAILURES",
    "STAGE_LATENCY",
    "observe_request",
    "observe_stage",
    "record_notification",
    "record_run",
    "record_stage_failure",
]
