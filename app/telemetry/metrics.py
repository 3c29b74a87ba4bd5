"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

PIPELINE_RUNS = Counter(
    "speech_pipeline_runs_total",
    "Speech pipeline runs by final outcome",
    ("outcome",),
)

STAGE_FAILURES = Counter(
    "speech_pipeline_stage_failures_total",
    "Speech pipeline failures by stage and error type",
    ("stage", "error"),
)

NOTIFICATIONS = Counter(
    "speech_pipeline_notifications_total",
    "Delivery notifications by publish result",
    ("published",),
)

STAGE_LATENCY = Histogram(
    "speech_pipeline_stage_duration_seconds",
    "Duration of individual speech pipeline stages",
    ("stage",),
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request; 5xx also counts as an error."""

    labels = {"method": method or "UNKNOWN", "route": route or "unmatched"}
    REQUEST_COUNT.labels(status=str(status_code), **labels).inc()
    REQUEST_LATENCY.labels(**labels).observe(max(duration_seconds, 0))
    if status_code >= 500:
        ERROR_COUNTER.labels(**labels).inc()


def record_run(outcome: str) -> None:
    PIPELINE_RUNS.labels(outcome=outcome).inc()


def record_stage_failure(stage: str, error: str) -> None:
    STAGE_FAILURES.labels(stage=stage, error=error).inc()


def record_notification(*, published: bool) -> None:
    NOTIFICATIONS.labels(published=str(published).lower()).inc()


def observe_stage(stage: str, duration_seconds: float) -> None:
    STAGE_LATENCY.labels(stage=stage).observe(max(duration_seconds, 0))
