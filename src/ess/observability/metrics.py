"""Prometheus metrics for the request pipeline.

Timers are histograms observed around the SRU call, the SRU body parse, each
formatting unit, and the whole request. They only record; they never change
control flow.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_SECONDS = Histogram(
    "ess_request_seconds",
    "Duration of a full search request",
    ["query_language"],
)

REQUEST_OUTCOMES_TOTAL = Counter(
    "ess_request_outcomes_total",
    "Search requests by terminal outcome",
    ["outcome"],
)

BACKEND_REQUEST_SECONDS = Histogram(
    "ess_backend_request_seconds",
    "Duration of the SRU searchRetrieve HTTP call",
)

BACKEND_READ_RESPONSE_SECONDS = Histogram(
    "ess_backend_read_response_seconds",
    "Duration of deserialising the SRU response body",
)

FORMATTING_SECONDS = Histogram(
    "ess_formatting_seconds",
    "Duration of one formatting unit of work",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

RECORD_ERRORS_TOTAL = Counter(
    "ess_record_errors_total",
    "Records replaced by an error placeholder",
    ["error_type"],
)

UNITS_IN_FLIGHT = Gauge(
    "ess_formatting_units_in_flight",
    "Formatting units currently running in the worker pool",
)


def record_outcome(outcome: str) -> None:
    """Count a terminal request outcome (``done`` or an error class name)."""
    REQUEST_OUTCOMES_TOTAL.labels(outcome=outcome).inc()


def record_record_error(error_type: str) -> None:
    """Count one record that degraded to a placeholder."""
    RECORD_ERRORS_TOTAL.labels(error_type=error_type).inc()
