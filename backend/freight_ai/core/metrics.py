"""
Prometheus metrics.

Naming follows Prometheus conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for durations
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)


registry = REGISTRY

# ============================================================================
# HTTP
# ============================================================================

http_requests_total = Counter(
    "freight_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "freight_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0],
    registry=registry,
)

# ============================================================================
# MODEL PROVIDER
# ============================================================================

llm_requests_total = Counter(
    "freight_llm_requests_total",
    "Total number of model provider calls (each attempt counts)",
    ["model"],
    registry=registry,
)

llm_request_duration_seconds = Histogram(
    "freight_llm_request_duration_seconds",
    "Model provider call latency in seconds",
    ["model"],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 240.0],
    registry=registry,
)

llm_errors_total = Counter(
    "freight_llm_errors_total",
    "Total number of failed model provider calls",
    ["model", "error_type"],  # rate_limited, http_error, timeout, circuit_open, ...
    registry=registry,
)

llm_retries_total = Counter(
    "freight_llm_retries_total",
    "Total number of retries after rate-limit errors",
    ["model"],
    registry=registry,
)

# ============================================================================
# ORCHESTRATION
# ============================================================================

fanout_slices_total = Counter(
    "freight_fanout_slices_total",
    "Fan-out slice outcomes",
    ["domain", "outcome"],  # success, model_error, malformed
    registry=registry,
)

fanout_items_total = Counter(
    "freight_fanout_items_total",
    "Items returned to callers after deduplication",
    ["domain"],
    registry=registry,
)

fanout_failures_total = Counter(
    "freight_fanout_failures_total",
    "Fan-out runs that produced no data",
    ["domain"],
    registry=registry,
)

normalizer_rejected_total = Counter(
    "freight_normalizer_rejected_total",
    "Response elements dropped by schema validation",
    ["domain"],
    registry=registry,
)

normalizer_defaulted_total = Counter(
    "freight_normalizer_defaulted_total",
    "Enum-like fields replaced with their default value",
    ["domain", "field"],
    registry=registry,
)

verifications_total = Counter(
    "freight_verifications_total",
    "Verification outcomes",
    ["kind", "outcome"],  # resolved, fallback, failed
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def record_http_request(method: str, endpoint: str, status_code: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration_seconds)


def record_llm_request(model: str, duration_seconds: float) -> None:
    llm_requests_total.labels(model=model).inc()
    llm_request_duration_seconds.labels(model=model).observe(duration_seconds)


def record_llm_error(model: str, error_type: str) -> None:
    llm_errors_total.labels(model=model, error_type=error_type).inc()


def record_llm_retry(model: str) -> None:
    llm_retries_total.labels(model=model).inc()


def record_slice_outcome(domain: str, outcome: str) -> None:
    fanout_slices_total.labels(domain=domain, outcome=outcome).inc()


def record_fanout_result(domain: str, item_count: int) -> None:
    """Record the size of a fan-out result; zero counts as a failed run."""
    if item_count:
        fanout_items_total.labels(domain=domain).inc(item_count)
    else:
        fanout_failures_total.labels(domain=domain).inc()


def record_normalizer_rejected(domain: str) -> None:
    normalizer_rejected_total.labels(domain=domain).inc()


def record_normalizer_defaulted(domain: str, field: str) -> None:
    normalizer_defaulted_total.labels(domain=domain, field=field).inc()


def record_verification(kind: str, outcome: str) -> None:
    verifications_total.labels(kind=kind, outcome=outcome).inc()


def get_metrics() -> bytes:
    """Prometheus text exposition of the registry."""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
