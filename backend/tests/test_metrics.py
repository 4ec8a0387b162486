"""
Unit tests for Prometheus metrics collection.

Tests verify:
- HTTP request metrics are labelled by route template and status
- Model provider, fan-out, normalizer and verification helpers increment
  the right counters
- Metrics exposition is valid Prometheus text
"""
from prometheus_client import REGISTRY

from freight_ai.core.metrics import (
    get_metrics,
    get_metrics_content_type,
    record_fanout_result,
    record_http_request,
    record_llm_error,
    record_llm_request,
    record_llm_retry,
    record_normalizer_defaulted,
    record_normalizer_rejected,
    record_slice_outcome,
    record_verification,
)


def sample(name, **labels):
    """Current value of a sample, 0.0 when it has not been recorded yet."""
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_http_request_counter_and_histogram():
    labels = {"method": "GET", "endpoint": "/rates/sea"}
    before = sample("freight_http_requests_total", status="200", **labels)
    count_before = sample("freight_http_request_duration_seconds_count", **labels)

    record_http_request("GET", "/rates/sea", 200, 1.5)

    assert sample("freight_http_requests_total", status="200", **labels) == before + 1
    assert sample("freight_http_request_duration_seconds_count", **labels) == count_before + 1


def test_llm_metrics():
    model = "metrics-test-model"
    before = sample("freight_llm_requests_total", model=model)

    record_llm_request(model, 3.2)
    record_llm_error(model, "rate_limited")
    record_llm_retry(model)

    assert sample("freight_llm_requests_total", model=model) == before + 1
    assert sample("freight_llm_errors_total", model=model, error_type="rate_limited") >= 1
    assert sample("freight_llm_retries_total", model=model) >= 1


def test_fanout_result_counts_items_or_failure():
    """A run with items adds to the item counter; an empty run counts as a failure."""
    domain = "metrics_test_domain"
    items_before = sample("freight_fanout_items_total", domain=domain)
    failures_before = sample("freight_fanout_failures_total", domain=domain)

    record_fanout_result(domain, 12)
    record_fanout_result(domain, 0)

    assert sample("freight_fanout_items_total", domain=domain) == items_before + 12
    assert sample("freight_fanout_failures_total", domain=domain) == failures_before + 1


def test_slice_normalizer_and_verification_counters():
    record_slice_outcome("sea_rates", "malformed")
    record_normalizer_rejected("sea_rates")
    record_normalizer_defaulted("facilities", "type")
    record_verification("facility", "fallback")

    assert sample("freight_fanout_slices_total", domain="sea_rates", outcome="malformed") >= 1
    assert sample("freight_normalizer_rejected_total", domain="sea_rates") >= 1
    assert sample("freight_normalizer_defaulted_total", domain="facilities", field="type") >= 1
    assert sample("freight_verifications_total", kind="facility", outcome="fallback") >= 1


def test_metrics_exposition_format():
    record_slice_outcome("facilities", "success")

    text = get_metrics().decode("utf-8")

    assert "# HELP freight_fanout_slices_total" in text
    assert "# TYPE freight_fanout_slices_total counter" in text
    assert get_metrics_content_type().startswith("text/plain")
