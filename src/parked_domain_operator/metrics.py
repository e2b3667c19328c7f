"""Prometheus metrics for the Parked Domain Operator."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

reconcile_total = Counter(
    "parked_domain_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "parked_domain_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
)

api_call_total = Counter(
    "parked_domain_api_call_total",
    "Total number of remote API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "parked_domain_api_call_duration_seconds",
    "Duration of remote API calls in seconds",
    ["api_type", "operation"],
)

bucket_operations_total = Counter(
    "parked_domain_bucket_operations_total",
    "Total number of bucket operations",
    ["operation", "result"],
)

zone_operations_total = Counter(
    "parked_domain_zone_operations_total",
    "Total number of hosted zone operations",
    ["operation", "result"],
)

finalizer_transitions_total = Counter(
    "parked_domain_finalizer_transitions_total",
    "Total number of finalizer state transitions",
    ["transition"],
)

span_duration_seconds = Histogram(
    "parked_domain_span_duration_seconds",
    "Duration of traced spans in seconds",
    ["span", "kind"],
)
