"""Prometheus instruments for the HTTP boundary."""

from __future__ import annotations

from prometheus_client import Counter

MUTATIONS = Counter(
    "fleet_mutations_total",
    "Successful entity writes.",
    ["kind", "operation"],
)

REQUEST_FAILURES = Counter(
    "fleet_request_failures_total",
    "Requests that ended in a typed fleet failure.",
    ["code"],
)
