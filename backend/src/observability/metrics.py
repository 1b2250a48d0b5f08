"""Prometheus metrics for the AMP bridge.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Feed requests (amp-list)
amp_feed_requests_total = Counter(
    "ampbridge_feed_requests_total",
    "Total AMP chat feed requests",
    ["outcome"]  # outcome: granted|denied
)

# Inline replies (amp-form)
amp_replies_total = Counter(
    "ampbridge_replies_total",
    "Total AMP inline reply submissions",
    ["status"]  # status: sent|rejected|failed
)

# Origin guard
amp_origin_rejections_total = Counter(
    "ampbridge_origin_rejections_total",
    "AMP requests rejected by the origin guard",
    ["scheme"]  # scheme: v1|v2
)

# HTTP
http_request_duration_seconds = Histogram(
    "ampbridge_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "status_code"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)
