"""Observability module for the AMP bridge.

Provides structured logging, metrics, request correlation and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    amp_feed_requests_total,
    amp_replies_total,
    amp_origin_rejections_total,
    http_request_duration_seconds,
)
from .request_id import (
    request_id_var,
    get_request_id,
    set_request_id,
    generate_request_id,
    resolve_request_id,
)
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "amp_feed_requests_total",
    "amp_replies_total",
    "amp_origin_rejections_total",
    "http_request_duration_seconds",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "resolve_request_id",
    # Middleware
    "RequestIDMiddleware",
]
