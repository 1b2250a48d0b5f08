"""Request ID management for request correlation.

Provides context-aware request ID generation and propagation across async operations.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request_id (async-safe)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Incoming IDs are echoed into logs and headers, so keep them boring
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._\-]{1,128}$")


def generate_request_id() -> str:
    """Generate a new unique request ID.

    Returns:
        str: UUID v4 request ID
    """
    return str(uuid.uuid4())


def resolve_request_id(incoming: Optional[str]) -> str:
    """Reuse a caller-supplied request ID if it is well-formed, else generate one.

    Args:
        incoming: Value of the X-Request-ID header, if any

    Returns:
        str: Request ID to use for this request
    """
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return generate_request_id()


def get_request_id() -> str:
    """Get current request ID from context.

    Returns:
        str: Current request ID or "no-request-id" if not set
    """
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> None:
    """Set request ID in current context.

    Args:
        request_id: Request ID to set
    """
    request_id_var.set(request_id)
