"""Origin guard for AMP for Email requests.

Email clients call the bridge with one of two CORS schemes:

- v2: an ``AMP-Email-Sender`` header naming the sending mailbox. The
  response echoes it back in ``AMP-Email-Allow-Sender``.
- v1: an ``__amp_source_origin`` query value plus a browser ``Origin``
  header. The response echoes ``Origin`` as ``Access-Control-Allow-Origin``
  and the source origin in ``AMP-Access-Control-Allow-Source-Origin``.

Both schemes are checked by the same ``SenderDomainMatcher`` so the
anti-spoofing rule lives in exactly one place. Requests carrying neither
scheme (server-to-server, curl) are not subject to the gate.

See: https://amp.dev/documentation/guides-and-tutorials/learn/cors-in-email
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from observability.logging_config import get_logger
from observability.metrics import amp_origin_rejections_total
from .errors import ForbiddenOrigin

logger = get_logger(__name__)

AMP_SENDER_HEADER = "AMP-Email-Sender"
AMP_ALLOW_SENDER_HEADER = "AMP-Email-Allow-Sender"
AMP_SOURCE_ORIGIN_PARAM = "__amp_source_origin"
AMP_ALLOW_SOURCE_ORIGIN_HEADER = "AMP-Access-Control-Allow-Source-Origin"

ALLOWED_METHODS = "GET, POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, AMP-Email-Sender"
PREFLIGHT_MAX_AGE = "86400"


def extract_domain(candidate: str) -> str:
    """Return the lower-cased domain named by a mailbox or origin value.

    ``user@Mail.Example.org`` -> ``mail.example.org``
    ``https://mail.example.org:443`` -> ``mail.example.org``
    """
    value = (candidate or "").strip().lower()

    # URLs may carry "@" in userinfo, path, query or fragment; only the host counts
    if "://" in value:
        try:
            value = urlsplit(value).hostname or ""
        except ValueError:
            return ""
    elif any(c in value for c in "/?#\\"):
        return ""
    elif "@" in value:
        value = value.rsplit("@", 1)[1]

    return value.rstrip(".")


class SenderDomainMatcher:
    """Label-boundary suffix matcher over an allow-list of domains.

    A candidate matches an allowed domain if it is that domain or a
    subdomain of it. ``mail.example.org`` matches ``example.org``;
    ``example.org.evil.com`` and ``badexample.org`` do not.
    """

    def __init__(self, allowed_domains: Iterable[str]):
        self.allowed_domains = tuple(
            d.strip().lower().strip(".") for d in allowed_domains if d and d.strip(".")
        )

    def is_allowed(self, candidate: Optional[str]) -> bool:
        domain = extract_domain(candidate or "")
        if not domain:
            return False

        labels = domain.split(".")
        if any(label == "" for label in labels):
            return False

        return any(
            domain == allowed or domain.endswith("." + allowed)
            for allowed in self.allowed_domains
        )


@dataclass(frozen=True)
class OriginDecision:
    """Result of checking a request against the origin policy."""

    scheme: Optional[str]  # "v1", "v2" or None when the gate does not apply
    allowed: bool
    response_headers: dict[str, str]


class OriginGuard:
    """Applies the v1/v2 AMP CORS policy using one domain matcher."""

    def __init__(self, matcher: SenderDomainMatcher):
        self.matcher = matcher

    def evaluate(
        self,
        sender: Optional[str],
        origin: Optional[str],
        source_origin: Optional[str],
    ) -> OriginDecision:
        """Decide whether a request may proceed and which headers to echo."""
        if sender:
            if not self.matcher.is_allowed(sender):
                return OriginDecision("v2", False, {})
            return OriginDecision("v2", True, {
                AMP_ALLOW_SENDER_HEADER: sender,
                "Access-Control-Expose-Headers": AMP_ALLOW_SENDER_HEADER,
            })

        if origin and source_origin:
            if not self.matcher.is_allowed(source_origin):
                return OriginDecision("v1", False, {})
            return OriginDecision("v1", True, {
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Expose-Headers": AMP_ALLOW_SOURCE_ORIGIN_HEADER,
                AMP_ALLOW_SOURCE_ORIGIN_HEADER: source_origin,
            })

        return OriginDecision(None, True, {})


class AmpCorsMiddleware(BaseHTTPMiddleware):
    """Middleware enforcing the origin guard on AMP endpoints.

    This middleware:
    1. Answers OPTIONS preflights with 204 and the allowed methods, whether
       or not the sender is valid
    2. Rejects disallowed senders with 403 before any route runs
    3. Echoes the CORS headers for approved senders on the response

    Only paths under ``path_prefix`` are guarded.

    Usage:
        app.add_middleware(AmpCorsMiddleware, guard=guard, path_prefix="/amp")
    """

    def __init__(self, app, guard: OriginGuard, path_prefix: str = "/amp"):
        super().__init__(app)
        self.guard = guard
        self.path_prefix = path_prefix.rstrip("/")

    def _applies_to(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self._applies_to(request.url.path):
            return await call_next(request)

        decision = self.guard.evaluate(
            sender=request.headers.get(AMP_SENDER_HEADER),
            origin=request.headers.get("Origin"),
            source_origin=request.query_params.get(AMP_SOURCE_ORIGIN_PARAM),
        )

        if request.method == "OPTIONS":
            response = Response(status_code=status.HTTP_204_NO_CONTENT)
            if decision.allowed:
                response.headers.update(decision.response_headers)
            response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
            response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
            response.headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
            return response

        if not decision.allowed:
            amp_origin_rejections_total.labels(scheme=decision.scheme).inc()
            logger.warning(
                f"Rejected AMP request from disallowed {decision.scheme} sender",
                extra={"path": request.url.path},
            )
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={
                    "error": "forbidden_origin",
                    "message": ForbiddenOrigin.public_message,
                },
            )

        response = await call_next(request)
        response.headers.update(decision.response_headers)
        return response
