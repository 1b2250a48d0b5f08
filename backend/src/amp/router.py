"""AMP for Email endpoints (public, capability-token authenticated).

These endpoints let a notification email show recent chat messages
(amp-list) and post an inline reply (amp-form) without a session.

GET  /amp/chat/{chat_id}        - message feed, always HTTP 200
POST /amp/chat/{chat_id}/reply  - inline reply, 200 or 400

The origin guard (AmpCorsMiddleware) runs before either route and answers
OPTIONS preflights.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from observability.logging_config import get_logger
from .dependencies import get_feed_builder, get_reply_submitter
from .errors import AmpAccessError, ChatIDMismatch
from .feed import MessageFeedBuilder
from .reply import ReplySubmitter
from .schemas import AmpChatResponse, ReplyResponse
from .tokens import CapabilityToken, parse_id

logger = get_logger(__name__)

router = APIRouter(prefix="/amp", tags=["AMP"])


def _parse_optional_id(value: Optional[str]) -> Optional[int]:
    """Lenient integer parsing for optional query values; junk becomes None."""
    if value is None:
        return None
    try:
        return parse_id(value)
    except ValueError:
        return None


def _parse_token(
    chat_id: Optional[int],
    rt: Optional[str],
    uid: Optional[str],
    exp: Optional[str],
    cid: Optional[str],
) -> CapabilityToken:
    if chat_id is None:
        raise ChatIDMismatch(public_message="Invalid chat ID")
    return CapabilityToken.from_query(rt, uid, exp, cid, path_chat_id=chat_id)


async def _read_message_body(request: Request) -> Optional[str]:
    """Extract the ``message`` field from a JSON or form-encoded body.

    AMP forms post multipart/form-data; other clients post JSON. Anything
    unparseable is treated as an empty message.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        value = form.get("message")
        return value if isinstance(value, str) else None

    raw = await request.body()
    if not raw:
        return None

    try:
        payload = await request.json()
    except ValueError:
        logger.info("AMP reply body is not valid JSON")
        return None

    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return None


@router.get(
    "/chat/{chat_id}",
    response_model=AmpChatResponse,
    response_model_exclude_none=True,
    summary="Get chat messages for AMP email",
    description=(
        "Returns the most recent messages of a chat for display inside a "
        "notification email. Always returns 200; an empty list with "
        "canReply=false means access was denied or the token was invalid."
    ),
)
def get_chat_messages(
    chat_id: str,
    rt: Optional[str] = Query(None, description="Read token (HMAC signature)"),
    uid: Optional[str] = Query(None, description="User ID the token was minted for"),
    exp: Optional[str] = Query(None, description="Token expiry (unix seconds)"),
    cid: Optional[str] = Query(None, description="Chat ID the token was minted for"),
    exclude: Optional[str] = Query(None, description="Message ID shown statically in the email"),
    since: Optional[str] = Query(None, description="Messages newer than this ID are marked new"),
    feed: MessageFeedBuilder = Depends(get_feed_builder),
) -> AmpChatResponse:
    """Return the email feed for a capability token."""
    path_chat_id = _parse_optional_id(chat_id)

    try:
        token = _parse_token(path_chat_id, rt, uid, exp, cid)
    except AmpAccessError as e:
        logger.info(
            f"AMP feed request without usable token: {e.detail}",
            extra={"chat_id": path_chat_id},
        )
        token = None

    return feed.build_for_token(
        token,
        path_chat_id,
        exclude_id=_parse_optional_id(exclude),
        since_id=_parse_optional_id(since),
    )


@router.post(
    "/chat/{chat_id}/reply",
    response_model=ReplyResponse,
    summary="Post reply from AMP email",
    description=(
        "Submits an inline reply from an AMP email. The capability token may "
        "be reused until it expires."
    ),
    responses={400: {"model": ReplyResponse}, 500: {"model": ReplyResponse}},
)
async def post_chat_reply(
    chat_id: str,
    request: Request,
    rt: Optional[str] = Query(None, description="Capability token (HMAC signature)"),
    uid: Optional[str] = Query(None, description="User ID the token was minted for"),
    exp: Optional[str] = Query(None, description="Token expiry (unix seconds)"),
    cid: Optional[str] = Query(None, description="Chat ID the token was minted for"),
    tid: Optional[str] = Query(None, description="Email tracking record ID"),
    submitter: ReplySubmitter = Depends(get_reply_submitter),
):
    """Validate and send an inline reply."""
    path_chat_id = _parse_optional_id(chat_id)

    try:
        token = _parse_token(path_chat_id, rt, uid, exp, cid)
    except AmpAccessError as e:
        logger.info(f"AMP reply rejected: {e.detail}", extra={"chat_id": path_chat_id})
        return JSONResponse(
            status_code=400,
            content=ReplyResponse(success=False, message=e.public_message).model_dump(),
        )

    body = await _read_message_body(request)

    outcome = submitter.submit(
        token,
        path_chat_id,
        body,
        tracking_id=_parse_optional_id(tid),
    )

    return JSONResponse(
        status_code=outcome.status_code,
        content=ReplyResponse(success=outcome.success, message=outcome.message).model_dump(),
    )
