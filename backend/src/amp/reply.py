"""Inline replies submitted from AMP notification emails.

Preconditions are checked in a fixed order and each failure carries its own
public message:

1. Token present and well-formed     -> "Missing token" / "Invalid token"
2. Token not expired, signature good -> "Invalid token"
3. URL chat matches token chat       -> "Token mismatch"
4. Trimmed message non-empty         -> "Please enter a message."
5. Message within the length limit   -> "Message is too long. ..."
6. Token user on the chat roster     -> "You are not a member of this conversation."

The same token may be used for any number of replies until it expires.
The message insert and the email-tracking update are separate operations;
a tracking failure never blocks or undoes a sent message.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from observability.logging_config import get_logger
from observability.metrics import amp_replies_total
from .access import ChatAccessResolver
from .errors import AmpAccessError, EmptyMessageBody, MessageTooLong
from .ports import CorrelationStorePort, MessageStorePort
from .tokens import CapabilityToken

logger = get_logger(__name__)

REPLY_CHANNEL = "amp"
REPLY_LINK_URL = "amp://reply"
REPLY_LINK_POSITION = "amp_reply_form"
REPLY_ACTION = "amp_reply"

SENT_MESSAGE = "Message sent!"
SEND_FAILED_MESSAGE = "Failed to send message. Please try again in the app."


@dataclass(frozen=True)
class ReplyOutcome:
    """Result of a reply attempt, ready to be rendered as ReplyResponse."""

    success: bool
    message: str
    status_code: int
    message_id: Optional[int] = None


class ReplySubmitter:
    """Validates and commits replies from AMP emails."""

    def __init__(
        self,
        resolver: ChatAccessResolver,
        store: MessageStorePort,
        tracking: CorrelationStorePort,
        max_length: int = 10_000,
    ):
        self.resolver = resolver
        self.store = store
        self.tracking = tracking
        self.max_length = max_length

    def validate_body(self, body: Optional[str]) -> str:
        """Return the trimmed message text.

        Raises:
            EmptyMessageBody: If the text is missing or whitespace only
            MessageTooLong: If the trimmed text exceeds max_length
        """
        text = (body or "").strip()
        if not text:
            raise EmptyMessageBody()
        if len(text) > self.max_length:
            raise MessageTooLong(self.max_length)
        return text

    def submit(
        self,
        token: Optional[CapabilityToken],
        path_chat_id: int,
        body: Optional[str],
        tracking_id: Optional[int] = None,
    ) -> ReplyOutcome:
        """Validate the request and send the reply.

        Returns:
            ReplyOutcome with status 200 on success, 400 on any precondition
            failure and 500 if the message could not be stored
        """
        try:
            grant = self.resolver.verify(token, path_chat_id)
            text = self.validate_body(body)
            self.resolver.require_membership(grant)
        except AmpAccessError as e:
            amp_replies_total.labels(status="rejected").inc()
            logger.info(
                f"AMP reply rejected: {type(e).__name__}: {e.detail}",
                extra={"chat_id": path_chat_id},
            )
            return ReplyOutcome(success=False, message=e.public_message, status_code=400)

        try:
            message_id = self.store.add_message(grant.chat_id, grant.user_id, text)
        except SQLAlchemyError:
            amp_replies_total.labels(status="failed").inc()
            logger.error(
                "Failed to store AMP reply",
                extra={"chat_id": grant.chat_id, "user_id": grant.user_id},
                exc_info=True,
            )
            return ReplyOutcome(success=False, message=SEND_FAILED_MESSAGE, status_code=500)

        amp_replies_total.labels(status="sent").inc()
        logger.info(
            f"AMP reply {message_id} sent",
            extra={"chat_id": grant.chat_id, "user_id": grant.user_id},
        )

        if tracking_id is not None:
            self._record_reply(tracking_id, grant.chat_id, grant.user_id)

        return ReplyOutcome(
            success=True, message=SENT_MESSAGE, status_code=200, message_id=message_id
        )

    def _record_reply(self, tracking_id: int, chat_id: int, user_id: int) -> None:
        """Mark the correlation record; failures are logged, not propagated."""
        try:
            if not self.tracking.mark_replied(tracking_id, REPLY_CHANNEL):
                logger.warning(
                    f"Email tracking record {tracking_id} not found for AMP reply",
                    extra={"chat_id": chat_id, "user_id": user_id},
                )
                return
            self.tracking.record_click(
                tracking_id, REPLY_LINK_URL, REPLY_LINK_POSITION, REPLY_ACTION
            )
        except SQLAlchemyError:
            logger.warning(
                f"Failed to update email tracking record {tracking_id}",
                extra={"chat_id": chat_id, "user_id": user_id},
                exc_info=True,
            )
