"""AMP for Email chat bridge.

Signed capability tokens let a notification email read and reply to a chat
without a session. Request flow:

    AmpCorsMiddleware (origin guard)
      -> CapabilityToken / TokenCodec (verify)
      -> ChatAccessResolver (chat match + roster)
      -> MessageFeedBuilder (GET) | ReplySubmitter (POST)
"""

from .access import AccessGrant, ChatAccessResolver
from .errors import (
    AmpAccessError,
    ChatIDMismatch,
    EmptyMessageBody,
    ExpiredToken,
    ForbiddenOrigin,
    InvalidSignature,
    MessageTooLong,
    MissingToken,
    NotAMember,
)
from .feed import MessageFeedBuilder
from .origin import AmpCorsMiddleware, OriginGuard, SenderDomainMatcher, extract_domain
from .reply import ReplyOutcome, ReplySubmitter
from .tokens import CapabilityToken, TokenCodec, canonical_message

__all__ = [
    # Tokens
    "CapabilityToken",
    "TokenCodec",
    "canonical_message",
    # Origin guard
    "AmpCorsMiddleware",
    "OriginGuard",
    "SenderDomainMatcher",
    "extract_domain",
    # Access / services
    "AccessGrant",
    "ChatAccessResolver",
    "MessageFeedBuilder",
    "ReplyOutcome",
    "ReplySubmitter",
    # Errors
    "AmpAccessError",
    "MissingToken",
    "InvalidSignature",
    "ExpiredToken",
    "ChatIDMismatch",
    "NotAMember",
    "EmptyMessageBody",
    "MessageTooLong",
    "ForbiddenOrigin",
]
