"""Access resolution for AMP capability tokens.

Decides whether the holder of a capability token may read or post into a
chat. The decision needs three things to line up:

1. The token verifies (signature matches, not expired)
2. The chat the token was minted for is the chat in the URL
3. The token's user is on that chat's roster
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from observability.logging_config import get_logger
from .errors import ChatIDMismatch, ExpiredToken, InvalidSignature, MissingToken, NotAMember
from .ports import RosterPort
from .tokens import CapabilityToken, TokenCodec

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    """A verified (user, chat) pair allowed to touch the chat."""

    user_id: int
    chat_id: int


class ChatAccessResolver:
    """Maps capability tokens to access decisions."""

    def __init__(
        self,
        codec: TokenCodec,
        roster: RosterPort,
        clock: Callable[[], float] = time.time,
    ):
        self.codec = codec
        self.roster = roster
        self.clock = clock

    def verify(self, token: Optional[CapabilityToken], path_chat_id: int) -> AccessGrant:
        """Check the token itself, without consulting the roster.

        Raises:
            MissingToken: No token was presented
            ExpiredToken: The token's expiry has passed
            InvalidSignature: The signature does not match
            ChatIDMismatch: The token was minted for a different chat
        """
        if token is None:
            raise MissingToken()

        now = int(self.clock())
        if token.is_expired(now):
            raise ExpiredToken(detail=f"Token expired at {token.expiry}, now {now}")

        if not self.codec.verify_token(token, now):
            raise InvalidSignature(detail=f"Signature mismatch for user {token.user_id}")

        if token.chat_id != path_chat_id:
            raise ChatIDMismatch(
                detail=f"Token for chat {token.chat_id} presented to chat {path_chat_id}"
            )

        return AccessGrant(user_id=token.user_id, chat_id=token.chat_id)

    def require_membership(self, grant: AccessGrant) -> AccessGrant:
        """Raises NotAMember unless the granted user is on the chat roster."""
        if not self.roster.is_member(grant.chat_id, grant.user_id):
            raise NotAMember(
                detail=f"User {grant.user_id} is not on the roster of chat {grant.chat_id}"
            )
        return grant

    def authorize(self, token: Optional[CapabilityToken], path_chat_id: int) -> AccessGrant:
        """Full decision: verify() followed by require_membership()."""
        grant = self.require_membership(self.verify(token, path_chat_id))
        logger.debug(
            "AMP access granted",
            extra={"user_id": grant.user_id, "chat_id": grant.chat_id},
        )
        return grant
