"""Message feed shown inside AMP notification emails.

The feed is fail-closed but not fail-loud: any denial produces the same
structurally valid, empty payload with HTTP 200, so callers cannot tell a bad
token from a chat with no messages.
"""

from typing import Optional

from observability.logging_config import get_logger
from observability.metrics import amp_feed_requests_total
from .access import AccessGrant, ChatAccessResolver
from .errors import AmpAccessError
from .ports import MessageStorePort, SenderProfile
from .schemas import AmpChatMessage, AmpChatResponse
from .tokens import CapabilityToken

logger = get_logger(__name__)


class MessageFeedBuilder:
    """Builds the "earlier conversation" list for an email."""

    def __init__(
        self,
        resolver: ChatAccessResolver,
        store: MessageStorePort,
        limit: int = 5,
        default_name: str = "Member",
        default_image: str = "",
    ):
        self.resolver = resolver
        self.store = store
        self.limit = limit
        self.default_name = default_name
        self.default_image = default_image

    def build_for_token(
        self,
        token: Optional[CapabilityToken],
        path_chat_id: Optional[int],
        exclude_id: Optional[int] = None,
        since_id: Optional[int] = None,
    ) -> AmpChatResponse:
        """Resolve access for a token and build the feed.

        Never raises for access problems; they all yield the empty feed.
        """
        if path_chat_id is None:
            amp_feed_requests_total.labels(outcome="denied").inc()
            return AmpChatResponse.denied()

        try:
            grant = self.resolver.authorize(token, path_chat_id)
        except AmpAccessError as e:
            amp_feed_requests_total.labels(outcome="denied").inc()
            logger.info(
                f"AMP feed denied: {type(e).__name__}: {e.detail}",
                extra={"chat_id": path_chat_id},
            )
            return AmpChatResponse.denied()

        amp_feed_requests_total.labels(outcome="granted").inc()
        return self.build(grant, exclude_id=exclude_id, since_id=since_id)

    def build(
        self,
        grant: AccessGrant,
        exclude_id: Optional[int] = None,
        since_id: Optional[int] = None,
    ) -> AmpChatResponse:
        """Build the feed for an already-authorized (user, chat) pair."""
        messages = self.store.recent_visible_messages(
            grant.chat_id, grant.user_id, self.limit, exclude_id=exclude_id or None
        )

        # Storage returns newest first; the email shows them chronologically
        messages = list(reversed(messages))

        profiles = self.store.sender_profiles({m.user_id for m in messages})

        items = []
        for msg in messages:
            profile = profiles.get(msg.user_id)
            items.append(AmpChatMessage(
                id=msg.id,
                chat_id=msg.chat_id,
                user_id=msg.user_id,
                type=msg.type,
                date=msg.date,
                message=msg.message,
                from_user=self._display_name(profile),
                from_image=self._display_image(profile),
                is_new=bool(since_id) and msg.id > since_id,
            ))

        return AmpChatResponse(
            items=items,
            chat_id=grant.chat_id,
            since_id=since_id or None,
            can_reply=True,
        )

    def _display_name(self, profile: Optional[SenderProfile]) -> str:
        if profile and profile.name:
            return profile.name
        return self.default_name

    def _display_image(self, profile: Optional[SenderProfile]) -> str:
        if profile and profile.image_url:
            return profile.image_url
        return self.default_image
