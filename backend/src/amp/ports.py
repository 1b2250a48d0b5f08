"""Port interfaces for the collaborators the AMP bridge consumes.

Conversation storage and email correlation records are owned by other parts
of the platform. The bridge talks to them only through these narrow
contracts; SQLAlchemy adapters live in infrastructure/repositories.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional


@dataclass(frozen=True)
class FeedMessage:
    """A chat message as read from storage for the email feed."""

    id: int
    chat_id: int
    user_id: int
    type: str
    message: str
    date: Optional[datetime]


@dataclass(frozen=True)
class SenderProfile:
    """Display attributes for a message sender."""

    user_id: int
    name: Optional[str]
    image_url: Optional[str]


class RosterPort(ABC):
    """Membership lookup for chat rooms."""

    @abstractmethod
    def is_member(self, chat_id: int, user_id: int) -> bool:
        """Return True if user_id is on chat_id's roster."""
        pass


class MessageStorePort(ABC):
    """Read/write access to chat messages."""

    @abstractmethod
    def recent_visible_messages(
        self,
        chat_id: int,
        viewer_id: int,
        limit: int,
        exclude_id: Optional[int] = None,
    ) -> list[FeedMessage]:
        """Return up to ``limit`` messages visible to viewer_id, newest first.

        Args:
            chat_id: Chat room to read
            viewer_id: User the feed is built for (sees their own held messages)
            limit: Maximum number of messages
            exclude_id: Message ID to leave out (already shown in the email)
        """
        pass

    @abstractmethod
    def sender_profiles(self, user_ids: Iterable[int]) -> dict[int, SenderProfile]:
        """Return display profiles keyed by user ID. Unknown IDs are omitted."""
        pass

    @abstractmethod
    def add_message(self, chat_id: int, user_id: int, text: str) -> int:
        """Commit a new message and return its ID.

        Either the message is fully committed or nothing is written.
        """
        pass


class CorrelationStorePort(ABC):
    """Updates to email correlation (tracking) records."""

    @abstractmethod
    def mark_replied(self, tracking_id: int, channel: str) -> bool:
        """Mark an existing record as replied via ``channel``.

        Returns False if no such record exists. Never creates records.
        """
        pass

    @abstractmethod
    def record_click(
        self,
        tracking_id: int,
        link_url: str,
        link_position: Optional[str],
        action: Optional[str],
    ) -> None:
        """Append a click/action row to an existing tracking record."""
        pass
