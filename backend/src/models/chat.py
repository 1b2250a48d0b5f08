"""Chat room, roster and message SQLAlchemy models"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    TIMESTAMP,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, BigIntID


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessageType:
    """Message type written for replies."""
    DEFAULT = "Default"


class ChatRoom(Base):
    """A conversation between two users (or a user and a group's moderators)."""
    __tablename__ = "chat_rooms"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    chat_type = Column(Text, nullable=False, server_default="User2User")
    user1 = Column(BigIntID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    user2 = Column(BigIntID, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    latest_message = Column(TIMESTAMP(timezone=True), nullable=True)

    roster = relationship("ChatRosterEntry", back_populates="chat", cascade="all, delete-orphan")
    messages = relationship("ChatMessage", back_populates="chat", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "chat_type IN ('User2User', 'User2Mod', 'Mod2Mod')",
            name="ck_chat_rooms_chat_type",
        ),
    )

    def __repr__(self):
        return f"<ChatRoom(id={self.id}, chat_type='{self.chat_type}')>"


class ChatRosterEntry(Base):
    """Membership of a user in a chat room.

    Presence of a row is the single source of truth for "may read and
    write this chat".
    """
    __tablename__ = "chat_roster"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    chat_id = Column(BigIntID, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(BigIntID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(Text, nullable=False, server_default="Online")
    last_msg_seen = Column(BigIntID, nullable=True)
    date = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    chat = relationship("ChatRoom", back_populates="roster")

    __table_args__ = (
        UniqueConstraint("chat_id", "user_id", name="uq_chat_roster_chat_user"),
    )


class ChatMessage(Base):
    """A single message in a chat room.

    Messages held for review, rejected by review, or not yet processed are
    only visible to their sender.
    """
    __tablename__ = "chat_messages"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    chat_id = Column(BigIntID, ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(BigIntID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(Text, nullable=False, server_default=ChatMessageType.DEFAULT)
    message = Column(Text, nullable=False, server_default="")
    date = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    review_required = Column(Boolean, nullable=False, default=False)
    review_rejected = Column(Boolean, nullable=False, default=False)
    processing_successful = Column(Boolean, nullable=False, default=True)

    chat = relationship("ChatRoom", back_populates="messages")

    __table_args__ = (
        Index("ix_chat_messages_chat_id_date", "chat_id", "date"),
    )
