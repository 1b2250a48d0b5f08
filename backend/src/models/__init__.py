"""SQLAlchemy Models for the AMP chat bridge"""

from .base import Base, BigIntID
from .user import User
from .chat import ChatRoom, ChatRosterEntry, ChatMessage, ChatMessageType
from .email_tracking import EmailTracking, EmailTrackingClick

__all__ = [
    "Base",
    "BigIntID",
    "User",
    "ChatRoom",
    "ChatRosterEntry",
    "ChatMessage",
    "ChatMessageType",
    "EmailTracking",
    "EmailTrackingClick",
]
