"""SQLAlchemy adapters for the AMP bridge ports"""

from .chat_repository import ChatRepository
from .email_tracking_repository import EmailTrackingRepository

__all__ = ["ChatRepository", "EmailTrackingRepository"]
