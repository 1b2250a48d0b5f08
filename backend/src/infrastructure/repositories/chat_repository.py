"""Chat repository for database operations"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from amp.ports import FeedMessage, MessageStorePort, RosterPort, SenderProfile
from models.chat import ChatMessage, ChatMessageType, ChatRoom, ChatRosterEntry
from models.user import User


class ChatRepository(RosterPort, MessageStorePort):
    """Repository for chat roster and chat message operations.

    Implements the roster and message-store ports used by the AMP bridge.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def is_member(self, chat_id: int, user_id: int) -> bool:
        query = select(ChatRosterEntry.id).where(
            and_(
                ChatRosterEntry.chat_id == chat_id,
                ChatRosterEntry.user_id == user_id,
            )
        )
        return self.db.execute(query).first() is not None

    def recent_visible_messages(
        self,
        chat_id: int,
        viewer_id: int,
        limit: int,
        exclude_id: Optional[int] = None,
    ) -> list[FeedMessage]:
        """Get the most recent messages visible to viewer_id, newest first.

        Hidden from everyone but their sender:
        - messages held for review or rejected by review
        - messages that failed processing
        - messages from deleted users
        """
        conditions = [
            ChatMessage.chat_id == chat_id,
            or_(
                ChatMessage.user_id == viewer_id,
                and_(
                    ChatMessage.review_required.is_(False),
                    ChatMessage.review_rejected.is_(False),
                    ChatMessage.processing_successful.is_(True),
                ),
            ),
            or_(User.deleted.is_(None), User.id == viewer_id),
        ]
        if exclude_id:
            conditions.append(ChatMessage.id != exclude_id)

        query = (
            select(ChatMessage)
            .join(User, User.id == ChatMessage.user_id)
            .where(and_(*conditions))
            .order_by(ChatMessage.date.desc(), ChatMessage.id.desc())
            .limit(limit)
        )

        return [
            FeedMessage(
                id=row.id,
                chat_id=row.chat_id,
                user_id=row.user_id,
                type=row.type,
                message=row.message,
                date=row.date,
            )
            for row in self.db.execute(query).scalars()
        ]

    def sender_profiles(self, user_ids: Iterable[int]) -> dict[int, SenderProfile]:
        ids = set(user_ids)
        if not ids:
            return {}

        users = self.db.execute(select(User).where(User.id.in_(ids))).scalars()
        return {
            user.id: SenderProfile(
                user_id=user.id,
                name=user.display_name(""),
                image_url=user.profile_image,
            )
            for user in users
        }

    def add_message(self, chat_id: int, user_id: int, text: str) -> int:
        """Insert a reply and bump the room's latest message time.

        Commits on success; rolls back and re-raises on any database error.
        """
        now = datetime.now(timezone.utc)
        message = ChatMessage(
            chat_id=chat_id,
            user_id=user_id,
            message=text,
            type=ChatMessageType.DEFAULT,
            date=now,
            review_required=False,
            review_rejected=False,
            processing_successful=True,
        )

        try:
            self.db.add(message)
            self.db.execute(
                update(ChatRoom).where(ChatRoom.id == chat_id).values(latest_message=now)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return message.id
