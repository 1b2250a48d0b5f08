"""Email tracking repository for database operations"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from amp.ports import CorrelationStorePort
from models.email_tracking import EmailTracking, EmailTrackingClick


class EmailTrackingRepository(CorrelationStorePort):
    """Repository for email correlation record updates.

    Each method commits on its own so that tracking writes never share a
    transaction with the chat message they describe.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def mark_replied(self, tracking_id: int, channel: str) -> bool:
        try:
            result = self.db.execute(
                update(EmailTracking)
                .where(EmailTracking.id == tracking_id)
                .values(replied_at=datetime.now(timezone.utc), replied_via=channel)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return result.rowcount > 0

    def record_click(
        self,
        tracking_id: int,
        link_url: str,
        link_position: Optional[str],
        action: Optional[str],
    ) -> None:
        try:
            self.db.add(EmailTrackingClick(
                email_tracking_id=tracking_id,
                link_url=link_url,
                link_position=link_position,
                action=action,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
