"""Email correlation (tracking) SQLAlchemy models"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from .base import Base, BigIntID


class EmailTracking(Base):
    """Correlates an outbound notification email with its recipient.

    Rows are written by the mailer. The AMP bridge only updates the
    replied_at / replied_via markers when a reply arrives from the email.
    """
    __tablename__ = "email_tracking"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    tracking_id = Column(Text, nullable=False, unique=True)
    email_type = Column(Text, nullable=False)
    user_id = Column(BigIntID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    recipient_email = Column(Text, nullable=False)
    sent_at = Column(TIMESTAMP(timezone=True), nullable=True)
    has_amp = Column(Boolean, nullable=False, default=False)
    replied_at = Column(TIMESTAMP(timezone=True), nullable=True)
    replied_via = Column(Text, nullable=True)

    clicks = relationship("EmailTrackingClick", back_populates="tracking")


class EmailTrackingClick(Base):
    """A click or inline action recorded against a tracked email."""
    __tablename__ = "email_tracking_clicks"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    email_tracking_id = Column(
        BigIntID, ForeignKey("email_tracking.id", ondelete="CASCADE"), nullable=False
    )
    link_url = Column(Text, nullable=False)
    link_position = Column(Text, nullable=True)
    action = Column(Text, nullable=True)
    clicked_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    tracking = relationship("EmailTracking", back_populates="clicks")
