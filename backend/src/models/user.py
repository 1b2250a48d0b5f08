"""User SQLAlchemy model"""

from sqlalchemy import Column, Text, TIMESTAMP

from .base import Base, BigIntID


class User(Base):
    """User as seen by the AMP bridge.

    Accounts are owned by the main application; the bridge only reads
    display fields to attribute chat messages to their senders.
    """
    __tablename__ = "users"

    id = Column(BigIntID, primary_key=True, autoincrement=True)
    fullname = Column(Text, nullable=True)
    firstname = Column(Text, nullable=True)
    lastname = Column(Text, nullable=True)
    profile_image = Column(Text, nullable=True)
    deleted = Column(TIMESTAMP(timezone=True), nullable=True)

    def display_name(self, default: str) -> str:
        """Full name, else "first last", else the supplied default."""
        if self.fullname and self.fullname.strip():
            return self.fullname.strip()

        name = f"{self.firstname or ''} {self.lastname or ''}".strip()
        return name or default

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.display_name('')}')>"
