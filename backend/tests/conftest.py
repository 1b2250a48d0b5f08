"""Pytest fixtures for AMP bridge testing.

Provides reusable test fixtures for:
- Database session against an in-memory SQLite database
- Users, chat rooms, roster entries and messages
- Capability token minting with the process-wide codec
- In-memory port fakes for service-level unit tests
- A FastAPI test client wired to the test database

Usage:
    def test_feed(client, amp_chat, mint_token):
        token = mint_token(amp_chat.user_a.id, amp_chat.chat.id)
        response = client.get(f"/amp/chat/{amp_chat.chat.id}", params=token.query_params())
        assert response.json()["canReply"] is True
"""

import sys
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AMP_ALLOWED_SENDER_DOMAINS"] = "example.org,gmail.dev"
os.environ["LOG_JSON"] = "false"

if "AMP_SECRET" not in os.environ:
    os.environ["AMP_SECRET"] = "test-amp-secret-key-256-bits-minimum-length-for-hmac"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models.base import Base
from models.user import User
from models.chat import ChatMessage, ChatRoom, ChatRosterEntry
from models.email_tracking import EmailTracking
from amp.access import ChatAccessResolver
from amp.dependencies import get_token_codec
from amp.ports import (
    CorrelationStorePort,
    FeedMessage,
    MessageStorePort,
    RosterPort,
    SenderProfile,
)
from amp.tokens import CapabilityToken, TokenCodec
from database import get_db as database_get_db


# Single shared in-memory connection so every session sees the same data
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client using the test database."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def codec() -> TokenCodec:
    """The process-wide token codec the app verifies with."""
    return get_token_codec()


@pytest.fixture(scope="function")
def mint_token(codec: TokenCodec) -> Callable[..., CapabilityToken]:
    """Factory minting capability tokens; ttl_seconds may be negative."""

    def _mint(user_id: int, chat_id: int, ttl_seconds: int = 3600) -> CapabilityToken:
        return codec.mint(user_id, chat_id, ttl_seconds)

    return _mint


# =============================================================================
# DATABASE FACTORIES
# =============================================================================

@pytest.fixture(scope="function")
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating users."""

    def _make(fullname: Optional[str] = None, **kwargs) -> User:
        user = User(fullname=fullname, **kwargs)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture(scope="function")
def make_chat(db_session: Session) -> Callable[..., ChatRoom]:
    """Factory creating a User2User chat with the given users on its roster."""

    def _make(*members: User) -> ChatRoom:
        chat = ChatRoom(
            chat_type="User2User",
            user1=members[0].id if members else None,
            user2=members[1].id if len(members) > 1 else None,
        )
        db_session.add(chat)
        db_session.flush()

        for member in members:
            db_session.add(ChatRosterEntry(chat_id=chat.id, user_id=member.id, status="Online"))

        db_session.commit()
        db_session.refresh(chat)
        return chat

    return _make


@pytest.fixture(scope="function")
def make_message(db_session: Session) -> Callable[..., ChatMessage]:
    """Factory creating chat messages with strictly increasing dates in the past."""
    base = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(chat: ChatRoom, sender: User, text: str, **kwargs) -> ChatMessage:
        counter["n"] += 1
        message = ChatMessage(
            chat_id=chat.id,
            user_id=sender.id,
            message=text,
            date=base + timedelta(minutes=counter["n"]),
            **kwargs,
        )
        db_session.add(message)
        db_session.commit()
        db_session.refresh(message)
        return message

    return _make


@pytest.fixture(scope="function")
def make_tracking(db_session: Session) -> Callable[..., EmailTracking]:
    """Factory creating email tracking (correlation) records."""

    def _make(user: User, recipient: str = "test@example.com") -> EmailTracking:
        record = EmailTracking(
            tracking_id=f"test_{user.id}_{datetime.now(timezone.utc).timestamp()}",
            email_type="chat_notification",
            user_id=user.id,
            recipient_email=recipient,
            sent_at=datetime.now(timezone.utc),
            has_amp=True,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


@dataclass
class AmpChatScenario:
    chat: ChatRoom
    user_a: User
    user_b: User
    outsider: User
    messages: list


@pytest.fixture(scope="function")
def amp_chat(make_user, make_chat, make_message) -> AmpChatScenario:
    """Chat with users A and B on the roster, three messages from A.

    A third user (outsider) exists but is not on the roster.
    """
    user_a = make_user(fullname="Alice Able")
    user_b = make_user(firstname="Bob", lastname="Baker")
    outsider = make_user(fullname="Zed Zero")
    chat = make_chat(user_a, user_b)

    messages = [
        make_message(chat, user_a, "Hello from user A"),
        make_message(chat, user_a, "Is the bike still available?"),
        make_message(chat, user_a, "I can collect tomorrow"),
    ]

    return AmpChatScenario(
        chat=chat, user_a=user_a, user_b=user_b, outsider=outsider, messages=messages
    )


# =============================================================================
# IN-MEMORY PORT FAKES (service-level unit tests)
# =============================================================================

class InMemoryChatStore(RosterPort, MessageStorePort):
    """Roster and message store backed by plain lists."""

    def __init__(self):
        self.roster: set[tuple[int, int]] = set()
        self.messages: list[FeedMessage] = []
        self.profiles: dict[int, SenderProfile] = {}
        self.hidden: set[int] = set()
        self.fail_inserts = False
        self.profile_lookups = 0

    def add_member(self, chat_id: int, user_id: int) -> None:
        self.roster.add((chat_id, user_id))

    def seed(self, chat_id: int, user_id: int, text: str) -> FeedMessage:
        message = FeedMessage(
            id=len(self.messages) + 1,
            chat_id=chat_id,
            user_id=user_id,
            type="Default",
            message=text,
            date=datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=len(self.messages)),
        )
        self.messages.append(message)
        return message

    def is_member(self, chat_id: int, user_id: int) -> bool:
        return (chat_id, user_id) in self.roster

    def recent_visible_messages(self, chat_id, viewer_id, limit, exclude_id=None):
        visible = [
            m for m in self.messages
            if m.chat_id == chat_id
            and m.id != exclude_id
            and (m.id not in self.hidden or m.user_id == viewer_id)
        ]
        return list(reversed(visible))[:limit]

    def sender_profiles(self, user_ids: Iterable[int]) -> dict[int, SenderProfile]:
        self.profile_lookups += 1
        return {uid: self.profiles[uid] for uid in user_ids if uid in self.profiles}

    def add_message(self, chat_id: int, user_id: int, text: str) -> int:
        if self.fail_inserts:
            from sqlalchemy.exc import OperationalError
            raise OperationalError("INSERT INTO chat_messages", {}, Exception("db down"))
        return self.seed(chat_id, user_id, text).id


@dataclass
class InMemoryTracking(CorrelationStorePort):
    """Correlation store recording calls; known_ids are the existing records."""

    known_ids: set = field(default_factory=set)
    replied: dict = field(default_factory=dict)
    clicks: list = field(default_factory=list)
    fail: bool = False

    def mark_replied(self, tracking_id: int, channel: str) -> bool:
        if self.fail:
            from sqlalchemy.exc import OperationalError
            raise OperationalError("UPDATE email_tracking", {}, Exception("db down"))
        if tracking_id not in self.known_ids:
            return False
        self.replied[tracking_id] = channel
        return True

    def record_click(self, tracking_id, link_url, link_position, action) -> None:
        self.clicks.append((tracking_id, link_url, link_position, action))


@pytest.fixture(scope="function")
def chat_store() -> InMemoryChatStore:
    return InMemoryChatStore()


@pytest.fixture(scope="function")
def tracking_store() -> InMemoryTracking:
    return InMemoryTracking()


@pytest.fixture(scope="function")
def test_codec() -> TokenCodec:
    """Codec with a fixed secret, independent of the environment."""
    return TokenCodec("unit-test-secret")


@pytest.fixture(scope="function")
def resolver(test_codec: TokenCodec, chat_store: InMemoryChatStore) -> ChatAccessResolver:
    return ChatAccessResolver(test_codec, chat_store)
