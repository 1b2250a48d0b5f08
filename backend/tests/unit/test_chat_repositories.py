"""Unit tests for the SQLAlchemy chat and email tracking repositories

Tests cover:
- Roster lookups
- Visibility rules for the message feed
- Sender profiles
- Message insert and tracking updates
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from infrastructure.repositories import ChatRepository, EmailTrackingRepository
from models.chat import ChatMessage, ChatRoom
from models.email_tracking import EmailTracking, EmailTrackingClick


class TestRoster:
    """Test ChatRepository.is_member"""

    def test_members(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)

        assert repo.is_member(amp_chat.chat.id, amp_chat.user_a.id) is True
        assert repo.is_member(amp_chat.chat.id, amp_chat.user_b.id) is True
        assert repo.is_member(amp_chat.chat.id, amp_chat.outsider.id) is False

    def test_other_chat(self, db_session: Session, amp_chat, make_chat):
        other = make_chat(amp_chat.outsider)
        repo = ChatRepository(db_session)

        assert repo.is_member(other.id, amp_chat.user_a.id) is False
        assert repo.is_member(other.id, amp_chat.outsider.id) is True


class TestRecentVisibleMessages:
    """Test feed query filtering and ordering"""

    def test_newest_first(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)

        messages = repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_b.id, 5)

        assert [m.id for m in messages] == [m.id for m in reversed(amp_chat.messages)]

    def test_limit(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)

        messages = repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_b.id, 2)

        assert [m.id for m in messages] == [amp_chat.messages[2].id, amp_chat.messages[1].id]

    def test_exclude(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)
        excluded = amp_chat.messages[1].id

        messages = repo.recent_visible_messages(
            amp_chat.chat.id, amp_chat.user_b.id, 5, exclude_id=excluded
        )

        assert excluded not in [m.id for m in messages]
        assert len(messages) == 2

    @pytest.mark.parametrize("flags", [
        {"review_required": True},
        {"review_rejected": True},
        {"processing_successful": False},
    ])
    def test_held_messages_only_visible_to_sender(self, db_session: Session, amp_chat, make_message, flags):
        held = make_message(amp_chat.chat, amp_chat.user_a, "pending", **flags)
        repo = ChatRepository(db_session)

        seen_by_b = repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_b.id, 5)
        seen_by_a = repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_a.id, 5)

        assert held.id not in [m.id for m in seen_by_b]
        assert held.id in [m.id for m in seen_by_a]

    def test_deleted_sender_hidden(self, db_session: Session, amp_chat):
        amp_chat.user_a.deleted = datetime.now(timezone.utc)
        db_session.commit()
        repo = ChatRepository(db_session)

        assert repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_b.id, 5) == []
        assert len(repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_a.id, 5)) == 3

    def test_other_chat_messages_excluded(self, db_session: Session, amp_chat, make_chat, make_message):
        other = make_chat(amp_chat.user_a, amp_chat.user_b)
        make_message(other, amp_chat.user_b, "elsewhere")
        repo = ChatRepository(db_session)

        messages = repo.recent_visible_messages(amp_chat.chat.id, amp_chat.user_b.id, 5)

        assert "elsewhere" not in [m.message for m in messages]


class TestSenderProfiles:
    """Test display attributes"""

    def test_profiles(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)

        profiles = repo.sender_profiles([amp_chat.user_a.id, amp_chat.user_b.id, 999999])

        assert set(profiles) == {amp_chat.user_a.id, amp_chat.user_b.id}
        assert profiles[amp_chat.user_a.id].name == "Alice Able"
        assert profiles[amp_chat.user_b.id].name == "Bob Baker"
        assert profiles[amp_chat.user_a.id].image_url is None

    def test_empty(self, db_session: Session):
        assert ChatRepository(db_session).sender_profiles([]) == {}


class TestAddMessage:
    """Test reply insert"""

    def test_insert_and_bump_latest(self, db_session: Session, amp_chat):
        repo = ChatRepository(db_session)

        message_id = repo.add_message(amp_chat.chat.id, amp_chat.user_b.id, "On my way")

        stored = db_session.get(ChatMessage, message_id)
        assert stored.message == "On my way"
        assert stored.type == "Default"
        assert stored.user_id == amp_chat.user_b.id
        room = db_session.execute(
            select(ChatRoom).where(ChatRoom.id == amp_chat.chat.id)
        ).scalar_one()
        assert room.latest_message is not None


class TestEmailTrackingRepository:
    """Test correlation record updates"""

    def test_mark_replied(self, db_session: Session, amp_chat, make_tracking):
        record = make_tracking(amp_chat.user_b)
        repo = EmailTrackingRepository(db_session)

        assert repo.mark_replied(record.id, "amp") is True

        db_session.refresh(record)
        assert record.replied_via == "amp"
        assert record.replied_at is not None

    def test_mark_unknown_record(self, db_session: Session):
        repo = EmailTrackingRepository(db_session)

        assert repo.mark_replied(123456, "amp") is False
        assert db_session.execute(select(EmailTracking)).first() is None

    def test_record_click(self, db_session: Session, amp_chat, make_tracking):
        record = make_tracking(amp_chat.user_b)
        repo = EmailTrackingRepository(db_session)

        repo.record_click(record.id, "amp://reply", "amp_reply_form", "amp_reply")

        click = db_session.execute(select(EmailTrackingClick)).scalar_one()
        assert click.email_tracking_id == record.id
        assert click.link_url == "amp://reply"
        assert click.action == "amp_reply"
        assert click.clicked_at is not None
