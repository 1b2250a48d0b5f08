"""Unit tests for MessageFeedBuilder

Tests cover:
- Empty payload for every denial
- Chronological ordering and limit
- Exclusion and "new since" marking
- Sender attribution fallbacks
"""

import pytest

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from amp.access import AccessGrant
from amp.feed import MessageFeedBuilder
from amp.ports import SenderProfile


CHAT_ID = 42
VIEWER = 7
OTHER = 8


@pytest.fixture
def feed(resolver, chat_store) -> MessageFeedBuilder:
    return MessageFeedBuilder(
        resolver,
        chat_store,
        limit=5,
        default_name="Member",
        default_image="https://img.test/default.png",
    )


@pytest.fixture
def seeded(chat_store):
    chat_store.add_member(CHAT_ID, VIEWER)
    chat_store.add_member(CHAT_ID, OTHER)
    chat_store.profiles[OTHER] = SenderProfile(OTHER, "Olive Other", "https://img.test/o.png")
    return [chat_store.seed(CHAT_ID, OTHER, f"message {n}") for n in range(1, 4)]


class TestDeniedFeed:
    """Every denial yields the same empty payload"""

    def test_no_token(self, feed, seeded):
        response = feed.build_for_token(None, CHAT_ID)

        assert response.model_dump(by_alias=True, exclude_none=True) == {
            "items": [],
            "chatId": 0,
            "canReply": False,
        }

    def test_no_chat_id(self, feed, test_codec, seeded):
        token = test_codec.mint(VIEWER, CHAT_ID, ttl_seconds=60)

        assert feed.build_for_token(token, None).can_reply is False

    def test_expired_token(self, feed, test_codec, seeded):
        token = test_codec.mint(VIEWER, CHAT_ID, ttl_seconds=-60)

        response = feed.build_for_token(token, CHAT_ID)

        assert response.items == []
        assert response.chat_id == 0

    def test_non_member(self, feed, test_codec, seeded):
        token = test_codec.mint(99, CHAT_ID, ttl_seconds=60)

        response = feed.build_for_token(token, CHAT_ID)

        assert response.items == []
        assert response.can_reply is False

    def test_wrong_chat(self, feed, test_codec, seeded):
        token = test_codec.mint(VIEWER, CHAT_ID + 1, ttl_seconds=60)

        assert feed.build_for_token(token, CHAT_ID).items == []


class TestGrantedFeed:
    """Test the feed for an authorized viewer"""

    def test_items_chronological(self, feed, test_codec, seeded):
        token = test_codec.mint(VIEWER, CHAT_ID, ttl_seconds=60)

        response = feed.build_for_token(token, CHAT_ID)

        assert response.chat_id == CHAT_ID
        assert response.can_reply is True
        assert [item.message for item in response.items] == ["message 1", "message 2", "message 3"]

    def test_limit_keeps_most_recent(self, resolver, chat_store, seeded):
        feed = MessageFeedBuilder(resolver, chat_store, limit=2)

        response = feed.build(AccessGrant(VIEWER, CHAT_ID))

        assert [item.message for item in response.items] == ["message 2", "message 3"]

    def test_exclude(self, feed, seeded):
        response = feed.build(AccessGrant(VIEWER, CHAT_ID), exclude_id=seeded[1].id)

        assert [item.id for item in response.items] == [seeded[0].id, seeded[2].id]

    def test_since_marks_new(self, feed, seeded):
        response = feed.build(AccessGrant(VIEWER, CHAT_ID), since_id=seeded[0].id)

        assert [item.is_new for item in response.items] == [False, True, True]
        assert response.since_id == seeded[0].id

    def test_since_zero_marks_nothing(self, feed, seeded):
        response = feed.build(AccessGrant(VIEWER, CHAT_ID), since_id=0)

        assert not any(item.is_new for item in response.items)
        assert response.since_id is None

    def test_sender_profile_used(self, feed, seeded):
        item = feed.build(AccessGrant(VIEWER, CHAT_ID)).items[0]

        assert item.from_user == "Olive Other"
        assert item.from_image == "https://img.test/o.png"

    def test_sender_fallbacks(self, feed, chat_store, seeded):
        chat_store.profiles[VIEWER] = SenderProfile(VIEWER, None, None)
        chat_store.seed(CHAT_ID, VIEWER, "from me")

        item = feed.build(AccessGrant(VIEWER, CHAT_ID)).items[-1]

        assert item.from_user == "Member"
        assert item.from_image == "https://img.test/default.png"

    def test_unknown_sender_gets_defaults(self, feed, chat_store, seeded):
        chat_store.seed(CHAT_ID, 555, "from a stranger")

        item = feed.build(AccessGrant(VIEWER, CHAT_ID)).items[-1]

        assert item.from_user == "Member"

    def test_profiles_looked_up_once(self, feed, chat_store, seeded):
        feed.build(AccessGrant(VIEWER, CHAT_ID))

        assert chat_store.profile_lookups == 1

    def test_hidden_messages_visible_to_sender_only(self, feed, chat_store, seeded):
        own = chat_store.seed(CHAT_ID, VIEWER, "held for review")
        theirs = chat_store.seed(CHAT_ID, OTHER, "rejected")
        chat_store.hidden.update({own.id, theirs.id})

        ids = [item.id for item in feed.build(AccessGrant(VIEWER, CHAT_ID)).items]

        assert own.id in ids
        assert theirs.id not in ids

    def test_wire_field_names(self, feed, seeded):
        payload = feed.build(AccessGrant(VIEWER, CHAT_ID)).model_dump(by_alias=True)

        assert set(payload["items"][0]) == {
            "id", "chatid", "userid", "type", "date", "message",
            "fromUser", "fromImage", "isNew",
        }
        assert payload["chatId"] == CHAT_ID
        assert payload["canReply"] is True
