"""FastAPI dependencies wiring the AMP services together.

The token codec is built once per process from the cached settings, so the
signing secret is read at startup and never changes afterwards.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db
from infrastructure.repositories import ChatRepository, EmailTrackingRepository
from observability.logging_config import get_logger
from .access import ChatAccessResolver
from .feed import MessageFeedBuilder
from .origin import OriginGuard, SenderDomainMatcher
from .reply import ReplySubmitter
from .tokens import TokenCodec

logger = get_logger(__name__)


@lru_cache()
def get_token_codec() -> TokenCodec:
    """Process-wide token codec.

    Call get_token_codec.cache_clear() after get_settings.cache_clear() to
    pick up a new secret (tests only).
    """
    secret = get_settings().AMP_SECRET
    if not secret:
        logger.warning("No AMP secret configured; every AMP token will be rejected")
    else:
        logger.info(f"AMP secret configured, length={len(secret)}")
    return TokenCodec(secret)


def build_origin_guard() -> OriginGuard:
    """Origin guard over the configured sender allow-list."""
    return OriginGuard(SenderDomainMatcher(get_settings().allowed_sender_domains))


def get_access_resolver(
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> ChatAccessResolver:
    return ChatAccessResolver(codec, ChatRepository(db))


def get_feed_builder(
    db: Session = Depends(get_db),
    resolver: ChatAccessResolver = Depends(get_access_resolver),
) -> MessageFeedBuilder:
    settings = get_settings()
    return MessageFeedBuilder(
        resolver,
        ChatRepository(db),
        limit=settings.AMP_FEED_LIMIT,
        default_name=settings.AMP_DEFAULT_DISPLAY_NAME,
        default_image=settings.AMP_DEFAULT_PROFILE_IMAGE,
    )


def get_reply_submitter(
    db: Session = Depends(get_db),
    resolver: ChatAccessResolver = Depends(get_access_resolver),
) -> ReplySubmitter:
    return ReplySubmitter(
        resolver,
        ChatRepository(db),
        EmailTrackingRepository(db),
        max_length=get_settings().AMP_MAX_MESSAGE_LENGTH,
    )
