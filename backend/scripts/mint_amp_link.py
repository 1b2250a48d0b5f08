#!/usr/bin/env python3
"""Mint AMP capability links for manual testing.

Prints the feed and reply URLs a notification email would embed for a
given user and chat, signed with AMP_SECRET.

Usage:
    AMP_SECRET=... python backend/scripts/mint_amp_link.py --user 7 --chat 42

    # Custom base URL, lifetime and tracking record
    AMP_SECRET=... python backend/scripts/mint_amp_link.py --user 7 --chat 42 \
        --base-url https://api.example.org --ttl 3600 --tracking-id 1234 \
        --exclude 1001

Environment Variables:
    AMP_SECRET: HMAC key shared with the running service (required)
    AMP_TOKEN_TTL_SECONDS: Default link lifetime when --ttl is not given
"""

import argparse
import sys
from pathlib import Path
from urllib.parse import urlencode

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from config import get_settings
from amp.tokens import TokenCodec


def build_links(
    codec: TokenCodec,
    base_url: str,
    user_id: int,
    chat_id: int,
    ttl_seconds: int,
    tracking_id: int | None = None,
    exclude_id: int | None = None,
) -> dict[str, str]:
    """Return the feed and reply URLs for one user/chat pair."""
    token = codec.mint(user_id, chat_id, ttl_seconds)
    base = base_url.rstrip("/")

    feed_params = token.query_params()
    if exclude_id is not None:
        feed_params["exclude"] = str(exclude_id)

    reply_params = token.query_params()
    if tracking_id is not None:
        reply_params["tid"] = str(tracking_id)

    return {
        "feed": f"{base}/amp/chat/{chat_id}?{urlencode(feed_params)}",
        "reply": f"{base}/amp/chat/{chat_id}/reply?{urlencode(reply_params)}",
        "expires": str(token.expiry),
    }


def main():
    """Parse arguments and print signed links."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Mint signed AMP chat links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--user", type=int, required=True, help="User ID the link is for")
    parser.add_argument("--chat", type=int, required=True, help="Chat ID the link grants")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Public base URL of the bridge (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--ttl",
        type=int,
        default=settings.AMP_TOKEN_TTL_SECONDS,
        help="Link lifetime in seconds",
    )
    parser.add_argument("--tracking-id", type=int, help="Email tracking record ID (tid)")
    parser.add_argument("--exclude", type=int, help="Message ID shown statically in the email")

    args = parser.parse_args()

    if not settings.AMP_SECRET:
        print("ERROR: AMP_SECRET environment variable is required", file=sys.stderr)
        sys.exit(1)

    links = build_links(
        TokenCodec(settings.AMP_SECRET),
        args.base_url,
        args.user,
        args.chat,
        args.ttl,
        tracking_id=args.tracking_id,
        exclude_id=args.exclude,
    )

    print(f"Feed:    {links['feed']}")
    print(f"Reply:   {links['reply']}")
    print(f"Expires: {links['expires']}")


if __name__ == '__main__':
    main()
