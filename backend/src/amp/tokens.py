"""Signed capability tokens for AMP email links.

A capability token grants one user access to one chat until an expiry,
with no server-side session:

    signature = hex(HMAC-SHA256(secret, "amp" + user_id + chat_id + expiry))

Security Properties:
- Stateless: validity is a pure function of the inputs and the secret
- Reusable until expiry (a forwarded email keeps working until then)
- Tamper-proof: user, chat and expiry are all bound by the signature
- Constant-time signature comparison

Query parameters carried by email links:
- rt:  signature (hex)
- uid: user ID
- exp: expiry as unix seconds
- cid: chat ID the token was minted for (optional, defaults to the path chat)
"""

import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidSignature, MissingToken

TOKEN_PREFIX = "amp"

# Largest value a BIGINT column (or a token field) may hold
MAX_ID = 2**63 - 1


def _now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class CapabilityToken:
    """Capability presented by an email client. Never persisted."""

    user_id: int
    chat_id: int
    expiry: int
    signature: str

    @classmethod
    def from_query(
        cls,
        rt: Optional[str],
        uid: Optional[str],
        exp: Optional[str],
        cid: Optional[str],
        path_chat_id: int,
    ) -> "CapabilityToken":
        """Build a token from request query values.

        Raises:
            MissingToken: If rt, uid or exp is absent or blank
            InvalidSignature: If uid, exp or cid is not a non-negative integer
        """
        if not rt or not uid or not exp:
            raise MissingToken(detail="rt, uid and exp are required")

        try:
            user_id = parse_id(uid)
            expiry = parse_id(exp)
            chat_id = parse_id(cid) if cid else path_chat_id
        except ValueError as e:
            raise InvalidSignature(detail=f"Malformed token parameters: {e}")

        return cls(user_id=user_id, chat_id=chat_id, expiry=expiry, signature=rt)

    def query_params(self) -> dict[str, str]:
        """Query parameters for embedding this token in an email link."""
        return {
            "rt": self.signature,
            "uid": str(self.user_id),
            "exp": str(self.expiry),
            "cid": str(self.chat_id),
        }

    def is_expired(self, now: Optional[int] = None) -> bool:
        return (now if now is not None else _now()) >= self.expiry


def parse_id(value: str) -> int:
    """Parse a non-negative ASCII decimal ID no larger than MAX_ID.

    Raises:
        ValueError: If the value is not such an ID
    """
    value = value.strip()
    # str.isdigit() also accepts superscripts and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"not a non-negative integer: {value!r}")
    number = int(value)
    if number > MAX_ID:
        raise ValueError(f"out of range: {value!r}")
    return number


def canonical_message(user_id: int, chat_id: int, expiry: int) -> str:
    """The string covered by the signature."""
    return f"{TOKEN_PREFIX}{user_id}{chat_id}{expiry}"


class TokenCodec:
    """Signs and verifies capability tokens with a process-wide secret.

    The codec performs no I/O. An empty secret makes every verification
    fail; signing with an empty secret is refused.
    """

    def __init__(self, secret: Optional[str]):
        self._secret = (secret or "").encode("utf-8")

    @property
    def has_secret(self) -> bool:
        return bool(self._secret)

    def sign(self, user_id: int, chat_id: int, expiry: int) -> str:
        """Compute the signature for (user_id, chat_id, expiry).

        Raises:
            ValueError: If no secret is configured
        """
        if not self._secret:
            raise ValueError("AMP secret is not configured")

        message = canonical_message(user_id, chat_id, expiry)
        return hmac.new(self._secret, message.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(
        self,
        signature: str,
        user_id: int,
        chat_id: int,
        expiry: int,
        now: Optional[int] = None,
    ) -> bool:
        """Return True iff the signature matches and the token has not expired.

        Never raises: malformed inputs, a missing secret and expired tokens
        all return False.
        """
        if not self._secret or not isinstance(signature, str) or not signature:
            return False

        try:
            user_id, chat_id, expiry = int(user_id), int(chat_id), int(expiry)
        except (TypeError, ValueError):
            return False

        if (now if now is not None else _now()) >= expiry:
            return False

        expected = self.sign(user_id, chat_id, expiry)
        return hmac.compare_digest(
            expected.encode("ascii"), signature.encode("utf-8", "replace")
        )

    def verify_token(self, token: CapabilityToken, now: Optional[int] = None) -> bool:
        return self.verify(token.signature, token.user_id, token.chat_id, token.expiry, now)

    def mint(
        self,
        user_id: int,
        chat_id: int,
        ttl_seconds: int,
        now: Optional[int] = None,
    ) -> CapabilityToken:
        """Create a token for user_id/chat_id valid for ttl_seconds."""
        expiry = (now if now is not None else _now()) + ttl_seconds
        return CapabilityToken(
            user_id=user_id,
            chat_id=chat_id,
            expiry=expiry,
            signature=self.sign(user_id, chat_id, expiry),
        )
