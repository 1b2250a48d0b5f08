"""Access errors raised by the AMP bridge.

Every error carries a public message that is safe to show to whoever holds
the email. The read path collapses all of them into an empty feed; the write
path reports the public message with a 400.
"""


class AmpAccessError(Exception):
    """Base class for AMP bridge denials."""

    public_message = "Unable to send reply"

    def __init__(self, public_message: str | None = None, detail: str | None = None):
        if public_message is not None:
            self.public_message = public_message
        # detail is for logs only; never returned to the caller
        self.detail = detail or self.public_message
        super().__init__(self.detail)


class MissingToken(AmpAccessError):
    public_message = "Missing token"


class InvalidSignature(AmpAccessError):
    public_message = "Invalid token"


class ExpiredToken(AmpAccessError):
    # Reported exactly like a forged token
    public_message = "Invalid token"


class ChatIDMismatch(AmpAccessError):
    public_message = "Token mismatch"


class NotAMember(AmpAccessError):
    public_message = "You are not a member of this conversation."


class EmptyMessageBody(AmpAccessError):
    public_message = "Please enter a message."


class MessageTooLong(AmpAccessError):
    public_message = "Message is too long."

    def __init__(self, max_length: int):
        super().__init__(
            public_message=(
                f"Message is too long. Please keep it under {max_length:,} characters."
            ),
        )
        self.max_length = max_length


class ForbiddenOrigin(AmpAccessError):
    public_message = "Sender not allowed"
