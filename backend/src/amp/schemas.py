"""Pydantic schemas for AMP endpoints.

Field names follow the JSON the AMP templates bind to (chatId, canReply,
fromUser, ...), exposed through serialization aliases.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AmpChatMessage(BaseModel):
    """A chat message enriched with sender display information."""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Message ID")
    chat_id: int = Field(..., serialization_alias="chatid", description="Chat ID")
    user_id: int = Field(..., serialization_alias="userid", description="Sender user ID")
    type: str = Field(..., description="Message type (Default, Image, ...)")
    date: Optional[datetime] = Field(None, description="When the message was sent")
    message: str = Field(..., description="Message text")
    from_user: str = Field(..., serialization_alias="fromUser", description="Sender display name")
    from_image: str = Field(..., serialization_alias="fromImage", description="Sender avatar URL")
    is_new: bool = Field(False, serialization_alias="isNew", description="Newer than the since ID")


class AmpChatResponse(BaseModel):
    """Feed returned to amp-list.

    An empty item list with can_reply False is the fallback the email
    template shows for any denied or invalid request.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "items": [
                    {
                        "id": 1002,
                        "chatid": 42,
                        "userid": 7,
                        "type": "Default",
                        "date": "2026-01-04T12:00:00Z",
                        "message": "Is the sofa still available?",
                        "fromUser": "Jo Bloggs",
                        "fromImage": "https://www.example.org/defaultprofile.png",
                        "isNew": False,
                    }
                ],
                "chatId": 42,
                "canReply": True,
            }
        },
    )

    items: list[AmpChatMessage] = Field(default_factory=list)
    chat_id: int = Field(0, serialization_alias="chatId")
    since_id: Optional[int] = Field(None, serialization_alias="sinceId")
    can_reply: bool = Field(False, serialization_alias="canReply")

    @classmethod
    def denied(cls) -> "AmpChatResponse":
        return cls(items=[], chat_id=0, can_reply=False)


class ReplyResponse(BaseModel):
    """Result of an inline reply submission."""
    success: bool = Field(..., description="Whether the reply was sent")
    message: str = Field(..., description="Human-readable outcome")
