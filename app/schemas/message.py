from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatFrame(BaseModel):
    """Inbound frame on the live channel (client -> server)."""

    type: Literal["chat"]
    receiver_id: int = Field(alias="receiverId")
    content: str

    model_config = {"populate_by_name": True}


class ChatEvent(BaseModel):
    """Outbound frame pushed to the recipient's live channel."""

    type: Literal["chat"] = "chat"
    id: int
    sender_id: int = Field(serialization_alias="senderId")
    receiver_id: int = Field(serialization_alias="receiverId")
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
