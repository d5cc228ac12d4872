from enum import Enum

from pydantic import BaseModel, Field


class SwipeAction(str, Enum):
    LIKE = "like"
    PASS = "pass"


class ConnectionDecision(BaseModel):
    sender_id: int = Field(alias="senderId")
    receiver_id: int = Field(alias="receiverId")
    action: SwipeAction

    model_config = {"populate_by_name": True}


class DecisionResult(BaseModel):
    success: bool = True
    matched: bool
