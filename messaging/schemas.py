# messaging/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from auth.schemas import UserSummary
from responses import APIModel

class ConversationCreate(APIModel):
    """Schema for starting a conversation."""
    participant_ids: List[str] = Field(min_length=1)
    initial_message: Optional[str] = None
    is_group_chat: bool = False
    name: Optional[str] = None

class MessageCreate(APIModel):
    content: str

class ParticipantAdd(APIModel):
    participant_id: str

class PageRequest(BaseModel):
    page: int = 1
    limit: int = 10

class ConversationResponse(APIModel):
    id: str
    is_group_chat: bool = Field(validation_alias="is_group", serialization_alias="isGroupChat")
    name: Optional[str]
    last_message_at: datetime
    created_at: datetime

class ParticipantResponse(APIModel):
    id: str
    conversation_id: str
    user_id: str
    is_admin: bool
    last_read_message_id: Optional[str] = None
    created_at: datetime

class MessageResponse(APIModel):
    id: str
    conversation_id: str
    sender_id: str
    sender: Optional[UserSummary] = None
    content: str = Field(validation_alias="body", serialization_alias="content")
    read_by: List[str]
    created_at: datetime

class ParticipantSummary(APIModel):
    id: str
    username: str
    is_admin: bool

class LatestMessage(APIModel):
    id: str
    content: str
    created_at: datetime
    sender: UserSummary

class ConversationSummary(APIModel):
    """Entry of a user's conversation list."""
    id: str
    name: Optional[str]
    is_group_chat: bool
    last_message_at: datetime
    created_at: datetime
    participants: List[ParticipantSummary]
    latest_message: Optional[LatestMessage] = None
    unread_count: int = 0
