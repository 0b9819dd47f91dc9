# messaging/models.py
from sqlalchemy import Column, String, ForeignKey, Text, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional
from utils import new_id

class Conversation(Base):
    """A direct (two users) or group chat."""
    __tablename__ = "conversations"

    id: str = Column(String(36), primary_key=True, default=new_id)
    is_group: bool = Column(Boolean, nullable=False, default=False)
    name: Optional[str] = Column(String, nullable=True)  # required for groups
    # "<smaller id>:<larger id>" for two-person direct chats, NULL otherwise
    direct_key: Optional[str] = Column(String(80), unique=True, nullable=True)
    last_message_at: datetime = Column(DateTime, default=datetime.utcnow, index=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Message(Base):
    """Immutable chat message; only read_by grows after creation."""
    __tablename__ = "messages"

    id: str = Column(String(36), primary_key=True, default=new_id)
    conversation_id: str = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    body: str = Column(Text, nullable=False)
    read_by: list = Column(JSON, nullable=False, default=list)
    created_at: datetime = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sender = relationship("User")

class ConversationParticipant(Base):
    __tablename__ = "conversation_participants"

    id: str = Column(String(36), primary_key=True, default=new_id)
    conversation_id: str = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    user_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    is_admin: bool = Column(Boolean, nullable=False, default=False)
    last_read_message_id: Optional[str] = Column(
        String(36), ForeignKey("messages.id", ondelete="SET NULL"), nullable=True
    )
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")

    __table_args__ = (UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),)
