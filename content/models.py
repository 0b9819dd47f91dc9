# content/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, Text, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional
from utils import new_id

class Story(Base):
    """Authored content; created as a draft, then published or archived by its owner."""
    __tablename__ = "stories"

    id: str = Column(String(36), primary_key=True, default=new_id)
    author_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title: str = Column(String, nullable=False)
    body: str = Column(Text, nullable=False)
    status: str = Column(String, nullable=False, default="draft", index=True)  # draft, published, archived
    category: Optional[str] = Column(String, nullable=True, index=True)
    tags: list = Column(JSON, nullable=False, default=list)
    view_count: int = Column(Integer, nullable=False, default=0)
    published_at: Optional[datetime] = Column(DateTime, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")
    media = relationship("Media", order_by="Media.order_index")

class Media(Base):
    """Ordered attachment of a story, stored in the blob store."""
    __tablename__ = "media"

    id: str = Column(String(36), primary_key=True, default=new_id)
    story_id: str = Column(String(36), ForeignKey("stories.id"), nullable=False, index=True)
    kind: str = Column(String, nullable=False)  # image, audio, video
    url: str = Column(String, nullable=False)
    order_index: int = Column(Integer, nullable=False, default=0)
    provider_metadata: dict = Column(JSON, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Comment(Base):
    """Represents a user comment on a story, optionally replying to a top-level comment."""
    __tablename__ = "comments"

    id: str = Column(String(36), primary_key=True, default=new_id)
    story_id: str = Column(String(36), ForeignKey("stories.id"), nullable=False, index=True)
    author_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    parent_id: Optional[str] = Column(String(36), ForeignKey("comments.id"), nullable=True, index=True)
    body: str = Column(Text, nullable=False)
    is_edited: bool = Column(Boolean, nullable=False, default=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")

class Like(Base):
    __tablename__ = "likes"

    id: str = Column(String(36), primary_key=True, default=new_id)
    story_id: str = Column(String(36), ForeignKey("stories.id"), nullable=False, index=True)
    user_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (UniqueConstraint('story_id', 'user_id', name='unique_story_user_like'),)
