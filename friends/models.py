# friends/models.py
from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint
from database import Base
from datetime import datetime
from utils import new_id

class Friendship(Base):
    """Edge between two users; user_id sent the request, friend_id received it.

    One row per unordered pair. An accepted row makes both users friends.
    """
    __tablename__ = "friendships"

    id: str = Column(String(36), primary_key=True, default=new_id)
    user_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    friend_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status: str = Column(String, nullable=False, default="pending")  # pending, accepted, blocked
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (UniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),)
