# auth/models.py
from sqlalchemy import Column, String, Boolean, DateTime
from database import Base
from datetime import datetime
from typing import Optional
from utils import new_id

class User(Base):
    """Represents a user in the system."""
    __tablename__ = "users"

    id: str = Column(String(36), primary_key=True, default=new_id)
    username: str = Column(String, unique=True, index=True, nullable=False)
    email: str = Column(String, unique=True, index=True, nullable=False)
    password_hash: str = Column(String, nullable=False)
    role: str = Column(String, nullable=False, default="user")  # user, admin
    is_blocked: bool = Column(Boolean, nullable=False, default=False)
    last_login: Optional[datetime] = Column(DateTime, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)
    updated_at: datetime = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
