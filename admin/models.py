# admin/models.py
from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional
from utils import new_id

class AdminActionLog(Base):
    """Represents a log of admin actions."""
    __tablename__ = "admin_action_logs"

    id: str = Column(String(36), primary_key=True, default=new_id)
    admin_id: str = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    action: str = Column(String, nullable=False)  # e.g. block_user, delete_story
    # not a foreign key, the target is usually gone after a delete
    target_id: Optional[str] = Column(String(36), nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    admin = relationship("User")
