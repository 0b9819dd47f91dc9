# admin/schemas.py
from datetime import datetime
from typing import Optional
from responses import APIModel

class AdminActionLogResponse(APIModel):
    """Schema for admin action log response."""
    id: str
    admin_id: str
    action: str
    target_id: Optional[str]
    created_at: datetime
