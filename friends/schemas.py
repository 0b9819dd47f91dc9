# friends/schemas.py
from datetime import datetime
from auth.schemas import UserSummary
from responses import APIModel

class FriendRequestCreate(APIModel):
    friend_id: str

class FriendshipResponse(APIModel):
    id: str
    user_id: str
    friend_id: str
    status: str
    created_at: datetime

class PendingRequest(APIModel):
    id: str
    requester: UserSummary
    created_at: datetime
