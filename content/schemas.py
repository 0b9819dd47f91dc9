# content/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal
from auth.schemas import UserSummary
from responses import APIModel

StoryStatus = Literal["draft", "published", "archived"]

class StoryCreate(APIModel):
    """Schema for creating a story."""
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    category: Optional[str] = None
    tags: List[str] = []

class StoryUpdate(APIModel):
    """Partial update; only the fields sent are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    body: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[StoryStatus] = None

class StoryListRequest(BaseModel):
    page: int = 1
    limit: int = 10
    status: Optional[StoryStatus] = None
    category: Optional[str] = None
    search: Optional[str] = None
    mine: bool = False

class MediaResponse(APIModel):
    id: str
    story_id: str
    kind: str
    url: str
    order_index: int
    provider_metadata: Optional[dict] = None
    created_at: datetime

class StoryResponse(APIModel):
    """Schema for story response."""
    id: str
    author_id: str
    title: str
    body: str
    status: str
    category: Optional[str]
    tags: List[str]
    view_count: int
    published_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    author: Optional[UserSummary] = None
    media: List[MediaResponse] = []

class StoryDetail(StoryResponse):
    """Story with engagement metadata for the requesting user."""
    like_count: int = 0
    comment_count: int = 0
    user_liked: bool = False

class CommentCreate(APIModel):
    """Schema for creating a comment."""
    content: str = Field(min_length=1)
    parent_id: Optional[str] = None

class CommentUpdate(APIModel):
    content: str = Field(min_length=1)

class CommentResponse(APIModel):
    id: str
    story_id: str
    author: UserSummary
    parent_id: Optional[str]
    body: str
    is_edited: bool
    created_at: datetime
    replies: List["CommentResponse"] = []

class LikeResponse(APIModel):
    story_id: str
    like_count: int
    user_liked: bool
