# feed/schemas.py
from typing import Literal
from content.schemas import StoryDetail
from responses import APIModel

class FeedRequest(APIModel):
    page: int = 1
    limit: int = 10
    sort_by: Literal["createdAt", "likesCount", "likeCount"] = "createdAt"
    sort_order: Literal["ASC", "DESC", "asc", "desc"] = "DESC"

class DiscoverRequest(APIModel):
    page: int = 1
    limit: int = 10

class FeedStory(StoryDetail):
    """Story as shown in a feed, with its relative age."""
    time_ago: str
