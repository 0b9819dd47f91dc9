# feed/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from auth.models import User
from auth.routes import get_current_user
from database import get_db
from feed.schemas import FeedRequest, DiscoverRequest
from feed.services import FeedService
from responses import envelope

router = APIRouter(prefix="/feed", tags=["feed"])

@router.post("/getFeed")
async def get_feed(
    request: FeedRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Stories from the user and their friends."""
    result = FeedService.get_friends_feed(
        current_user.id, request.page, request.limit, request.sort_by, request.sort_order, db
    )
    return envelope("Feed retrieved successfully", result)

@router.post("/getDiscover")
async def get_discover(
    request: DiscoverRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Trending stories of the last week."""
    result = FeedService.get_discover_feed(current_user.id, request.page, request.limit, db)
    return envelope("Discover feed retrieved successfully", result)
