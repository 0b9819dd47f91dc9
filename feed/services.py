# feed/services.py
import logging
from datetime import datetime, timedelta
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import settings
from content.models import Comment, Like, Story
from content.schemas import StoryResponse
from feed.schemas import FeedStory
from friends.services import friend_ids
from utils import check_pagination, pagination, time_ago

logger = logging.getLogger(__name__)


def _like_count_column():
    return (select(func.count(Like.id))
            .where(Like.story_id == Story.id)
            .correlate(Story)
            .scalar_subquery())


def _comment_count_column():
    return (select(func.count(Comment.id))
            .where(Comment.story_id == Story.id)
            .correlate(Story)
            .scalar_subquery())


class FeedService:
    """Builds the friends feed and the discover feed."""

    @staticmethod
    def _annotate(rows, user_id: str, db: Session, now: datetime) -> List[FeedStory]:
        story_ids = [story.id for story, _, _ in rows]
        liked = set()
        if story_ids:
            liked = {row[0] for row in db.query(Like.story_id).filter(
                Like.story_id.in_(story_ids), Like.user_id == user_id
            ).all()}
        return [
            FeedStory(
                **dict(StoryResponse.model_validate(story)),
                like_count=likes or 0,
                comment_count=comments or 0,
                user_liked=story.id in liked,
                time_ago=time_ago(story.created_at, now),
            )
            for story, likes, comments in rows
        ]

    @staticmethod
    def get_friends_feed(
            user_id: str,
            page: int,
            limit: int,
            sort_by: str = "createdAt",
            sort_order: str = "DESC",
            db: Session = None,
    ) -> dict:
        """Published stories by the user and their accepted friends."""
        offset, limit = check_pagination(page, limit)
        authors = set(friend_ids(user_id, db))
        authors.add(user_id)

        likes = _like_count_column()
        comments = _comment_count_column()
        filters = (Story.author_id.in_(list(authors)), Story.status == "published")

        primary = likes if sort_by in ("likesCount", "likeCount") else Story.created_at
        primary = primary.asc() if sort_order.upper() == "ASC" else primary.desc()

        total = db.query(func.count(Story.id)).filter(*filters).scalar()
        rows = (db.query(Story, likes.label("like_count"), comments.label("comment_count"))
                .filter(*filters)
                .order_by(primary, Story.id.asc())
                .offset(offset).limit(limit).all())
        logger.info(f"Friends feed for {user_id}: {len(authors)} authors, {total} stories")
        return {
            "stories": FeedService._annotate(rows, user_id, db, datetime.utcnow()),
            "pagination": pagination(total, page, limit),
        }

    @staticmethod
    def get_discover_feed(user_id: str, page: int, limit: int, db: Session) -> dict:
        """Published stories of the last week ranked by likes plus comments."""
        offset, limit = check_pagination(page, limit)
        now = datetime.utcnow()
        since = now - timedelta(days=settings.DISCOVER_WINDOW_DAYS)

        likes = _like_count_column()
        comments = _comment_count_column()
        filters = (Story.status == "published", Story.created_at >= since)

        total = db.query(func.count(Story.id)).filter(*filters).scalar()
        rows = (db.query(Story, likes.label("like_count"), comments.label("comment_count"))
                .filter(*filters)
                .order_by((likes + comments).desc(), Story.id.asc())
                .offset(offset).limit(limit).all())
        return {
            "stories": FeedService._annotate(rows, user_id, db, now),
            "pagination": pagination(total, page, limit),
        }
