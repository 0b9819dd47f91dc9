# content/services.py
import logging
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, List, Iterable
from content.models import Story, Media, Comment, Like
from content.schemas import (
    StoryCreate, StoryUpdate, StoryListRequest, StoryDetail, StoryResponse,
    CommentCreate, CommentResponse, MediaResponse, LikeResponse,
)
from content.storage import BlobStorage
from config import settings
from database import atomic
from errors import Conflict, Forbidden, Internal, InvalidInput, InvalidOperation, NotFound
from utils import check_pagination, pagination

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def like_count(story_id: str, db: Session) -> int:
    return db.query(func.count(Like.id)).filter(Like.story_id == story_id).scalar()

def purge_stories(story_ids: Iterable[str], db: Session) -> int:
    """Delete stories with their likes, comments and media. Caller owns the transaction."""
    story_ids = list(story_ids)
    if not story_ids:
        return 0
    db.query(Like).filter(Like.story_id.in_(story_ids)).delete(synchronize_session=False)
    # replies first, parent_id references comments.id
    db.query(Comment).filter(Comment.story_id.in_(story_ids), Comment.parent_id.isnot(None)).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.story_id.in_(story_ids)).delete(synchronize_session=False)
    db.query(Media).filter(Media.story_id.in_(story_ids)).delete(synchronize_session=False)
    return db.query(Story).filter(Story.id.in_(story_ids)).delete(synchronize_session=False)

def purge_comment(comment: Comment, db: Session) -> None:
    """Delete a comment and its direct replies. Caller owns the transaction."""
    db.query(Comment).filter(Comment.parent_id == comment.id).delete(synchronize_session=False)
    db.delete(comment)

class StoryService:
    @staticmethod
    def _get_story(story_id: str, db: Session) -> Story:
        story = db.get(Story, story_id)
        if not story:
            raise NotFound("Story not found")
        return story

    @staticmethod
    def _get_visible_story(story_id: str, user_id: str, db: Session) -> Story:
        """Drafts and archived stories exist only for their author."""
        story = StoryService._get_story(story_id, db)
        if story.status != "published" and story.author_id != user_id:
            raise NotFound("Story not found")
        return story

    @staticmethod
    def _get_owned_story(story_id: str, user_id: str, db: Session) -> Story:
        story = StoryService._get_story(story_id, db)
        if story.author_id != user_id:
            raise Forbidden("Only the author can modify this story")
        return story

    @staticmethod
    def to_detail(story: Story, user_id: str, db: Session) -> StoryDetail:
        comment_count = db.query(func.count(Comment.id)).filter(Comment.story_id == story.id).scalar()
        user_liked = db.query(Like.id).filter(Like.story_id == story.id, Like.user_id == user_id).first() is not None
        return StoryDetail.model_validate(story).model_copy(update={
            "like_count": like_count(story.id, db),
            "comment_count": comment_count,
            "user_liked": user_liked,
        })

    @staticmethod
    def create_story(story_data: StoryCreate, user_id: str, db: Session) -> StoryResponse:
        """Create a new draft story."""
        story = Story(
            author_id=user_id,
            title=story_data.title,
            body=story_data.body,
            category=story_data.category,
            tags=list(story_data.tags),
            status="draft",
        )
        with atomic(db, "create story", user_id):
            db.add(story)
        db.refresh(story)
        return StoryResponse.model_validate(story)

    @staticmethod
    def get_story(story_id: str, user_id: str, db: Session) -> StoryDetail:
        """Retrieve a story; drafts and archived stories are visible to their author only."""
        story = StoryService._get_visible_story(story_id, user_id, db)
        if story.author_id != user_id:
            with atomic(db, "record story view", user_id):
                story.view_count = (story.view_count or 0) + 1
            db.refresh(story)
        return StoryService.to_detail(story, user_id, db)

    @staticmethod
    def update_story(story_id: str, user_id: str, story_data: StoryUpdate, db: Session) -> StoryDetail:
        """Update a story owned by the user."""
        story = StoryService._get_owned_story(story_id, user_id, db)
        changes = story_data.model_dump(exclude_unset=True, exclude_none=True)
        new_status = changes.get("status")
        if new_status == "draft" and story.status != "draft":
            raise InvalidOperation("A published or archived story cannot return to draft")
        with atomic(db, "update story", user_id):
            for field, value in changes.items():
                setattr(story, field, value)
            if new_status == "published" and story.published_at is None:
                story.published_at = datetime.utcnow()
        db.refresh(story)
        return StoryService.to_detail(story, user_id, db)

    @staticmethod
    def delete_story(story_id: str, user_id: str, db: Session) -> None:
        """Delete a story with its media, comments and likes."""
        StoryService._get_owned_story(story_id, user_id, db)
        with atomic(db, "delete story", user_id):
            purge_stories([story_id], db)
        logger.info(f"User {user_id} deleted story {story_id}")

    @staticmethod
    def list_stories(user_id: str, filters: StoryListRequest, db: Session) -> dict:
        """List stories with optional filters, newest first."""
        offset, limit = check_pagination(filters.page, filters.limit)
        query = db.query(Story)
        if filters.mine:
            query = query.filter(Story.author_id == user_id)
            if filters.status:
                query = query.filter(Story.status == filters.status)
        else:
            query = query.filter(Story.status == "published")
        if filters.category:
            query = query.filter(Story.category == filters.category)
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(or_(Story.title.ilike(pattern), Story.body.ilike(pattern)))
        total = query.count()
        stories = query.order_by(Story.created_at.desc(), Story.id.asc()).offset(offset).limit(limit).all()
        return {
            "stories": [StoryResponse.model_validate(s) for s in stories],
            "pagination": pagination(total, filters.page, limit),
        }

class LikeService:
    @staticmethod
    def like_story(story_id: str, user_id: str, db: Session) -> LikeResponse:
        """Like a story once per user."""
        StoryService._get_visible_story(story_id, user_id, db)
        if db.query(Like).filter(Like.story_id == story_id, Like.user_id == user_id).first():
            raise Conflict("You have already liked this story")
        db.add(Like(story_id=story_id, user_id=user_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("You have already liked this story")
        return LikeResponse(story_id=story_id, like_count=like_count(story_id, db), user_liked=True)

    @staticmethod
    def unlike_story(story_id: str, user_id: str, db: Session) -> LikeResponse:
        StoryService._get_visible_story(story_id, user_id, db)
        like = db.query(Like).filter(Like.story_id == story_id, Like.user_id == user_id).first()
        if not like:
            raise NotFound("You have not liked this story")
        with atomic(db, "unlike story", user_id):
            db.delete(like)
        return LikeResponse(story_id=story_id, like_count=like_count(story_id, db), user_liked=False)

class CommentService:
    @staticmethod
    def _to_response(comment: Comment, replies: Optional[List[Comment]] = None) -> CommentResponse:
        response = CommentResponse.model_validate(comment)
        if replies:
            response = response.model_copy(update={"replies": [CommentResponse.model_validate(r) for r in replies]})
        return response

    @staticmethod
    def create_comment(story_id: str, comment_data: CommentCreate, user_id: str, db: Session) -> CommentResponse:
        """Create a comment, or a reply to a top-level comment of the same story."""
        story = StoryService._get_visible_story(story_id, user_id, db)
        content = comment_data.content.strip()
        if not content:
            raise InvalidInput("Comment content cannot be empty")
        if comment_data.parent_id:
            parent = db.get(Comment, comment_data.parent_id)
            if not parent or parent.story_id != story_id:
                raise InvalidInput("Parent comment does not belong to this story")
            if parent.parent_id is not None:
                raise InvalidInput("Replies can only be made to top-level comments")
        comment = Comment(story_id=story_id, author_id=user_id, parent_id=comment_data.parent_id, body=content)
        with atomic(db, "create comment", user_id):
            db.add(comment)
        db.refresh(comment)
        return CommentService._to_response(comment)

    @staticmethod
    def get_comments(story_id: str, user_id: str, db: Session) -> List[CommentResponse]:
        """Top-level comments, oldest first, each with its replies."""
        StoryService._get_visible_story(story_id, user_id, db)
        comments = (db.query(Comment)
                    .filter(Comment.story_id == story_id)
                    .order_by(Comment.created_at.asc(), Comment.id.asc())
                    .all())
        replies = {}
        for comment in comments:
            if comment.parent_id:
                replies.setdefault(comment.parent_id, []).append(comment)
        return [CommentService._to_response(c, replies.get(c.id)) for c in comments if c.parent_id is None]

    @staticmethod
    def update_comment(comment_id: str, content: str, user_id: str, db: Session) -> CommentResponse:
        comment = db.get(Comment, comment_id)
        if not comment:
            raise NotFound("Comment not found")
        if comment.author_id != user_id:
            raise Forbidden("Only the author can edit this comment")
        content = content.strip()
        if not content:
            raise InvalidInput("Comment content cannot be empty")
        with atomic(db, "update comment", user_id):
            comment.body = content
            comment.is_edited = True
        db.refresh(comment)
        return CommentService._to_response(comment)

    @staticmethod
    def delete_comment(comment_id: str, user_id: str, db: Session) -> None:
        """Delete a comment and its replies; allowed for its author and the story owner."""
        comment = db.get(Comment, comment_id)
        if not comment:
            raise NotFound("Comment not found")
        story = db.get(Story, comment.story_id)
        if comment.author_id != user_id and (story is None or story.author_id != user_id):
            raise Forbidden("Not allowed to delete this comment")
        with atomic(db, "delete comment", user_id):
            purge_comment(comment, db)

class MediaService:
    @staticmethod
    def _check_upload(kind: str, content_type: Optional[str], size: int) -> None:
        allowed = settings.ALLOWED_MEDIA_TYPES.get(kind)
        if allowed is None:
            raise InvalidInput("Invalid media kind")
        if content_type not in allowed:
            raise InvalidInput(f"Unsupported content type for {kind}: {content_type}")
        if size == 0:
            raise InvalidInput("Media file is empty")
        if size > settings.MAX_MEDIA_SIZE:
            raise InvalidInput("Media file is too large")

    @staticmethod
    def attach_media(
            story_id: str,
            user_id: str,
            kind: str,
            filename: str,
            content_type: Optional[str],
            data: bytes,
            db: Session,
            storage: Optional[BlobStorage] = None,
    ) -> MediaResponse:
        """Upload a file to the blob store and append it to the story's media."""
        StoryService._get_owned_story(story_id, user_id, db)
        MediaService._check_upload(kind, content_type, len(data))

        storage = storage or BlobStorage()
        key = storage.object_key(story_id, filename)
        url = storage.upload(key, data, content_type)

        next_index = db.query(func.coalesce(func.max(Media.order_index) + 1, 0)).filter(Media.story_id == story_id).scalar()
        media = Media(
            story_id=story_id,
            kind=kind,
            url=url,
            order_index=next_index,
            provider_metadata={"key": key, "contentType": content_type, "bytes": len(data), "filename": filename},
        )
        try:
            with atomic(db, "attach media", user_id):
                db.add(media)
        except Exception:
            storage.delete(key)
            raise
        db.refresh(media)
        logger.info(f"Attached {kind} {media.id} to story {story_id}")
        return MediaResponse.model_validate(media)

    @staticmethod
    def delete_media(media_id: str, user_id: str, db: Session, storage: Optional[BlobStorage] = None) -> None:
        media = db.get(Media, media_id)
        if not media:
            raise NotFound("Media not found")
        StoryService._get_owned_story(media.story_id, user_id, db)
        storage = storage or BlobStorage()
        key = (media.provider_metadata or {}).get("key") or storage.key_from_url(media.url)
        with atomic(db, "delete media", user_id):
            db.delete(media)
        try:
            storage.delete(key)
        except Internal:
            logger.warning(f"Media {media_id} removed but blob {key} could not be deleted")

