# admin/services.py
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from admin.models import AdminActionLog
from admin.schemas import AdminActionLogResponse
from auth.models import User
from auth.schemas import UserResponse
from content.models import Comment, Like, Story
from content.services import purge_comment, purge_stories
from database import atomic
from errors import Forbidden, InvalidOperation, NotFound
from friends.models import Friendship
from messaging.models import ConversationParticipant, Message
from messaging.services import ConversationService, purge_conversation
from utils import check_pagination, pagination

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _clear_read_cursors(message_ids, db: Session) -> None:
    db.query(ConversationParticipant).filter(
        ConversationParticipant.last_read_message_id.in_(message_ids)
    ).update({ConversationParticipant.last_read_message_id: None}, synchronize_session=False)


class AdminService:
    """Moderation actions. Every action is recorded in the admin action log."""

    @staticmethod
    def _log(admin_id: str, action: str, target_id: Optional[str], db: Session) -> None:
        db.add(AdminActionLog(admin_id=admin_id, action=action, target_id=target_id))

    @staticmethod
    def _get_user(user_id: str, db: Session) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def list_users(page: int, limit: int, search: Optional[str], db: Session) -> dict:
        offset, limit = check_pagination(page, limit)
        query = db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))
        total = query.count()
        users = query.order_by(User.created_at.desc(), User.id.asc()).offset(offset).limit(limit).all()
        return {
            "users": [UserResponse.model_validate(u) for u in users],
            "pagination": pagination(total, page, limit),
        }

    @staticmethod
    def _set_blocked(admin_id: str, user_id: str, blocked: bool, db: Session) -> UserResponse:
        user = AdminService._get_user(user_id, db)
        if user.role == "admin":
            raise Forbidden("Admin accounts cannot be blocked")
        if user.is_blocked == blocked:
            raise InvalidOperation("User is already blocked" if blocked else "User is not blocked")
        action = "block_user" if blocked else "unblock_user"
        with atomic(db, action, admin_id):
            user.is_blocked = blocked
            AdminService._log(admin_id, action, user_id, db)
        db.refresh(user)
        logger.info(f"Admin {admin_id}: {action} {user_id}")
        return UserResponse.model_validate(user)

    @staticmethod
    def block_user(admin_id: str, user_id: str, db: Session) -> UserResponse:
        return AdminService._set_blocked(admin_id, user_id, True, db)

    @staticmethod
    def unblock_user(admin_id: str, user_id: str, db: Session) -> UserResponse:
        return AdminService._set_blocked(admin_id, user_id, False, db)

    @staticmethod
    def delete_user(admin_id: str, user_id: str, db: Session) -> None:
        """Delete a user together with everything they own, in one transaction."""
        user = AdminService._get_user(user_id, db)
        if user.role == "admin":
            raise Forbidden("Admin accounts cannot be deleted")

        with atomic(db, "delete user", admin_id):
            db.query(Like).filter(Like.user_id == user_id).delete(synchronize_session=False)

            comment_ids = [row[0] for row in db.query(Comment.id).filter(Comment.author_id == user_id).all()]
            if comment_ids:
                db.query(Comment).filter(Comment.parent_id.in_(comment_ids)).delete(synchronize_session=False)
                db.query(Comment).filter(Comment.id.in_(comment_ids)).delete(synchronize_session=False)

            story_ids = [row[0] for row in db.query(Story.id).filter(Story.author_id == user_id).all()]
            purge_stories(story_ids, db)

            db.query(Friendship).filter(
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
            ).delete(synchronize_session=False)

            db.query(ConversationParticipant).filter(
                ConversationParticipant.user_id == user_id
            ).delete(synchronize_session=False)
            message_ids = [row[0] for row in db.query(Message.id).filter(Message.sender_id == user_id).all()]
            if message_ids:
                _clear_read_cursors(message_ids, db)
                db.query(Message).filter(Message.id.in_(message_ids)).delete(synchronize_session=False)

            db.delete(user)
            AdminService._log(admin_id, "delete_user", user_id, db)
        logger.info(f"Admin {admin_id} deleted user {user_id}: {len(story_ids)} stories removed")

    @staticmethod
    def delete_story(admin_id: str, story_id: str, db: Session) -> None:
        if not db.get(Story, story_id):
            raise NotFound("Story not found")
        with atomic(db, "delete story", admin_id):
            purge_stories([story_id], db)
            AdminService._log(admin_id, "delete_story", story_id, db)

    @staticmethod
    def delete_comment(admin_id: str, comment_id: str, db: Session) -> None:
        comment = db.get(Comment, comment_id)
        if not comment:
            raise NotFound("Comment not found")
        with atomic(db, "delete comment", admin_id):
            purge_comment(comment, db)
            AdminService._log(admin_id, "delete_comment", comment_id, db)

    @staticmethod
    def delete_message(admin_id: str, message_id: str, db: Session) -> None:
        message = db.get(Message, message_id)
        if not message:
            raise NotFound("Message not found")
        with atomic(db, "delete message", admin_id):
            _clear_read_cursors([message_id], db)
            db.delete(message)
            AdminService._log(admin_id, "delete_message", message_id, db)

    @staticmethod
    def delete_conversation(admin_id: str, conversation_id: str, db: Session) -> None:
        """Delete any conversation; admins need not be a participant."""
        conversation = ConversationService.get_conversation(conversation_id, db)
        with atomic(db, "delete conversation", admin_id):
            purge_conversation(conversation, db)
            AdminService._log(admin_id, "delete_conversation", conversation_id, db)

    @staticmethod
    def get_logs(page: int, limit: int, db: Session) -> dict:
        offset, limit = check_pagination(page, limit)
        query = db.query(AdminActionLog)
        total = query.count()
        logs = (query.order_by(AdminActionLog.created_at.desc(), AdminActionLog.id.asc())
                .offset(offset).limit(limit).all())
        return {
            "logs": [AdminActionLogResponse.model_validate(log) for log in logs],
            "pagination": pagination(total, page, limit),
        }
