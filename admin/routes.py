# admin/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from admin.services import AdminService
from auth.models import User
from auth.routes import check_admin_role
from config import settings
from database import get_db
from responses import envelope

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/users")
def get_users(
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(check_admin_role)
):
    """Retrieve users, optionally filtered by username or email."""
    return envelope("Users retrieved successfully", AdminService.list_users(page, limit, search, db))

@router.post("/users/{user_id}/block")
def block_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    return envelope("User blocked successfully", AdminService.block_user(current_user.id, user_id, db))

@router.post("/users/{user_id}/unblock")
def unblock_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    return envelope("User unblocked successfully", AdminService.unblock_user(current_user.id, user_id, db))

@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    """Delete a user and all their content."""
    AdminService.delete_user(current_user.id, user_id, db)
    return envelope("User deleted successfully")

@router.delete("/stories/{story_id}")
def delete_story(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    AdminService.delete_story(current_user.id, story_id, db)
    return envelope("Story deleted successfully")

@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    AdminService.delete_comment(current_user.id, comment_id, db)
    return envelope("Comment deleted successfully")

@router.delete("/messages/{message_id}")
def delete_message(message_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    AdminService.delete_message(current_user.id, message_id, db)
    return envelope("Message deleted successfully")

@router.delete("/conversations/{conversation_id}")
def delete_conversation(conversation_id: str, db: Session = Depends(get_db), current_user: User = Depends(check_admin_role)):
    AdminService.delete_conversation(current_user.id, conversation_id, db)
    return envelope("Conversation deleted successfully")

@router.get("/logs")
def get_admin_logs(
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_user: User = Depends(check_admin_role)
):
    """Retrieve admin action logs, newest first."""
    return envelope("Admin logs retrieved successfully", AdminService.get_logs(page, limit, db))
