# content/routes.py
from fastapi import APIRouter, Depends, UploadFile, File, Form
from sqlalchemy.orm import Session
from content.services import StoryService, LikeService, CommentService, MediaService
from content.schemas import StoryCreate, StoryUpdate, StoryListRequest, CommentCreate, CommentUpdate
from auth.routes import get_current_user
from auth.models import User
from database import get_db
from responses import envelope

router = APIRouter(tags=["content"])

@router.post("/stories")
async def create_story(
    story_data: StoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a draft story."""
    story = StoryService.create_story(story_data, current_user.id, db)
    return envelope("Story created successfully", story, 201)

@router.post("/stories/list")
async def list_stories(
    filters: StoryListRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List published stories, or the caller's own with mine=true."""
    return envelope("Stories retrieved successfully", StoryService.list_stories(current_user.id, filters, db))

@router.get("/stories/{story_id}")
async def get_story(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Retrieve a story by ID."""
    return envelope("Story retrieved successfully", StoryService.get_story(story_id, current_user.id, db))

@router.patch("/stories/{story_id}")
async def update_story(
    story_id: str,
    story_data: StoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a story, including publishing or archiving it."""
    story = StoryService.update_story(story_id, current_user.id, story_data, db)
    return envelope("Story updated successfully", story)

@router.delete("/stories/{story_id}")
async def delete_story(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    StoryService.delete_story(story_id, current_user.id, db)
    return envelope("Story deleted successfully")

@router.post("/stories/{story_id}/like")
async def like_story(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Like a story."""
    return envelope("Story liked", LikeService.like_story(story_id, current_user.id, db), 201)

@router.delete("/stories/{story_id}/like")
async def unlike_story(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return envelope("Story unliked", LikeService.unlike_story(story_id, current_user.id, db))

@router.post("/stories/{story_id}/comments")
async def create_comment(
    story_id: str,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a comment on a story."""
    comment = CommentService.create_comment(story_id, comment_data, current_user.id, db)
    return envelope("Comment added successfully", comment, 201)

@router.get("/stories/{story_id}/comments")
async def get_comments(story_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Retrieve comments for a story."""
    return envelope("Comments retrieved successfully", CommentService.get_comments(story_id, current_user.id, db))

@router.patch("/comments/{comment_id}")
async def update_comment(
    comment_id: str,
    comment_data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a comment."""
    comment = CommentService.update_comment(comment_id, comment_data.content, current_user.id, db)
    return envelope("Comment updated successfully", comment)

@router.delete("/comments/{comment_id}")
async def delete_comment(comment_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Delete a comment."""
    CommentService.delete_comment(comment_id, current_user.id, db)
    return envelope("Comment deleted successfully")

@router.post("/stories/{story_id}/media")
async def upload_media(
    story_id: str,
    file: UploadFile = File(...),
    kind: str = Form("image"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Attach an uploaded file to a story."""
    data = await file.read()
    media = MediaService.attach_media(
        story_id=story_id,
        user_id=current_user.id,
        kind=kind,
        filename=file.filename or "upload",
        content_type=file.content_type,
        data=data,
        db=db,
    )
    return envelope("Media uploaded successfully", media, 201)

@router.delete("/media/{media_id}")
async def delete_media(media_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    MediaService.delete_media(media_id, current_user.id, db)
    return envelope("Media deleted successfully")
