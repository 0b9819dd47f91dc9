# messaging/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from auth.models import User
from auth.routes import get_current_user
from config import settings
from database import get_db
from messaging.schemas import ConversationCreate, ConversationResponse, MessageCreate, ParticipantAdd, PageRequest
from messaging.services import ConversationService, MessagingService
from responses import envelope

router = APIRouter(prefix="/conversations", tags=["messaging"])

@router.post("")
async def create_conversation(
    request: ConversationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Start a conversation; an existing direct chat with the same user is reused."""
    conversation, created = ConversationService.create_conversation(
        current_user.id,
        request.participant_ids,
        initial_message=request.initial_message,
        is_group=request.is_group_chat,
        name=request.name,
        db=db,
    )
    data = ConversationResponse.model_validate(conversation)
    if not created:
        return envelope("Existing conversation found", data)
    return envelope("Conversation created successfully", data, 201)

@router.get("")
async def list_conversations(
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = ConversationService.list_conversations(current_user.id, page, limit, db)
    return envelope("Conversations retrieved successfully", result)

@router.post("/list")
async def list_conversations_paged(
    request: PageRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Same as GET /conversations with pagination in the body."""
    result = ConversationService.list_conversations(current_user.id, request.page, request.limit, db)
    return envelope("Conversations retrieved successfully", result)

@router.post("/{conversation_id}/messages")
async def send_message(
    conversation_id: str,
    request: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = MessagingService.send_message(conversation_id, current_user.id, request.content, db)
    return envelope("Message sent successfully", message, 201)

@router.get("/{conversation_id}/messages")
async def get_messages(
    conversation_id: str,
    page: int = 1,
    limit: int = settings.DEFAULT_MESSAGE_PAGE_SIZE,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Newest messages first; fetching marks them as read."""
    result = MessagingService.get_messages(conversation_id, current_user.id, page, limit, db)
    return envelope("Messages retrieved successfully", result)

@router.post("/{conversation_id}/participants")
async def add_participant(
    conversation_id: str,
    request: ParticipantAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    participant = ConversationService.add_participant(conversation_id, current_user.id, request.participant_id, db)
    return envelope("Participant added successfully", participant, 201)

@router.delete("/{conversation_id}/participants/{participant_id}")
async def remove_participant(
    conversation_id: str,
    participant_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    ConversationService.remove_participant(conversation_id, current_user.id, participant_id, db)
    return envelope("Participant removed successfully")

@router.delete("/{conversation_id}/leave")
async def leave_conversation(conversation_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ConversationService.leave_conversation(conversation_id, current_user.id, db)
    return envelope("Left conversation successfully")

@router.delete("/{conversation_id}")
async def delete_conversation(conversation_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ConversationService.delete_conversation(conversation_id, current_user.id, db)
    return envelope("Conversation deleted successfully")
