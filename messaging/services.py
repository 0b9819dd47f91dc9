# messaging/services.py
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.models import User
from auth.schemas import UserSummary
from database import atomic
from errors import Conflict, Forbidden, Internal, InvalidInput, InvalidOperation, NotFound
from messaging.models import Conversation, ConversationParticipant, Message
from messaging.schemas import (
    ConversationSummary, LatestMessage, MessageResponse, ParticipantResponse, ParticipantSummary,
)
from utils import check_pagination, pagination

logger = logging.getLogger(__name__)


def direct_key(user_a: str, user_b: str) -> str:
    return ":".join(sorted((user_a, user_b)))


def purge_conversation(conversation: Conversation, db: Session) -> None:
    """Delete a conversation with its participants and messages. Caller owns the transaction."""
    # participants hold read cursors into messages, drop them first
    db.query(ConversationParticipant).filter(
        ConversationParticipant.conversation_id == conversation.id
    ).delete(synchronize_session=False)
    db.query(Message).filter(Message.conversation_id == conversation.id).delete(synchronize_session=False)
    db.delete(conversation)


class ConversationService:
    """Creates conversations, deduplicates direct chats and manages membership."""

    @staticmethod
    def get_conversation(conversation_id: str, db: Session) -> Conversation:
        conversation = db.get(Conversation, conversation_id)
        if not conversation:
            raise NotFound("Conversation not found")
        return conversation

    @staticmethod
    def get_participant(conversation_id: str, user_id: str, db: Session) -> Optional[ConversationParticipant]:
        return db.query(ConversationParticipant).filter(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
        ).first()

    @staticmethod
    def require_participant(conversation_id: str, user_id: str, db: Session) -> ConversationParticipant:
        participant = ConversationService.get_participant(conversation_id, user_id, db)
        if not participant:
            raise Forbidden("User is not a participant in this conversation")
        return participant

    @staticmethod
    def is_admin(conversation_id: str, user_id: str, db: Session) -> bool:
        participant = ConversationService.get_participant(conversation_id, user_id, db)
        return participant is not None and participant.is_admin

    @staticmethod
    def find_direct_conversation(user_a: str, user_b: str, db: Session) -> Optional[Conversation]:
        """Return the non-group conversation whose members are exactly the two users.

        The candidates are the intersection of both users' non-group
        conversations. More than one match is a data anomaly and is treated
        as not found.
        """
        def direct_ids(user_id: str) -> set:
            rows = (db.query(ConversationParticipant.conversation_id)
                    .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
                    .filter(ConversationParticipant.user_id == user_id, Conversation.is_group.is_(False))
                    .all())
            return {row[0] for row in rows}

        common = direct_ids(user_a) & direct_ids(user_b)
        if not common:
            return None

        # drop conversations that also contain someone else
        sizes = dict(db.query(ConversationParticipant.conversation_id, func.count(ConversationParticipant.id))
                     .filter(ConversationParticipant.conversation_id.in_(list(common)))
                     .group_by(ConversationParticipant.conversation_id)
                     .all())
        matches = [cid for cid in common if sizes.get(cid) == 2]
        if len(matches) > 1:
            logger.warning(f"Found {len(matches)} direct conversations between {user_a} and {user_b}: {sorted(matches)}")
            return None
        if not matches:
            return None
        return db.get(Conversation, matches[0])

    @staticmethod
    def _append_message(conversation: Conversation, sender_id: str, body: str, db: Session) -> Message:
        now = datetime.utcnow()
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            body=body,
            read_by=[sender_id],
            created_at=now,
        )
        db.add(message)
        conversation.last_message_at = now
        return message

    @staticmethod
    def create_conversation(
            requester_id: str,
            participant_ids: List[str],
            initial_message: Optional[str] = None,
            is_group: bool = False,
            name: Optional[str] = None,
            db: Session = None,
    ) -> Tuple[Conversation, bool]:
        """Create a conversation, or return the existing direct one.

        Returns the conversation and whether it was newly created.
        """
        if not requester_id or not participant_ids:
            raise InvalidInput("User ID and at least one participant ID are required")
        name = name.strip() if name else None
        if is_group and not name:
            raise InvalidInput("Group chats require a name")
        initial_message = initial_message.strip() if initial_message else None

        # keep order, drop duplicates
        members = list(dict.fromkeys(participant_ids))
        others = [uid for uid in members if uid != requester_id]
        if not is_group and not others:
            raise InvalidInput("A direct conversation needs another participant")
        found = {row[0] for row in db.query(User.id).filter(User.id.in_(members)).all()}
        missing = [uid for uid in members if uid not in found]
        if missing:
            raise NotFound(f"User not found: {missing[0]}")

        is_direct = not is_group and len(others) == 1
        if is_direct:
            existing = ConversationService.find_direct_conversation(requester_id, others[0], db)
            if existing:
                if initial_message:
                    with atomic(db, "send message", requester_id):
                        ConversationService._append_message(existing, requester_id, initial_message, db)
                    db.refresh(existing)
                return existing, False

        if requester_id not in members:
            members.append(requester_id)

        conversation = Conversation(
            is_group=is_group,
            name=name if is_group else None,
            direct_key=direct_key(requester_id, others[0]) if is_direct else None,
            last_message_at=datetime.utcnow(),
        )
        try:
            db.add(conversation)
            db.flush()
            for uid in members:
                db.add(ConversationParticipant(
                    conversation_id=conversation.id,
                    user_id=uid,
                    is_admin=(uid == requester_id),
                ))
            if initial_message:
                ConversationService._append_message(conversation, requester_id, initial_message, db)
            db.commit()
        except IntegrityError:
            db.rollback()
            if not is_direct:
                logger.error(f"Transaction failed: operation=create conversation actor={requester_id}", exc_info=True)
                raise Internal("Failed to create conversation")
            # lost a race against a concurrent creation of the same direct chat
            existing = db.query(Conversation).filter(
                Conversation.direct_key == direct_key(requester_id, others[0])
            ).first()
            if existing is None:
                raise Internal("Failed to create conversation")
            logger.info(f"Direct conversation {existing.id} created concurrently, reusing it")
            if initial_message:
                with atomic(db, "send message", requester_id):
                    ConversationService._append_message(existing, requester_id, initial_message, db)
                db.refresh(existing)
            return existing, False

        db.refresh(conversation)
        logger.info(f"User {requester_id} created conversation {conversation.id} with {len(members)} participants")
        return conversation, True

    @staticmethod
    def list_conversations(user_id: str, page: int, limit: int, db: Session) -> dict:
        """Conversations of a user, most recently active first."""
        offset, limit = check_pagination(page, limit)
        query = (db.query(Conversation)
                 .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
                 .filter(ConversationParticipant.user_id == user_id))
        total = query.count()
        conversations = (query.order_by(Conversation.last_message_at.desc(), Conversation.id.asc())
                         .offset(offset).limit(limit).all())
        return {
            "conversations": [ConversationService._summarize(c, user_id, db) for c in conversations],
            "pagination": pagination(total, page, limit),
        }

    @staticmethod
    def _summarize(conversation: Conversation, user_id: str, db: Session) -> ConversationSummary:
        members = (db.query(ConversationParticipant, User)
                   .join(User, User.id == ConversationParticipant.user_id)
                   .filter(ConversationParticipant.conversation_id == conversation.id)
                   .order_by(ConversationParticipant.created_at.asc(), User.username.asc())
                   .all())
        latest = (db.query(Message)
                  .filter(Message.conversation_id == conversation.id)
                  .order_by(Message.created_at.desc(), Message.id.desc())
                  .first())
        return ConversationSummary(
            id=conversation.id,
            name=conversation.name,
            is_group_chat=conversation.is_group,
            last_message_at=conversation.last_message_at,
            created_at=conversation.created_at,
            participants=[ParticipantSummary(id=u.id, username=u.username, is_admin=p.is_admin) for p, u in members],
            latest_message=LatestMessage(
                id=latest.id,
                content=latest.body,
                created_at=latest.created_at,
                sender=UserSummary.model_validate(latest.sender),
            ) if latest else None,
            unread_count=MessagingService.unread_count(conversation.id, user_id, db),
        )

    @staticmethod
    def add_participant(conversation_id: str, requester_id: str, new_participant_id: str, db: Session) -> ParticipantResponse:
        """Add a user to a group conversation; requester must be an admin."""
        conversation = ConversationService.get_conversation(conversation_id, db)
        if not conversation.is_group:
            raise InvalidOperation("Cannot add participants to direct conversations")
        if not ConversationService.is_admin(conversation_id, requester_id, db):
            raise Forbidden("Only admins can add participants")
        if not db.get(User, new_participant_id):
            raise NotFound("User not found")
        if ConversationService.get_participant(conversation_id, new_participant_id, db):
            raise Conflict("User is already a participant")

        participant = ConversationParticipant(conversation_id=conversation_id, user_id=new_participant_id, is_admin=False)
        db.add(participant)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("User is already a participant")
        db.refresh(participant)
        return ParticipantResponse.model_validate(participant)

    @staticmethod
    def remove_participant(conversation_id: str, requester_id: str, target_id: str, db: Session) -> None:
        """Remove a member; anyone may remove themselves, admins may remove others."""
        conversation = ConversationService.get_conversation(conversation_id, db)
        if not conversation.is_group:
            raise InvalidOperation("Cannot remove participants from direct conversations")
        if requester_id != target_id and not ConversationService.is_admin(conversation_id, requester_id, db):
            raise Forbidden("Only admins can remove other participants")
        participant = ConversationService.get_participant(conversation_id, target_id, db)
        if not participant:
            raise NotFound("Participant not found in conversation")
        with atomic(db, "remove participant", requester_id):
            db.delete(participant)
        logger.info(f"User {requester_id} removed {target_id} from conversation {conversation_id}")

    @staticmethod
    def leave_conversation(conversation_id: str, user_id: str, db: Session) -> None:
        ConversationService.remove_participant(conversation_id, user_id, user_id, db)

    @staticmethod
    def delete_conversation(conversation_id: str, requester_id: str, db: Session) -> None:
        """Delete a conversation with all its messages and participants; admins only."""
        conversation = ConversationService.get_conversation(conversation_id, db)
        if not ConversationService.is_admin(conversation_id, requester_id, db):
            raise Forbidden("Only admins can delete conversations")
        with atomic(db, "delete conversation", requester_id):
            purge_conversation(conversation, db)
        logger.info(f"User {requester_id} deleted conversation {conversation_id}")


class MessagingService:
    """Sends and reads messages, keeping read markers up to date."""

    @staticmethod
    def send_message(conversation_id: str, sender_id: str, body: str, db: Session) -> MessageResponse:
        conversation = ConversationService.get_conversation(conversation_id, db)
        ConversationService.require_participant(conversation_id, sender_id, db)
        body = (body or "").strip()
        if not body:
            raise InvalidInput("Message content cannot be empty")
        with atomic(db, "send message", sender_id):
            message = ConversationService._append_message(conversation, sender_id, body, db)
        db.refresh(message)
        return MessageResponse.model_validate(message)

    @staticmethod
    def get_messages(conversation_id: str, user_id: str, page: int, limit: int, db: Session) -> dict:
        """Newest-first page of messages; marks them read and moves the read cursor."""
        ConversationService.get_conversation(conversation_id, db)
        participant = ConversationService.require_participant(conversation_id, user_id, db)
        offset, limit = check_pagination(page, limit)

        query = db.query(Message).filter(Message.conversation_id == conversation_id)
        total = query.count()
        messages = (query.order_by(Message.created_at.desc(), Message.id.desc())
                    .offset(offset).limit(limit).all())

        with atomic(db, "mark messages read", user_id):
            for message in messages:
                if user_id not in (message.read_by or []):
                    # reassign, in-place mutation of a JSON column is not tracked
                    message.read_by = list(message.read_by or []) + [user_id]
            if messages:
                participant.last_read_message_id = messages[0].id

        return {
            "messages": [MessageResponse.model_validate(m) for m in messages],
            "pagination": pagination(total, page, limit),
        }

    @staticmethod
    def unread_count(conversation_id: str, user_id: str, db: Session) -> int:
        read_by = db.query(Message.read_by).filter(
            Message.conversation_id == conversation_id,
            Message.sender_id != user_id,
        ).all()
        return sum(1 for (readers,) in read_by if user_id not in (readers or []))
