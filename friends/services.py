# friends/services.py
import logging
from typing import List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from auth.models import User
from auth.schemas import UserSummary
from database import atomic
from errors import Conflict, InvalidInput, NotFound
from friends.models import Friendship
from friends.schemas import FriendshipResponse, PendingRequest

logger = logging.getLogger(__name__)

def pair_filter(user_a: str, user_b: str):
    return or_(
        and_(Friendship.user_id == user_a, Friendship.friend_id == user_b),
        and_(Friendship.user_id == user_b, Friendship.friend_id == user_a),
    )

def friend_ids(user_id: str, db: Session) -> List[str]:
    """Ids of users with an accepted friendship with user_id, from either side."""
    rows = db.query(Friendship.user_id, Friendship.friend_id).filter(
        Friendship.status == "accepted",
        or_(Friendship.user_id == user_id, Friendship.friend_id == user_id),
    ).all()
    return [friend if requester == user_id else requester for requester, friend in rows]

class FriendService:
    @staticmethod
    def _find_pair(user_a: str, user_b: str, db: Session) -> Optional[Friendship]:
        return db.query(Friendship).filter(pair_filter(user_a, user_b)).first()

    @staticmethod
    def send_request(user_id: str, friend_id: str, db: Session) -> FriendshipResponse:
        if user_id == friend_id:
            raise InvalidInput("You cannot send a friend request to yourself")
        if not db.get(User, friend_id):
            raise NotFound("User not found")
        if FriendService._find_pair(user_id, friend_id, db):
            raise Conflict("Friendship already exists")
        friendship = Friendship(user_id=user_id, friend_id=friend_id, status="pending")
        with atomic(db, "send friend request", user_id):
            db.add(friendship)
        db.refresh(friendship)
        return FriendshipResponse.model_validate(friendship)

    @staticmethod
    def accept_request(user_id: str, requester_id: str, db: Session) -> FriendshipResponse:
        friendship = db.query(Friendship).filter(
            Friendship.user_id == requester_id,
            Friendship.friend_id == user_id,
            Friendship.status == "pending",
        ).first()
        if not friendship:
            raise NotFound("Friend request not found")
        with atomic(db, "accept friend request", user_id):
            friendship.status = "accepted"
        db.refresh(friendship)
        return FriendshipResponse.model_validate(friendship)

    @staticmethod
    def reject_request(user_id: str, requester_id: str, db: Session) -> None:
        friendship = db.query(Friendship).filter(
            Friendship.user_id == requester_id,
            Friendship.friend_id == user_id,
            Friendship.status == "pending",
        ).first()
        if not friendship:
            raise NotFound("Friend request not found")
        with atomic(db, "reject friend request", user_id):
            db.delete(friendship)

    @staticmethod
    def remove_friend(user_id: str, friend_id: str, db: Session) -> None:
        friendship = db.query(Friendship).filter(pair_filter(user_id, friend_id), Friendship.status == "accepted").first()
        if not friendship:
            raise NotFound("Friendship not found")
        with atomic(db, "remove friend", user_id):
            db.delete(friendship)

    @staticmethod
    def block_user(user_id: str, target_id: str, db: Session) -> FriendshipResponse:
        """Mark the pair as blocked, with user_id recorded as the blocker."""
        if user_id == target_id:
            raise InvalidInput("You cannot block yourself")
        if not db.get(User, target_id):
            raise NotFound("User not found")
        friendship = FriendService._find_pair(user_id, target_id, db)
        with atomic(db, "block user", user_id):
            if friendship is None:
                friendship = Friendship(user_id=user_id, friend_id=target_id)
                db.add(friendship)
            friendship.user_id, friendship.friend_id = user_id, target_id
            friendship.status = "blocked"
        db.refresh(friendship)
        return FriendshipResponse.model_validate(friendship)

    @staticmethod
    def get_friends(user_id: str, db: Session) -> List[UserSummary]:
        ids = friend_ids(user_id, db)
        if not ids:
            return []
        users = db.query(User).filter(User.id.in_(ids)).order_by(User.username).all()
        return [UserSummary.model_validate(u) for u in users]

    @staticmethod
    def get_pending_requests(user_id: str, db: Session) -> List[PendingRequest]:
        rows = (db.query(Friendship, User)
                .join(User, User.id == Friendship.user_id)
                .filter(Friendship.friend_id == user_id, Friendship.status == "pending")
                .order_by(Friendship.created_at.desc())
                .all())
        return [
            PendingRequest(id=f.id, requester=UserSummary.model_validate(u), created_at=f.created_at)
            for f, u in rows
        ]
