# friends/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from auth.models import User
from auth.routes import get_current_user
from database import get_db
from friends.schemas import FriendRequestCreate
from friends.services import FriendService
from responses import envelope

router = APIRouter(prefix="/friends", tags=["friends"])

@router.post("/request")
async def send_friend_request(
    request: FriendRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    friendship = FriendService.send_request(current_user.id, request.friend_id, db)
    return envelope("Friend request sent successfully", friendship, 201)

@router.post("/accept/{requester_id}")
async def accept_friend_request(requester_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    friendship = FriendService.accept_request(current_user.id, requester_id, db)
    return envelope("Friend request accepted successfully", friendship)

@router.delete("/reject/{requester_id}")
async def reject_friend_request(requester_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    FriendService.reject_request(current_user.id, requester_id, db)
    return envelope("Friend request rejected successfully")

@router.delete("/remove/{friend_id}")
async def remove_friend(friend_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    FriendService.remove_friend(current_user.id, friend_id, db)
    return envelope("Friend removed successfully")

@router.post("/block/{target_id}")
async def block_user(target_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    friendship = FriendService.block_user(current_user.id, target_id, db)
    return envelope("User blocked successfully", friendship)

@router.get("/list")
async def get_friends(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return envelope("Friends retrieved successfully", FriendService.get_friends(current_user.id, db))

@router.get("/pending")
async def get_pending_requests(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return envelope("Pending requests retrieved successfully", FriendService.get_pending_requests(current_user.id, db))
