# tests/test_admin.py
import pytest

from admin.models import AdminActionLog
from admin.services import AdminService
from auth.models import User
from content.models import Comment, Like, Story
from content.schemas import CommentCreate
from content.services import CommentService, LikeService
from errors import Forbidden, InvalidOperation, NotFound
from friends.models import Friendship
from messaging.models import Conversation, ConversationParticipant, Message
from messaging.services import ConversationService, MessagingService
from tests.conftest import auth_headers


@pytest.fixture
def admin(make_user):
    return make_user("root", role="admin")


def test_block_and_unblock(db, admin, make_user):
    user = make_user("troll")

    blocked = AdminService.block_user(admin.id, user.id, db)
    assert blocked.is_blocked is True
    with pytest.raises(InvalidOperation):
        AdminService.block_user(admin.id, user.id, db)

    assert AdminService.unblock_user(admin.id, user.id, db).is_blocked is False
    with pytest.raises(Forbidden):
        AdminService.block_user(admin.id, admin.id, db)
    with pytest.raises(NotFound):
        AdminService.block_user(admin.id, "missing-user", db)

    actions = [log.action for log in db.query(AdminActionLog).order_by(AdminActionLog.created_at)]
    assert actions == ["block_user", "unblock_user"]


def test_delete_user_removes_everything_they_own(db, admin, make_user, make_story, befriend):
    victim, other = make_user("victim"), make_user("other")
    victim_id = victim.id
    own_story = make_story(victim, "victim story")
    other_story = make_story(other, "other story")
    LikeService.like_story(other_story.id, victim_id, db)
    LikeService.like_story(own_story.id, other.id, db)
    victim_comment = CommentService.create_comment(other_story.id, CommentCreate(content="hi"), victim_id, db)
    CommentService.create_comment(
        other_story.id, CommentCreate(content="reply", parent_id=victim_comment.id), other.id, db
    )
    befriend(victim, other)
    conversation, _ = ConversationService.create_conversation(other.id, [victim_id], initial_message="yo", db=db)
    MessagingService.send_message(conversation.id, victim_id, "hey", db)
    MessagingService.get_messages(conversation.id, other.id, 1, 20, db)

    AdminService.delete_user(admin.id, victim_id, db)

    assert db.get(User, victim_id) is None
    assert db.query(Story).filter(Story.author_id == victim_id).count() == 0
    assert db.query(Like).count() == 0
    assert db.query(Comment).count() == 0
    assert db.query(Friendship).count() == 0
    assert db.query(Message).filter(Message.sender_id == victim_id).count() == 0
    assert db.query(ConversationParticipant).filter(ConversationParticipant.user_id == victim_id).count() == 0
    remaining = db.query(ConversationParticipant).filter(ConversationParticipant.user_id == other.id).one()
    # the cursor pointed at the victim's message
    assert remaining.last_read_message_id is None
    assert db.get(Story, other_story.id) is not None


def test_admins_cannot_be_deleted(db, admin, make_user):
    other_admin = make_user("root2", role="admin")
    with pytest.raises(Forbidden):
        AdminService.delete_user(admin.id, other_admin.id, db)


def test_moderation_deletes_are_logged(db, admin, make_user, make_story):
    alice, bob = make_user("alice"), make_user("bob")
    story = make_story(alice)
    story_id = story.id
    comment = CommentService.create_comment(story_id, CommentCreate(content="spam"), bob.id, db)
    conversation, _ = ConversationService.create_conversation(alice.id, [bob.id], db=db)
    conversation_id = conversation.id
    message = MessagingService.send_message(conversation_id, bob.id, "spam", db)

    AdminService.delete_comment(admin.id, comment.id, db)
    AdminService.delete_message(admin.id, message.id, db)
    AdminService.delete_conversation(admin.id, conversation_id, db)
    AdminService.delete_story(admin.id, story_id, db)

    assert db.query(Comment).count() == 0
    assert db.query(Message).count() == 0
    assert db.get(Conversation, conversation_id) is None
    assert db.get(Story, story_id) is None
    logs = AdminService.get_logs(1, 10, db)
    assert logs["pagination"]["total"] == 4
    assert {log.target_id for log in logs["logs"]} == {comment.id, message.id, conversation_id, story_id}

    with pytest.raises(NotFound):
        AdminService.delete_story(admin.id, story_id, db)


def test_admin_routes_require_admin_role(client, admin, make_user):
    user = make_user("plain")

    denied = client.get("/api/admin/users", headers=auth_headers(user))
    assert denied.status_code == 403
    assert denied.json()["msg"] == "Admin access required"

    listed = client.get("/api/admin/users?search=pla", headers=auth_headers(admin))
    assert listed.status_code == 200
    assert [u["username"] for u in listed.json()["data"]["users"]] == ["plain"]

    blocked = client.post(f"/api/admin/users/{user.id}/block", headers=auth_headers(admin))
    assert blocked.json()["data"]["isBlocked"] is True

    locked_out = client.get("/api/auth/me", headers=auth_headers(user))
    assert locked_out.status_code == 403

    logs = client.get("/api/admin/logs", headers=auth_headers(admin))
    assert logs.json()["data"]["logs"][0]["action"] == "block_user"
