# tests/test_friends.py
import pytest

from errors import Conflict, InvalidInput, NotFound
from friends.models import Friendship
from friends.services import FriendService, friend_ids
from tests.conftest import auth_headers


def test_request_accept_and_list(db, make_user):
    alice, bob = make_user("alice"), make_user("bob")

    pending = FriendService.send_request(alice.id, bob.id, db)
    assert pending.status == "pending"
    assert [r.requester.username for r in FriendService.get_pending_requests(bob.id, db)] == ["alice"]
    assert FriendService.get_friends(alice.id, db) == []

    accepted = FriendService.accept_request(bob.id, alice.id, db)
    assert accepted.status == "accepted"
    assert [f.username for f in FriendService.get_friends(alice.id, db)] == ["bob"]
    assert [f.username for f in FriendService.get_friends(bob.id, db)] == ["alice"]
    assert friend_ids(bob.id, db) == [alice.id]


def test_request_errors(db, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    with pytest.raises(InvalidInput):
        FriendService.send_request(alice.id, alice.id, db)
    with pytest.raises(NotFound):
        FriendService.send_request(alice.id, "missing-user", db)

    FriendService.send_request(alice.id, bob.id, db)
    with pytest.raises(Conflict):
        FriendService.send_request(bob.id, alice.id, db)
    with pytest.raises(NotFound):
        # only the receiver can accept
        FriendService.accept_request(alice.id, bob.id, db)


def test_reject_and_remove(db, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    FriendService.send_request(alice.id, bob.id, db)
    FriendService.reject_request(bob.id, alice.id, db)
    assert db.query(Friendship).count() == 0

    FriendService.send_request(carol.id, alice.id, db)
    FriendService.accept_request(alice.id, carol.id, db)
    FriendService.remove_friend(alice.id, carol.id, db)
    assert friend_ids(carol.id, db) == []
    with pytest.raises(NotFound):
        FriendService.remove_friend(alice.id, carol.id, db)


def test_block_replaces_friendship(db, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    FriendService.send_request(bob.id, alice.id, db)
    FriendService.accept_request(alice.id, bob.id, db)

    blocked = FriendService.block_user(alice.id, bob.id, db)

    assert blocked.status == "blocked"
    assert blocked.user_id == alice.id
    assert db.query(Friendship).count() == 1
    assert friend_ids(alice.id, db) == []


def test_friend_routes(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")

    sent = client.post("/api/friends/request", json={"friendId": bob.id}, headers=auth_headers(alice))
    assert sent.status_code == 201
    assert sent.json()["data"]["friendId"] == bob.id

    pending = client.get("/api/friends/pending", headers=auth_headers(bob))
    assert pending.json()["data"][0]["requester"]["id"] == alice.id

    accepted = client.post(f"/api/friends/accept/{alice.id}", headers=auth_headers(bob))
    assert accepted.status_code == 200

    friends = client.get("/api/friends/list", headers=auth_headers(alice))
    assert friends.json()["data"] == [{"id": bob.id, "username": "bob"}]
