# tests/test_content.py
import pytest

from content.models import Comment, Like, Media, Story
from content.schemas import CommentCreate, StoryCreate, StoryUpdate
from content.services import CommentService, LikeService, MediaService, StoryService
from errors import Conflict, Forbidden, Internal, InvalidInput, InvalidOperation, NotFound
from tests.conftest import auth_headers


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def blob_calls(monkeypatch):
    calls = []

    def fake_put(url, data=None, headers=None, timeout=None):
        calls.append(("PUT", url, headers))
        return FakeResponse(200)

    def fake_delete(url, headers=None, timeout=None):
        calls.append(("DELETE", url, headers))
        return FakeResponse(204)

    monkeypatch.setattr("content.storage.requests.put", fake_put)
    monkeypatch.setattr("content.storage.requests.delete", fake_delete)
    return calls


def test_story_lifecycle(db, make_user):
    author, reader = make_user("author"), make_user("reader")
    created = StoryService.create_story(StoryCreate(title="Hello", body="World", tags=["intro"]), author.id, db)
    assert created.status == "draft"

    with pytest.raises(NotFound):
        StoryService.get_story(created.id, reader.id, db)
    with pytest.raises(Forbidden):
        StoryService.update_story(created.id, reader.id, StoryUpdate(title="Mine now"), db)

    published = StoryService.update_story(created.id, author.id, StoryUpdate(status="published"), db)
    assert published.published_at is not None

    viewed = StoryService.get_story(created.id, reader.id, db)
    assert viewed.view_count == 1
    assert viewed.title == "Hello"

    with pytest.raises(InvalidOperation):
        StoryService.update_story(created.id, author.id, StoryUpdate(status="draft"), db)


def test_duplicate_like_conflicts_and_keeps_count(db, make_user, make_story):
    author, fan = make_user("author"), make_user("fan")
    story = make_story(author)

    first = LikeService.like_story(story.id, fan.id, db)
    assert first.like_count == 1
    with pytest.raises(Conflict):
        LikeService.like_story(story.id, fan.id, db)
    assert db.query(Like).filter(Like.story_id == story.id).count() == 1

    unliked = LikeService.unlike_story(story.id, fan.id, db)
    assert unliked.like_count == 0
    with pytest.raises(NotFound):
        LikeService.unlike_story(story.id, fan.id, db)


def test_reply_must_target_top_level_comment_on_same_story(db, make_user, make_story):
    author, reader = make_user("author"), make_user("reader")
    story, other = make_story(author, "one"), make_story(author, "two")

    top = CommentService.create_comment(story.id, CommentCreate(content="top"), reader.id, db)
    reply = CommentService.create_comment(story.id, CommentCreate(content="reply", parent_id=top.id), author.id, db)
    assert reply.parent_id == top.id

    with pytest.raises(InvalidInput):
        CommentService.create_comment(other.id, CommentCreate(content="x", parent_id=top.id), reader.id, db)
    with pytest.raises(InvalidInput):
        CommentService.create_comment(story.id, CommentCreate(content="x", parent_id=reply.id), reader.id, db)

    threads = CommentService.get_comments(story.id, reader.id, db)
    assert len(threads) == 1
    assert [r.id for r in threads[0].replies] == [reply.id]


def test_hidden_story_cannot_be_liked_or_listed(db, make_user, make_story):
    author, reader = make_user("author"), make_user("reader")
    draft = make_story(author, status="draft")
    archived = make_story(author, "old", status="archived")

    for story in (draft, archived):
        with pytest.raises(NotFound):
            LikeService.like_story(story.id, reader.id, db)
        with pytest.raises(NotFound):
            LikeService.unlike_story(story.id, reader.id, db)
        with pytest.raises(NotFound):
            CommentService.get_comments(story.id, reader.id, db)
        with pytest.raises(NotFound):
            CommentService.create_comment(story.id, CommentCreate(content="peek"), reader.id, db)
    assert db.query(Like).count() == 0

    assert LikeService.like_story(draft.id, author.id, db).like_count == 1
    assert CommentService.get_comments(draft.id, author.id, db) == []


def test_comment_edit_and_delete_rules(db, make_user, make_story):
    author, reader, stranger = make_user("author"), make_user("reader"), make_user("stranger")
    story = make_story(author)
    top = CommentService.create_comment(story.id, CommentCreate(content="top"), reader.id, db)
    CommentService.create_comment(story.id, CommentCreate(content="reply", parent_id=top.id), author.id, db)

    with pytest.raises(Forbidden):
        CommentService.update_comment(top.id, "hijacked", author.id, db)
    edited = CommentService.update_comment(top.id, "edited", reader.id, db)
    assert edited.is_edited is True
    assert edited.body == "edited"

    with pytest.raises(Forbidden):
        CommentService.delete_comment(top.id, stranger.id, db)
    # story owner may moderate comments on their story
    CommentService.delete_comment(top.id, author.id, db)
    assert db.query(Comment).filter(Comment.story_id == story.id).count() == 0


def test_delete_story_cascades(db, make_user, make_story):
    author, reader = make_user("author"), make_user("reader")
    story = make_story(author)
    story_id = story.id
    LikeService.like_story(story_id, reader.id, db)
    top = CommentService.create_comment(story_id, CommentCreate(content="top"), reader.id, db)
    CommentService.create_comment(story_id, CommentCreate(content="reply", parent_id=top.id), author.id, db)
    db.add(Media(story_id=story_id, kind="image", url="https://cdn/x.png", order_index=0))
    db.commit()

    with pytest.raises(Forbidden):
        StoryService.delete_story(story_id, reader.id, db)
    StoryService.delete_story(story_id, author.id, db)

    assert db.get(Story, story_id) is None
    assert db.query(Like).count() == 0
    assert db.query(Comment).count() == 0
    assert db.query(Media).count() == 0


def test_attach_media_uploads_and_orders(db, make_user, make_story, blob_calls):
    author = make_user("author")
    story = make_story(author)

    first = MediaService.attach_media(story.id, author.id, "image", "a.png", "image/png", b"png-bytes", db)
    second = MediaService.attach_media(story.id, author.id, "audio", "b.mp3", "audio/mpeg", b"mp3-bytes", db)

    assert [first.order_index, second.order_index] == [0, 1]
    assert first.provider_metadata["bytes"] == len(b"png-bytes")
    assert first.url.endswith(first.provider_metadata["key"])
    assert [c[0] for c in blob_calls] == ["PUT", "PUT"]
    assert "AWS4-HMAC-SHA256" in blob_calls[0][2]["Authorization"]

    MediaService.delete_media(first.id, author.id, db)
    assert blob_calls[-1][0] == "DELETE"
    assert db.get(Media, first.id) is None


def test_delete_media_keeps_row_deletion_when_blob_delete_fails(db, make_user, make_story, blob_calls, monkeypatch):
    author = make_user("author")
    story = make_story(author)
    media = MediaService.attach_media(story.id, author.id, "image", "a.png", "image/png", b"png-bytes", db)

    deleted_rows = []

    def failing_delete(url, headers=None, timeout=None):
        deleted_rows.append(db.query(Media).filter(Media.id == media.id).count() == 0)
        return FakeResponse(500, "storage unavailable")

    monkeypatch.setattr("content.storage.requests.delete", failing_delete)

    MediaService.delete_media(media.id, author.id, db)

    # the blob request only goes out once the row is committed away
    assert deleted_rows == [True]
    assert db.get(Media, media.id) is None


def test_attach_media_validation(db, make_user, make_story, blob_calls):
    author, other = make_user("author"), make_user("other")
    story = make_story(author)

    with pytest.raises(Forbidden):
        MediaService.attach_media(story.id, other.id, "image", "a.png", "image/png", b"x", db)
    with pytest.raises(InvalidInput):
        MediaService.attach_media(story.id, author.id, "image", "a.mp4", "video/mp4", b"x", db)
    with pytest.raises(InvalidInput):
        MediaService.attach_media(story.id, author.id, "document", "a.pdf", "application/pdf", b"x", db)
    with pytest.raises(InvalidInput):
        MediaService.attach_media(story.id, author.id, "image", "a.png", "image/png", b"", db)
    assert blob_calls == []


def test_failed_upload_surfaces_internal_error(db, make_user, make_story, monkeypatch):
    author = make_user("author")
    story = make_story(author)
    monkeypatch.setattr("content.storage.requests.put", lambda *args, **kwargs: FakeResponse(403, "denied"))

    with pytest.raises(Internal):
        MediaService.attach_media(story.id, author.id, "image", "a.png", "image/png", b"x", db)
    assert db.query(Media).count() == 0


def test_content_routes(client, make_user, blob_calls):
    author, fan = make_user("author"), make_user("fan")

    created = client.post("/api/stories", json={"title": "Hi", "body": "There"}, headers=auth_headers(author))
    assert created.status_code == 201
    story_id = created.json()["data"]["id"]

    published = client.patch(f"/api/stories/{story_id}", json={"status": "published"}, headers=auth_headers(author))
    assert published.json()["data"]["publishedAt"] is not None

    liked = client.post(f"/api/stories/{story_id}/like", headers=auth_headers(fan))
    assert liked.status_code == 201
    again = client.post(f"/api/stories/{story_id}/like", headers=auth_headers(fan))
    assert again.status_code == 409
    assert again.json() == {"status": 409, "msg": "You have already liked this story", "data": None}

    commented = client.post(f"/api/stories/{story_id}/comments", json={"content": "great"}, headers=auth_headers(fan))
    assert commented.status_code == 201
    assert commented.json()["data"]["author"]["username"] == "fan"

    uploaded = client.post(
        f"/api/stories/{story_id}/media",
        files={"file": ("pic.png", b"png-bytes", "image/png")},
        data={"kind": "image"},
        headers=auth_headers(author),
    )
    assert uploaded.status_code == 201
    assert uploaded.json()["data"]["orderIndex"] == 0

    detail = client.get(f"/api/stories/{story_id}", headers=auth_headers(fan))
    data = detail.json()["data"]
    assert data["likeCount"] == 1
    assert data["commentCount"] == 1
    assert data["userLiked"] is True
    assert len(data["media"]) == 1

    listed = client.post("/api/stories/list", json={"search": "Hi"}, headers=auth_headers(fan))
    assert listed.json()["data"]["pagination"]["total"] == 1
