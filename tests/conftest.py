# tests/conftest.py
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from auth.models import User
from auth.services import AuthService
from content.models import Story
from database import Base, SessionLocal, engine, get_db, register_models
from friends.models import Friendship
from main import app

register_models()

PASSWORD = "password123"
PASSWORD_HASH = AuthService.hash_password(PASSWORD)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username: str, role: str = "user") -> User:
        user = User(username=username, email=f"{username}@example.com", password_hash=PASSWORD_HASH, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_story(db):
    def _make(author: User, title: str = "A story", status: str = "published", created_at: datetime = None) -> Story:
        story = Story(author_id=author.id, title=title, body=f"{title} body", status=status, tags=[])
        if created_at is not None:
            story.created_at = created_at
        if status == "published":
            story.published_at = story.created_at or datetime.utcnow()
        db.add(story)
        db.commit()
        db.refresh(story)
        return story
    return _make


@pytest.fixture
def befriend(db):
    def _befriend(requester: User, receiver: User, status: str = "accepted") -> Friendship:
        friendship = Friendship(user_id=requester.id, friend_id=receiver.id, status=status)
        db.add(friendship)
        db.commit()
        return friendship
    return _befriend


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {AuthService.create_access_token(user.id)}"}


def minutes_ago(minutes: int) -> datetime:
    return datetime.utcnow() - timedelta(minutes=minutes)
