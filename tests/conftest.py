"""Shared fixtures: in-memory SQLite, a frozen clock and a fake summarizer."""

import itertools
import os
from datetime import datetime, timedelta, timezone

# must be set before classvoice reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["CRON_SECRET"] = ""
os.environ["AI_API_KEY"] = ""

import pytest

from classvoice.core.database import Base, SessionLocal, engine
from classvoice.models import Course, LectureSession, Like, Post

NOW = datetime(2026, 4, 14, 10, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeSummarizer:
    def __init__(self, text: str = "Students mostly asked about recursion."):
        self.text = text
        self.error = None
        self.fail_when = None
        self.calls = []

    async def summarize(self, text: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        if self.fail_when and self.fail_when in text:
            raise RuntimeError("model unavailable")
        return self.text


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def course(db):
    course = Course(code="CS101", title="Introduction to Programming", total_sessions=15)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@pytest.fixture
def make_lecture(db, course):
    numbers = itertools.count(1)

    def _make(status="active", end=None, start=None, number=None, course_id=None,
              summarized_via=None):
        lecture = LectureSession(
            course_id=course_id or course.id,
            session_number=number or next(numbers),
            status=status,
            summarized_via=summarized_via,
            scheduled_start_time=start,
            scheduled_end_time=end,
        )
        db.add(lecture)
        db.commit()
        db.refresh(lecture)
        return lecture

    return _make


@pytest.fixture
def make_post(db):
    def _make(lecture, content="What is a closure?", like_count=0, created_at=None,
              deleted_at=None):
        post = Post(
            lecture_id=lecture.id,
            content=content,
            like_count=like_count,
            created_at=created_at or NOW,
            deleted_at=deleted_at,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make


@pytest.fixture
def make_like(db):
    def _make(post, user_identifier):
        like = Like(post_id=post.id, user_identifier=user_identifier)
        db.add(like)
        db.commit()
        return like

    return _make


@pytest.fixture
def admin_headers():
    from classvoice.core.security import jwt_manager

    token = jwt_manager.create_admin_token("admin@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db, clock, summarizer):
    from fastapi.testclient import TestClient

    from classvoice.core.clock import get_now
    from classvoice.core.database import get_db
    from classvoice.utils.ai import get_summarizer
    from main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_now] = clock
    app.dependency_overrides[get_summarizer] = lambda: summarizer

    # no context manager: the lifespan (create_all, scheduler) stays off
    yield TestClient(app)

    app.dependency_overrides.clear()
