from datetime import timedelta

import pytest

from classvoice.core.exceptions import (
    ContentEmpty,
    ContentTooLong,
    NotFound,
    ValidationError,
    WindowClosed,
)
from classvoice.models import Post
from classvoice.services.post import PostService, clean_content

from conftest import NOW


def test_post_is_trimmed_and_stored(db, make_lecture):
    lecture = make_lecture(status="active", end=NOW + timedelta(hours=1))

    post = PostService(db).create_post(lecture.id, "  Can you repeat slide 4?  ", now=NOW)

    assert post.content == "Can you repeat slide 4?"
    assert post.like_count == 0
    assert post.lecture_id == lecture.id


@pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
def test_empty_content_is_rejected(content):
    with pytest.raises(ContentEmpty):
        clean_content(content)


def test_content_length_limit():
    assert clean_content("x" * 200) == "x" * 200
    with pytest.raises(ContentTooLong):
        clean_content("x" * 201)


def test_content_errors_are_validation_errors():
    assert issubclass(ContentEmpty, ValidationError)
    assert issubclass(ContentTooLong, ValidationError)


def test_post_to_unknown_lecture(db):
    with pytest.raises(NotFound):
        PostService(db).create_post(404, "hello", now=NOW)


def test_posting_follows_the_grace_period(db, make_lecture):
    lecture = make_lecture(status="active", end=NOW)
    service = PostService(db)

    service.create_post(lecture.id, "just before the end", now=NOW - timedelta(seconds=1))
    service.create_post(lecture.id, "during grace", now=NOW + timedelta(minutes=10))

    with pytest.raises(WindowClosed):
        service.create_post(lecture.id, "too late", now=NOW + timedelta(minutes=16))

    assert db.query(Post).count() == 2


@pytest.mark.parametrize("status", ["scheduled", "ended", "summarized"])
def test_posting_requires_active_lecture(db, make_lecture, status):
    lecture = make_lecture(status=status)

    with pytest.raises(WindowClosed):
        PostService(db).create_post(lecture.id, "hello", now=NOW)


def test_newest_sort(db, make_lecture, make_post):
    lecture = make_lecture()
    first = make_post(lecture, "first", created_at=NOW)
    second = make_post(lecture, "second", created_at=NOW + timedelta(minutes=1))

    posts = PostService(db).get_posts(lecture.id, "newest")

    assert [p.id for p in posts] == [second.id, first.id]


def test_popular_sort_breaks_ties_by_recency(db, make_lecture, make_post):
    lecture = make_lecture()
    old_popular = make_post(lecture, "a", like_count=3, created_at=NOW)
    new_popular = make_post(lecture, "b", like_count=3, created_at=NOW + timedelta(minutes=2))
    quiet = make_post(lecture, "c", like_count=0, created_at=NOW + timedelta(minutes=5))

    posts = PostService(db).get_posts(lecture.id, "popular")

    assert [p.id for p in posts] == [new_popular.id, old_popular.id, quiet.id]


def test_soft_deleted_posts_are_hidden(db, make_lecture, make_post):
    lecture = make_lecture()
    visible = make_post(lecture, "keep")
    hidden = make_post(lecture, "hide")

    PostService(db).soft_delete_post(hidden.id, now=NOW)
    posts = PostService(db).get_posts(lecture.id)

    assert [p.id for p in posts] == [visible.id]


def test_unknown_sort_is_rejected(db, make_lecture):
    lecture = make_lecture()

    with pytest.raises(ValidationError):
        PostService(db).get_posts(lecture.id, "random")
