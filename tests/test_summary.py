import asyncio
from datetime import timedelta

import pytest

from classvoice.core.exceptions import (
    AlreadyExists,
    InvalidTransition,
    NoContent,
    NotFound,
    UpstreamError,
)
from classvoice.models import LectureSession, Summary
from classvoice.services import lifecycle
from classvoice.services.summary import SummaryService

from conftest import NOW


def _summarize(db, summarizer, lecture_id):
    return asyncio.run(SummaryService(db, summarizer).summarize(lecture_id, now=NOW))


def test_summary_is_stored_and_lecture_summarized(
    db, summarizer, make_lecture, make_post, make_like
):
    lecture = make_lecture(status="ended")
    liked = make_post(lecture, "Why does recursion need a base case?", like_count=2)
    make_post(lecture, "Slides please", like_count=0)
    make_like(liked, "a")
    make_like(liked, "b")

    summary = _summarize(db, summarizer, lecture.id)

    assert summary.summary_text == summarizer.text
    assert summary.total_posts_count == 2
    assert summary.total_likes_count == 2
    db.expire_all()
    lecture = db.get(LectureSession, lecture.id)
    assert lecture.status == "summarized"
    assert lifecycle.has_summary(lecture)

    prompt = summarizer.calls[0]
    assert "[Post 1] likes: 2\nWhy does recursion need a base case?" in prompt
    assert prompt.index("[Post 1]") < prompt.index("Slides please")


def test_only_top_posts_are_sent(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    for i in range(60):
        make_post(lecture, f"post {i}", like_count=i, created_at=NOW + timedelta(seconds=i))

    summary = _summarize(db, summarizer, lecture.id)

    prompt = summarizer.calls[0]
    assert "[Post 50]" in prompt
    assert "[Post 51]" not in prompt
    assert "[Post 1] likes: 59\npost 59" in prompt
    assert summary.total_posts_count == 60


def test_soft_deleted_posts_are_left_out(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    make_post(lecture, "visible")
    make_post(lecture, "removed by admin", deleted_at=NOW)

    summary = _summarize(db, summarizer, lecture.id)

    assert summary.total_posts_count == 1
    assert "removed by admin" not in summarizer.calls[0]


def test_lecture_without_posts_is_not_summarized(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    make_post(lecture, "hidden", deleted_at=NOW)

    with pytest.raises(NoContent):
        _summarize(db, summarizer, lecture.id)

    assert summarizer.calls == []
    assert db.query(Summary).count() == 0


@pytest.mark.parametrize("status", ["scheduled", "active"])
def test_only_ended_lectures_are_summarized(db, summarizer, make_lecture, make_post, status):
    lecture = make_lecture(status=status)
    make_post(lecture)

    with pytest.raises(InvalidTransition):
        _summarize(db, summarizer, lecture.id)


def test_second_summarize_fails_without_calling_the_model(
    db, summarizer, make_lecture, make_post
):
    lecture = make_lecture(status="ended")
    make_post(lecture)
    _summarize(db, summarizer, lecture.id)

    with pytest.raises(AlreadyExists):
        _summarize(db, summarizer, lecture.id)

    assert len(summarizer.calls) == 1
    assert db.query(Summary).count() == 1


def test_model_failure_persists_nothing(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    make_post(lecture)
    summarizer.error = TimeoutError("timed out")

    with pytest.raises(UpstreamError):
        _summarize(db, summarizer, lecture.id)

    db.expire_all()
    assert db.query(Summary).count() == 0
    assert db.get(LectureSession, lecture.id).status == "ended"


def test_failed_transition_keeps_the_summary(
    db, summarizer, make_lecture, make_post, monkeypatch
):
    lecture = make_lecture(status="ended")
    make_post(lecture)
    monkeypatch.setattr(
        "classvoice.services.summary.transition", lambda *args, **kwargs: False
    )

    summary = _summarize(db, summarizer, lecture.id)

    assert summary.id is not None
    db.expire_all()
    assert db.get(LectureSession, lecture.id).status == "ended"

    # a retry stops at the stored summary instead of calling the model again
    with pytest.raises(AlreadyExists):
        _summarize(db, summarizer, lecture.id)
    assert len(summarizer.calls) == 1


def test_get_summary_missing(db, make_lecture):
    lecture = make_lecture(status="ended")

    with pytest.raises(NotFound):
        SummaryService(db).get_summary(lecture.id)


def test_concurrent_summary_insert_is_rejected(db, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    make_post(lecture)

    class RacingSummarizer:
        async def summarize(self, text):
            # another worker stores its summary while the model is thinking
            db.add(Summary(lecture_id=lecture.id, summary_text="first", created_at=NOW))
            db.commit()
            return "second"

    with pytest.raises(AlreadyExists):
        asyncio.run(
            SummaryService(db, RacingSummarizer()).summarize(lecture.id, now=NOW)
        )

    db.expire_all()
    assert [s.summary_text for s in db.query(Summary).all()] == ["first"]
    assert db.get(LectureSession, lecture.id).status == "ended"
