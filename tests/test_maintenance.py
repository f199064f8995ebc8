import asyncio
from datetime import timedelta

from classvoice.models import LectureSession, Summary
from classvoice.services.maintenance import MaintenanceService

from conftest import NOW


def _status(db, lecture):
    db.expire_all()
    return db.get(LectureSession, lecture.id).status


def test_auto_end_ends_overdue_lectures_once(db, make_lecture):
    overdue = make_lecture(status="active", end=NOW - timedelta(minutes=1))
    running = make_lecture(status="active", end=NOW + timedelta(minutes=30))
    open_ended = make_lecture(status="active", end=None)
    scheduled = make_lecture(status="scheduled", end=NOW - timedelta(hours=1))
    service = MaintenanceService(db)

    first = service.run_auto_end(now=NOW)
    second = service.run_auto_end(now=NOW)

    assert first["active_lectures_count"] == 3
    assert first["processed_count"] == 1
    assert [item["lecture_id"] for item in first["ended_lectures"]] == [overdue.id]
    assert second["processed_count"] == 0
    assert _status(db, overdue) == "ended"
    assert _status(db, running) == "active"
    assert _status(db, open_ended) == "active"
    assert _status(db, scheduled) == "scheduled"


def test_auto_end_fires_at_the_scheduled_end(db, make_lecture):
    lecture = make_lecture(status="active", end=NOW)

    result = MaintenanceService(db).run_auto_end(now=NOW)

    assert result["processed_count"] == 1
    assert _status(db, lecture) == "ended"


def test_auto_summarize_respects_the_delay(db, summarizer, make_lecture, make_post):
    due = make_lecture(status="ended", end=NOW - timedelta(hours=2))
    recent = make_lecture(status="ended", end=NOW - timedelta(minutes=30))
    make_post(due)
    make_post(recent)

    result = asyncio.run(MaintenanceService(db, summarizer).run_auto_summarize(now=NOW))

    assert result["ended_lectures_count"] == 2
    assert result["processed_count"] == 1
    assert result["success_count"] == 1
    assert _status(db, due) == "summarized"
    assert _status(db, recent) == "ended"


def test_auto_summarize_falls_back_to_last_update(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended", end=None)
    make_post(lecture)
    lecture.updated_at = NOW - timedelta(hours=3)
    db.commit()

    result = asyncio.run(MaintenanceService(db, summarizer).run_auto_summarize(now=NOW))

    assert result["success_count"] == 1
    assert _status(db, lecture) == "summarized"


def test_one_failure_does_not_stop_the_batch(db, summarizer, make_lecture, make_post):
    broken = make_lecture(status="ended", end=NOW - timedelta(hours=2))
    empty = make_lecture(status="ended", end=NOW - timedelta(hours=2))
    fine = make_lecture(status="ended", end=NOW - timedelta(hours=2))
    make_post(broken, "explode")
    make_post(fine, "all good")
    summarizer.fail_when = "explode"

    result = asyncio.run(MaintenanceService(db, summarizer).run_auto_summarize(now=NOW))

    assert result["processed_count"] == 3
    assert result["success_count"] == 1
    assert result["error_count"] == 2
    by_id = {r["lecture_id"]: r for r in result["results"]}
    assert by_id[fine.id]["status"] == "success"
    assert by_id[broken.id]["status"] == "error"
    assert by_id[empty.id]["status"] == "error"
    assert _status(db, broken) == "ended"
    assert _status(db, empty) == "ended"
    assert db.query(Summary).count() == 1


def test_auto_summarize_skips_already_summarized(db, summarizer, make_lecture, make_post):
    lecture = make_lecture(status="ended", end=NOW - timedelta(hours=2))
    make_post(lecture)
    service = MaintenanceService(db, summarizer)

    asyncio.run(service.run_auto_summarize(now=NOW))
    again = asyncio.run(service.run_auto_summarize(now=NOW))

    assert again["processed_count"] == 0
    assert len(summarizer.calls) == 1
