from datetime import datetime, timedelta, timezone

from classvoice.models import LectureSession
from classvoice.services import window

T = datetime(2026, 4, 14, 10, 30, tzinfo=timezone.utc)


def _lecture(status="active", end=T):
    return LectureSession(course_id=1, session_number=1, status=status, scheduled_end_time=end)


def test_active_lecture_without_end_time_is_open_with_no_countdown():
    lecture = _lecture(end=None)

    assert window.is_open(lecture, T + timedelta(days=3))
    assert window.remaining_minutes(lecture, T) is None
    assert window.closes_at(lecture) is None


def test_window_stays_open_during_grace_period():
    lecture = _lecture()

    assert window.is_open(lecture, T - timedelta(seconds=1))
    assert window.is_open(lecture, T + timedelta(minutes=10))
    assert window.remaining_minutes(lecture, T + timedelta(minutes=10)) == 5


def test_window_closes_when_grace_period_runs_out():
    lecture = _lecture()

    assert not window.is_open(lecture, T + timedelta(minutes=15))
    assert not window.is_open(lecture, T + timedelta(minutes=16))
    assert window.remaining_minutes(lecture, T + timedelta(minutes=16)) is None


def test_remaining_minutes_rounds_up():
    lecture = _lecture()

    assert window.remaining_minutes(lecture, T + timedelta(minutes=10, seconds=30)) == 5
    assert window.remaining_minutes(lecture, T + timedelta(minutes=14, seconds=59)) == 1


def test_only_active_lectures_accept_posts():
    for status in ("scheduled", "ended", "summarized"):
        lecture = _lecture(status=status)
        assert not window.is_open(lecture, T - timedelta(hours=1))
        assert window.remaining_minutes(lecture, T - timedelta(hours=1)) is None


def test_naive_end_time_is_read_as_utc():
    lecture = _lecture(end=T.replace(tzinfo=None))

    assert window.closes_at(lecture) == T + timedelta(minutes=15)
    assert window.is_open(lecture, T + timedelta(minutes=14))


def test_grace_period_can_be_overridden():
    lecture = _lecture()

    assert not window.is_open(lecture, T + timedelta(minutes=1), grace=timedelta(0))
