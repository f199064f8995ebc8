# classvoice/services/window.py
"""
Submission window gate.

A session accepts posts while it is active and, when it has a scheduled end
time, until that end time plus a fixed grace period. Everything here is a pure
function of the session row and the supplied clock value.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from classvoice.core.clock import as_utc
from classvoice.core.config import settings
from classvoice.models.lecture import LectureSession
from classvoice.services.lifecycle import LectureStatus

GRACE_PERIOD = timedelta(minutes=settings.submission_grace_minutes)


def closes_at(
    lecture: LectureSession, grace: timedelta = GRACE_PERIOD
) -> Optional[datetime]:
    end = as_utc(lecture.scheduled_end_time)
    if end is None:
        return None
    return end + grace


def is_open(
    lecture: LectureSession, now: datetime, grace: timedelta = GRACE_PERIOD
) -> bool:
    if lecture.status != LectureStatus.ACTIVE.value:
        return False

    deadline = closes_at(lecture, grace)
    if deadline is None:
        return True
    return as_utc(now) < deadline


def remaining(
    lecture: LectureSession, now: datetime, grace: timedelta = GRACE_PERIOD
) -> Optional[timedelta]:
    """Time left before the gate closes; None when closed or open-ended."""
    if not is_open(lecture, now, grace):
        return None

    deadline = closes_at(lecture, grace)
    if deadline is None:
        return None
    return deadline - as_utc(now)


def remaining_minutes(
    lecture: LectureSession, now: datetime, grace: timedelta = GRACE_PERIOD
) -> Optional[int]:
    left = remaining(lecture, now, grace)
    if left is None:
        return None
    return max(0, math.ceil(left.total_seconds() / 60))
