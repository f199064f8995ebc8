# classvoice/services/lifecycle.py
"""
Lecture session state machine.

    scheduled -> active -> ended -> summarized

Status only moves forward. Every transition is written as a compare-and-set
UPDATE filtered on the expected source status, so concurrent callers (an admin
click racing the auto-end job, two overlapping job runs...) can never move a
session twice or backwards: the loser simply matches zero rows.
"""

import enum
import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from classvoice.core.exceptions import InvalidTransition
from classvoice.models.lecture import LectureSession

logger = logging.getLogger(__name__)


class LectureStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    ENDED = "ended"
    SUMMARIZED = "summarized"


class SummarizedVia(str, enum.Enum):
    """Which path led a session into the terminal state."""

    SUMMARY = "summary"
    PURGE = "purge"


TRANSITIONS: Dict[LectureStatus, FrozenSet[LectureStatus]] = {
    LectureStatus.SCHEDULED: frozenset({LectureStatus.ACTIVE}),
    LectureStatus.ACTIVE: frozenset({LectureStatus.ENDED}),
    LectureStatus.ENDED: frozenset({LectureStatus.SUMMARIZED}),
    LectureStatus.SUMMARIZED: frozenset(),
}


def can_transition(source: str, target: str) -> bool:
    return LectureStatus(target) in TRANSITIONS[LectureStatus(source)]


def check_transition(source: str, target: str) -> None:
    if not can_transition(source, target):
        raise InvalidTransition(
            f"Cannot move lecture from '{source}' to '{target}'"
        )


def transition(
    db: Session,
    lecture_id: int,
    source: LectureStatus,
    target: LectureStatus,
    now: datetime,
    summarized_via: Optional[SummarizedVia] = None,
) -> bool:
    """
    Move one session from *source* to *target* inside the caller's transaction.

    Returns True when the row was moved, False when it was no longer in
    *source* (someone else got there first). The caller commits.
    """
    check_transition(source.value, target.value)

    values = {"status": target.value, "updated_at": now}
    if target is LectureStatus.SUMMARIZED:
        if summarized_via is None:
            raise ValueError("summarized_via is required for the terminal state")
        values["summarized_via"] = summarized_via.value

    result = db.execute(
        update(LectureSession)
        .where(
            LectureSession.id == lecture_id,
            LectureSession.status == source.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )

    moved = result.rowcount == 1
    if moved:
        logger.info(f"Lecture {lecture_id}: {source.value} -> {target.value}")
    else:
        logger.info(
            f"Lecture {lecture_id}: skipped {source.value} -> {target.value}, "
            "status changed concurrently"
        )
    return moved


def has_summary(lecture: LectureSession) -> bool:
    return (
        lecture.status == LectureStatus.SUMMARIZED.value
        and lecture.summarized_via == SummarizedVia.SUMMARY.value
    )


def is_purged(lecture: LectureSession) -> bool:
    return (
        lecture.status == LectureStatus.SUMMARIZED.value
        and lecture.summarized_via == SummarizedVia.PURGE.value
    )
