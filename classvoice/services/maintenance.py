# classvoice/services/maintenance.py
"""
Periodic jobs: end lectures whose scheduled end has passed, and summarize lectures
that have been ended long enough. Both are safe to run concurrently with each
other, with themselves and with the admin buttons, since every state change
goes through a compare-and-set transition.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from classvoice.core.clock import as_utc, utc_now
from classvoice.core.config import settings
from classvoice.core.exceptions import DomainException
from classvoice.models.lecture import LectureSession
from classvoice.models.summary import Summary
from classvoice.services.lifecycle import LectureStatus, transition
from classvoice.services.summary import Summarizer, SummaryService

logger = logging.getLogger(__name__)

SUMMARIZE_DELAY = timedelta(minutes=settings.summarize_delay_minutes)


class MaintenanceService:
    def __init__(self, db: Session, summarizer: Optional[Summarizer] = None):
        self.db = db
        self.summarizer = summarizer

    def run_auto_end(self, now: Optional[datetime] = None) -> dict:
        """End every active lecture whose scheduled end time has passed."""
        now = now or utc_now()

        active = (
            self.db.query(LectureSession)
            .filter(LectureSession.status == LectureStatus.ACTIVE.value)
            .all()
        )
        due = [
            lecture
            for lecture in active
            if lecture.scheduled_end_time is not None
            and as_utc(lecture.scheduled_end_time) <= now
        ]
        snapshot = [
            {
                "lecture_id": lecture.id,
                "course_id": lecture.course_id,
                "session_number": lecture.session_number,
                "scheduled_end_time": as_utc(lecture.scheduled_end_time),
            }
            for lecture in due
        ]

        ended = []
        for item in snapshot:
            try:
                moved = transition(
                    self.db,
                    item["lecture_id"],
                    LectureStatus.ACTIVE,
                    LectureStatus.ENDED,
                    now,
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.exception(f"Failed to end lecture {item['lecture_id']}")
                continue
            if moved:
                ended.append(item)

        if ended:
            logger.info(f"Auto-end: {len(ended)} of {len(active)} active lectures ended")

        return {
            "checked_at": now,
            "active_lectures_count": len(active),
            "processed_count": len(ended),
            "ended_lectures": ended,
        }

    def _summarize_candidates(self, now: datetime) -> List[int]:
        lectures = (
            self.db.query(LectureSession)
            .outerjoin(Summary, Summary.lecture_id == LectureSession.id)
            .filter(
                LectureSession.status == LectureStatus.ENDED.value,
                Summary.id.is_(None),
            )
            .all()
        )

        due = []
        for lecture in lectures:
            reference = as_utc(lecture.scheduled_end_time) or as_utc(
                lecture.updated_at
            )
            if reference is not None and reference + SUMMARIZE_DELAY <= now:
                due.append(lecture.id)
        return due

    async def run_auto_summarize(self, now: Optional[datetime] = None) -> dict:
        """Summarize every ended lecture past the summarize delay."""
        now = now or utc_now()

        ended_count = (
            self.db.query(LectureSession)
            .filter(LectureSession.status == LectureStatus.ENDED.value)
            .count()
        )
        candidates = self._summarize_candidates(now)

        pipeline = SummaryService(self.db, self.summarizer)
        results = []
        for lecture_id in candidates:
            try:
                summary = await pipeline.summarize(lecture_id, now=now)
            except DomainException as e:
                self.db.rollback()
                logger.warning(f"Auto-summarize skipped lecture {lecture_id}: {e.message}")
                results.append(
                    {"lecture_id": lecture_id, "status": "error", "error": e.message}
                )
                continue
            except Exception as e:
                self.db.rollback()
                logger.exception(f"Auto-summarize failed for lecture {lecture_id}")
                results.append(
                    {"lecture_id": lecture_id, "status": "error", "error": str(e)}
                )
                continue

            results.append(
                {"lecture_id": lecture_id, "status": "success", "summary_id": summary.id}
            )

        success_count = sum(1 for r in results if r["status"] == "success")
        logger.info(
            f"Auto-summarize: {success_count} of {len(candidates)} candidates summarized"
        )

        return {
            "checked_at": now,
            "ended_lectures_count": ended_count,
            "processed_count": len(results),
            "success_count": success_count,
            "error_count": len(results) - success_count,
            "results": results,
        }
