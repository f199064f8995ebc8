# classvoice/services/lecture.py
import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from classvoice.core.clock import as_utc, utc_now
from classvoice.core.decorator import db_exception
from classvoice.core.exceptions import (
    DuplicateSessionNumber,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from classvoice.models.course import Course
from classvoice.models.lecture import LectureSession
from classvoice.schemas.lecture import LectureCreate, LectureUpdate
from classvoice.services import window
from classvoice.services.lifecycle import (
    LectureStatus,
    check_transition,
    transition,
)

logger = logging.getLogger(__name__)

_SCHEDULE_FIELDS = ("scheduled_start_time", "scheduled_end_time")


class LectureService:
    def __init__(self, db: Session):
        self.db = db

    # ==================== Reads ====================

    def get_lecture(self, lecture_id: int) -> LectureSession:
        lecture = (
            self.db.query(LectureSession)
            .options(joinedload(LectureSession.course))
            .filter(LectureSession.id == lecture_id)
            .first()
        )
        if not lecture:
            raise NotFound("Lecture not found")
        return lecture

    def get_lectures(
        self,
        page: int = 1,
        size: int = 20,
        course_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[LectureSession], dict]:
        """Get list of sessions with pagination and filters (admin)"""
        query = self.db.query(LectureSession).options(
            joinedload(LectureSession.course)
        )

        if course_id is not None:
            query = query.filter(LectureSession.course_id == course_id)

        if status is not None:
            query = query.filter(LectureSession.status == status)

        total = query.count()

        offset = (page - 1) * size
        lectures = (
            query.order_by(
                LectureSession.course_id.asc(), LectureSession.session_number.asc()
            )
            .offset(offset)
            .limit(size)
            .all()
        )

        total_pages = math.ceil(total / size) if size > 0 else 0
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": total_pages,
        }

        return lectures, pagination

    def get_active_lectures(self) -> List[LectureSession]:
        """All sessions currently active, most recent start first"""
        return (
            self.db.query(LectureSession)
            .options(joinedload(LectureSession.course))
            .filter(LectureSession.status == LectureStatus.ACTIVE.value)
            .order_by(LectureSession.scheduled_start_time.desc())
            .all()
        )

    def search_active_by_code(self, code: str) -> LectureSession:
        """Latest active session of the course with the given code"""
        code = code.strip().upper()
        if not code:
            raise ValidationError("Course code is required")

        course = self.db.query(Course).filter(Course.code == code).first()
        if not course:
            raise NotFound(f"Course '{code}' not found")

        lecture = (
            self.db.query(LectureSession)
            .options(joinedload(LectureSession.course))
            .filter(
                LectureSession.course_id == course.id,
                LectureSession.status == LectureStatus.ACTIVE.value,
            )
            .order_by(LectureSession.session_number.desc())
            .first()
        )
        if not lecture:
            raise NotFound(f"No active lecture for course '{code}'")
        return lecture

    def get_open_state(self, lecture_id: int, now: Optional[datetime] = None) -> dict:
        now = now or utc_now()
        lecture = self.get_lecture(lecture_id)

        return {
            "lecture_id": lecture.id,
            "status": lecture.status,
            "is_open": window.is_open(lecture, now),
            "remaining_minutes": window.remaining_minutes(lecture, now),
            "scheduled_end_time": as_utc(lecture.scheduled_end_time),
            "grace_period_end_time": window.closes_at(lecture),
        }

    # ==================== Admin writes ====================

    @db_exception
    def create_lecture(self, lecture_in: LectureCreate) -> LectureSession:
        course = self.db.query(Course).filter(Course.id == lecture_in.course_id).first()
        if not course:
            raise NotFound("Course not found")

        if lecture_in.session_number > course.total_sessions:
            raise ValidationError(
                f"Session number must be between 1 and {course.total_sessions}"
            )

        data = lecture_in.model_dump()
        for field in _SCHEDULE_FIELDS:
            data[field] = as_utc(data[field])

        lecture = LectureSession(**data, status=LectureStatus.SCHEDULED.value)
        self.db.add(lecture)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateSessionNumber(
                f"Session {lecture_in.session_number} already exists for this course"
            )
        self.db.refresh(lecture)

        logger.info(
            f"Lecture created: course={course.code} session={lecture.session_number}"
        )
        return lecture

    @db_exception
    def update_lecture(
        self,
        lecture_id: int,
        lecture_in: LectureUpdate,
        now: Optional[datetime] = None,
    ) -> LectureSession:
        """
        Edit schedule fields. A status change is only accepted when it is one
        forward step of the lifecycle; summarized cannot be set by hand.
        """
        now = now or utc_now()
        lecture = self.get_lecture(lecture_id)
        data = lecture_in.model_dump(exclude_unset=True)

        new_status = data.pop("status", None)
        if new_status == LectureStatus.SUMMARIZED.value:
            raise InvalidTransition(
                "Sessions become summarized only through summarize or purge"
            )
        if new_status == lecture.status:
            new_status = None
        if new_status is not None:
            check_transition(lecture.status, new_status)

        if "session_number" in data:
            total = lecture.course.total_sessions
            if data["session_number"] > total:
                raise ValidationError(f"Session number must be between 1 and {total}")

        for field in _SCHEDULE_FIELDS:
            if field in data:
                data[field] = as_utc(data[field])

        start = data.get("scheduled_start_time", lecture.scheduled_start_time)
        end = data.get("scheduled_end_time", lecture.scheduled_end_time)
        if start and end and as_utc(end) <= as_utc(start):
            raise ValidationError(
                "scheduled_end_time must be after scheduled_start_time"
            )

        for field, value in data.items():
            setattr(lecture, field, value)

        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateSessionNumber(
                f"Session {data.get('session_number')} already exists for this course"
            )

        if new_status is not None:
            source = LectureStatus(lecture.status)
            target = LectureStatus(new_status)
            if not transition(self.db, lecture.id, source, target, now):
                self.db.rollback()
                raise InvalidTransition("Lecture status changed concurrently")

        self.db.commit()
        return self.get_lecture(lecture_id)

    @db_exception
    def delete_lecture(self, lecture_id: int) -> bool:
        lecture = self.get_lecture(lecture_id)

        self.db.delete(lecture)
        self.db.commit()

        logger.info(f"Lecture deleted: {lecture_id}")
        return True

    # ==================== Transitions ====================

    @db_exception
    def activate_lecture(
        self, lecture_id: int, now: Optional[datetime] = None
    ) -> LectureSession:
        return self._step(
            lecture_id, LectureStatus.SCHEDULED, LectureStatus.ACTIVE, now
        )

    @db_exception
    def end_lecture(
        self, lecture_id: int, now: Optional[datetime] = None
    ) -> LectureSession:
        """Manually end an active session (admin button)"""
        return self._step(lecture_id, LectureStatus.ACTIVE, LectureStatus.ENDED, now)

    def _step(
        self,
        lecture_id: int,
        source: LectureStatus,
        target: LectureStatus,
        now: Optional[datetime],
    ) -> LectureSession:
        now = now or utc_now()
        lecture = self.get_lecture(lecture_id)

        if lecture.status != source.value:
            raise InvalidTransition(
                f"Lecture is '{lecture.status}', expected '{source.value}'"
            )

        if not transition(self.db, lecture_id, source, target, now):
            self.db.rollback()
            raise InvalidTransition("Lecture status changed concurrently")

        self.db.commit()
        return self.get_lecture(lecture_id)
