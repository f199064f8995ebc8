# classvoice/services/purge.py
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from classvoice.core.clock import utc_now
from classvoice.core.decorator import db_exception
from classvoice.core.exceptions import InvalidTransition, NotFound
from classvoice.models.lecture import LectureSession
from classvoice.models.like import Like
from classvoice.models.post import Post
from classvoice.services.lifecycle import (
    LectureStatus,
    SummarizedVia,
    is_purged,
    transition,
)

logger = logging.getLogger(__name__)


class PurgeService:
    """Delete the raw feedback of an ended lecture without summarizing it"""

    def __init__(self, db: Session):
        self.db = db

    def _get_lecture(self, lecture_id: int) -> LectureSession:
        lecture = (
            self.db.query(LectureSession)
            .filter(LectureSession.id == lecture_id)
            .first()
        )
        if not lecture:
            raise NotFound("Lecture not found")
        return lecture

    def _counts(self, lecture_id: int):
        posts_count = (
            self.db.query(func.count(Post.id))
            .filter(Post.lecture_id == lecture_id)
            .scalar()
        )
        likes_count = (
            self.db.query(func.count(Like.id))
            .join(Post, Post.id == Like.post_id)
            .filter(Post.lecture_id == lecture_id)
            .scalar()
        )
        return posts_count or 0, likes_count or 0

    def preview(self, lecture_id: int) -> dict:
        """What a purge would delete right now"""
        lecture = self._get_lecture(lecture_id)
        posts_count, likes_count = self._counts(lecture_id)

        return {
            "lecture_id": lecture_id,
            "status": lecture.status,
            "posts_count": posts_count,
            "likes_count": likes_count,
            "can_delete": lecture.status == LectureStatus.ENDED.value,
            "already_deleted": is_purged(lecture),
        }

    def _nothing_to_purge(self, lecture: LectureSession) -> dict:
        if is_purged(lecture):
            message = "Lecture data was already removed"
        else:
            message = "Lecture was summarized; raw data retained"
        logger.info(f"Lecture {lecture.id} already summarized; nothing to purge")
        return {
            "lecture_id": lecture.id,
            "status": lecture.status,
            "deleted_posts_count": 0,
            "deleted_likes_count": 0,
            "message": message,
        }

    @db_exception
    def purge(self, lecture_id: int, now: Optional[datetime] = None) -> dict:
        """
        Remove every post and like of an ended lecture and move it to
        summarized. Calling it again on a summarized lecture deletes nothing.
        """
        now = now or utc_now()
        lecture = self._get_lecture(lecture_id)

        if lecture.status == LectureStatus.SUMMARIZED.value:
            return self._nothing_to_purge(lecture)

        if lecture.status != LectureStatus.ENDED.value:
            raise InvalidTransition(
                f"Only ended lectures can be purged (status: {lecture.status})"
            )

        post_ids = select(Post.id).where(Post.lecture_id == lecture_id)
        likes_deleted = self.db.execute(
            delete(Like)
            .where(Like.post_id.in_(post_ids))
            .execution_options(synchronize_session=False)
        ).rowcount
        posts_deleted = self.db.execute(
            delete(Post)
            .where(Post.lecture_id == lecture_id)
            .execution_options(synchronize_session=False)
        ).rowcount

        moved = transition(
            self.db,
            lecture_id,
            LectureStatus.ENDED,
            LectureStatus.SUMMARIZED,
            now,
            summarized_via=SummarizedVia.PURGE,
        )
        if not moved:
            self.db.rollback()
            # a concurrent purge or summary got there first
            lecture = self._get_lecture(lecture_id)
            if lecture.status == LectureStatus.SUMMARIZED.value:
                return self._nothing_to_purge(lecture)
            raise InvalidTransition("Lecture status changed concurrently")

        self.db.commit()
        logger.info(
            f"Lecture {lecture_id} purged: {posts_deleted} posts, "
            f"{likes_deleted} likes"
        )

        return {
            "lecture_id": lecture_id,
            "status": LectureStatus.SUMMARIZED.value,
            "deleted_posts_count": posts_deleted,
            "deleted_likes_count": likes_deleted,
            "message": "Lecture data deleted",
        }
