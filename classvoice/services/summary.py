# classvoice/services/summary.py
"""
Summarization pipeline for ended lectures.

The posts are read and the prompt is rendered inside one short transaction,
which is closed before the model is called. The summary row and the
ended -> summarized transition are written afterwards; the unique
summaries.lecture_id constraint decides between concurrent runs.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from classvoice.core.clock import utc_now
from classvoice.core.config import settings
from classvoice.core.exceptions import (
    AlreadyExists,
    InvalidTransition,
    NoContent,
    NotFound,
    StorageError,
    UpstreamError,
)
from classvoice.models.lecture import LectureSession
from classvoice.models.like import Like
from classvoice.models.post import Post
from classvoice.models.summary import Summary
from classvoice.services.lifecycle import LectureStatus, SummarizedVia, transition
from classvoice.utils.prompts import get_lecture_summary_prompt

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
    async def summarize(self, text: str) -> str: ...


class SummaryService:
    def __init__(self, db: Session, summarizer: Optional[Summarizer] = None):
        self.db = db
        self.summarizer = summarizer

    def get_summary(self, lecture_id: int) -> Summary:
        summary = (
            self.db.query(Summary)
            .options(joinedload(Summary.lecture).joinedload(LectureSession.course))
            .filter(Summary.lecture_id == lecture_id)
            .first()
        )
        if not summary:
            raise NotFound("Summary not found")
        return summary

    async def summarize(
        self, lecture_id: int, now: Optional[datetime] = None
    ) -> Summary:
        """
        Generate and store the summary of an ended lecture.

        Raises:
            NotFound: unknown lecture
            AlreadyExists: a summary is already stored
            InvalidTransition: the lecture is not ended
            NoContent: the lecture has no visible posts
            UpstreamError: the model call failed
        """
        if self.summarizer is None:
            raise UpstreamError("No summarizer configured")

        now = now or utc_now()
        prompt, total_posts, total_likes = self._prepare(lecture_id)

        try:
            summary_text = await self.summarizer.summarize(prompt)
        except UpstreamError:
            raise
        except Exception as e:
            logger.error(f"Summarizer failed for lecture {lecture_id}: {e}")
            raise UpstreamError(f"Summary generation failed: {e}")

        summary_text = (summary_text or "").strip()
        if not summary_text:
            raise UpstreamError("Summary generation returned no text")

        summary = Summary(
            lecture_id=lecture_id,
            summary_text=summary_text,
            total_posts_count=total_posts,
            total_likes_count=total_likes,
            created_at=now,
        )
        self.db.add(summary)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyExists("Summary already exists")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store summary for lecture {lecture_id}: {e}")
            raise StorageError("Failed to store summary")
        self.db.refresh(summary)

        logger.info(f"Summary {summary.id} stored for lecture {lecture_id}")
        self._mark_summarized(lecture_id, now)
        return summary

    def _prepare(self, lecture_id: int):
        lecture = (
            self.db.query(LectureSession)
            .filter(LectureSession.id == lecture_id)
            .first()
        )
        if not lecture:
            raise NotFound("Lecture not found")

        existing = (
            self.db.query(Summary.id).filter(Summary.lecture_id == lecture_id).first()
        )
        if existing:
            raise AlreadyExists("Summary already exists")

        if lecture.status != LectureStatus.ENDED.value:
            raise InvalidTransition(
                f"Only ended lectures can be summarized (status: {lecture.status})"
            )

        posts = (
            self.db.query(Post.content, Post.like_count)
            .filter(Post.lecture_id == lecture_id, Post.deleted_at.is_(None))
            .order_by(Post.like_count.desc(), Post.created_at.desc(), Post.id.desc())
            .all()
        )
        if not posts:
            raise NoContent("No posts to summarize")

        total_likes = (
            self.db.query(func.count(Like.id))
            .join(Post, Post.id == Like.post_id)
            .filter(Post.lecture_id == lecture_id, Post.deleted_at.is_(None))
            .scalar()
        )

        prompt = get_lecture_summary_prompt(
            posts[: settings.summary_max_posts], len(posts), total_likes or 0
        )

        # end the read transaction before the slow external call
        self.db.commit()
        return prompt, len(posts), total_likes or 0

    def _mark_summarized(self, lecture_id: int, now: datetime) -> None:
        try:
            moved = transition(
                self.db,
                lecture_id,
                LectureStatus.ENDED,
                LectureStatus.SUMMARIZED,
                now,
                summarized_via=SummarizedVia.SUMMARY,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Summary stored but lecture {lecture_id} was not marked "
                f"summarized: {e}"
            )
            return

        if not moved:
            logger.error(
                f"Summary stored but lecture {lecture_id} was no longer ended; "
                "status needs manual reconciliation"
            )
