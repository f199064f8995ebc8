# classvoice/services/post.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from classvoice.core.clock import utc_now
from classvoice.core.config import settings
from classvoice.core.decorator import db_exception
from classvoice.core.exceptions import (
    ContentEmpty,
    ContentTooLong,
    NotFound,
    ValidationError,
    WindowClosed,
)
from classvoice.models.lecture import LectureSession
from classvoice.models.post import Post
from classvoice.services import window

logger = logging.getLogger(__name__)

SORT_NEWEST = "newest"
SORT_POPULAR = "popular"


def clean_content(content: Optional[str], max_length: Optional[int] = None) -> str:
    """Trim a submission and enforce the length bounds."""
    max_length = max_length or settings.post_max_length
    text = (content or "").strip()
    if not text:
        raise ContentEmpty("Post content cannot be empty")
    if len(text) > max_length:
        raise ContentTooLong(f"Post content must be at most {max_length} characters")
    return text


class PostService:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def create_post(
        self, lecture_id: int, content: str, now: Optional[datetime] = None
    ) -> Post:
        """Accept an anonymous post while the session's window is open"""
        now = now or utc_now()
        text = clean_content(content)

        # FOR SHARE until commit: the gate check and the insert see one status
        lecture = (
            self.db.query(LectureSession)
            .filter(LectureSession.id == lecture_id)
            .with_for_update(read=True)
            .first()
        )
        if not lecture:
            raise NotFound("Lecture not found")

        if not window.is_open(lecture, now):
            self.db.rollback()
            raise WindowClosed("Submissions are closed for this lecture")

        post = Post(lecture_id=lecture_id, content=text, like_count=0, created_at=now)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)

        logger.info(f"Post {post.id} created for lecture {lecture_id}")
        return post

    def get_posts(self, lecture_id: int, sort: str = SORT_NEWEST) -> List[Post]:
        """Visible posts of a session, newest first or most liked first"""
        if sort not in (SORT_NEWEST, SORT_POPULAR):
            raise ValidationError("sort must be 'newest' or 'popular'")

        exists = (
            self.db.query(LectureSession.id)
            .filter(LectureSession.id == lecture_id)
            .first()
        )
        if not exists:
            raise NotFound("Lecture not found")

        query = self.db.query(Post).filter(
            Post.lecture_id == lecture_id, Post.deleted_at.is_(None)
        )

        if sort == SORT_POPULAR:
            query = query.order_by(
                Post.like_count.desc(), Post.created_at.desc(), Post.id.desc()
            )
        else:
            query = query.order_by(Post.created_at.desc(), Post.id.desc())

        return query.all()

    @db_exception
    def soft_delete_post(self, post_id: int, now: Optional[datetime] = None) -> Post:
        """Hide a post from every listing and from summaries (admin)"""
        now = now or utc_now()
        post = self.db.query(Post).filter(Post.id == post_id).first()
        if not post:
            raise NotFound("Post not found")

        if post.deleted_at is None:
            post.deleted_at = now
            self.db.commit()
            self.db.refresh(post)
            logger.info(f"Post {post_id} soft-deleted")

        return post
