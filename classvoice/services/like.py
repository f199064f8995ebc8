# classvoice/services/like.py
"""
Like toggling.

The (post_id, user_identifier) unique constraint is the source of truth;
posts.like_count is a cache kept in step with atomic increments and
decrements. It never goes below zero and reconcile_like_counts() can rebuild
it from the likes table at any time.
"""

import logging
from typing import Optional

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classvoice.core.decorator import db_exception
from classvoice.core.exceptions import NotFound, ValidationError
from classvoice.models.like import Like
from classvoice.models.post import Post

logger = logging.getLogger(__name__)


class LikeService:
    def __init__(self, db: Session):
        self.db = db

    def _find_like(self, post_id: int, user_identifier: str) -> Optional[Like]:
        return (
            self.db.query(Like)
            .filter(Like.post_id == post_id, Like.user_identifier == user_identifier)
            .first()
        )

    @db_exception
    def toggle_like(self, post_id: int, user_identifier: str) -> bool:
        """
        Flip the like of *user_identifier* on *post_id*.

        Returns the resulting state: True when the post is now liked.
        """
        user_identifier = (user_identifier or "").strip()
        if not user_identifier:
            raise ValidationError("user_identifier is required")

        post = (
            self.db.query(Post.id)
            .filter(Post.id == post_id, Post.deleted_at.is_(None))
            .first()
        )
        if not post:
            raise NotFound("Post not found")

        existing = self._find_like(post_id, user_identifier)
        if existing:
            return self._unlike(existing)
        return self._like(post_id, user_identifier)

    def _like(self, post_id: int, user_identifier: str) -> bool:
        try:
            with self.db.begin_nested():
                self.db.add(Like(post_id=post_id, user_identifier=user_identifier))
        except IntegrityError:
            # a concurrent toggle inserted the same pair first; the like exists
            self.db.commit()
            logger.info(f"Duplicate like on post {post_id} ignored")
            return True

        self.db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(like_count=Post.like_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return True

    def _unlike(self, like: Like) -> bool:
        post_id = like.post_id
        result = self.db.execute(
            delete(Like)
            .where(Like.id == like.id)
            .execution_options(synchronize_session=False)
        )

        # only the caller that actually removed the row adjusts the cache
        if result.rowcount == 1:
            self.db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(
                    like_count=case(
                        (Post.like_count > 0, Post.like_count - 1), else_=0
                    )
                )
                .execution_options(synchronize_session=False)
            )

        self.db.commit()
        return False

    def is_liked(self, post_id: int, user_identifier: str) -> bool:
        return self._find_like(post_id, user_identifier) is not None

    @db_exception
    def reconcile_like_counts(self, lecture_id: Optional[int] = None) -> int:
        """
        Rewrite like_count from the likes table where the cache drifted.

        Returns the number of posts corrected.
        """
        counts = (
            select(Like.post_id, func.count(Like.id).label("actual"))
            .group_by(Like.post_id)
            .subquery()
        )
        query = self.db.query(
            Post.id, Post.like_count, func.coalesce(counts.c.actual, 0)
        ).outerjoin(counts, counts.c.post_id == Post.id)

        if lecture_id is not None:
            query = query.filter(Post.lecture_id == lecture_id)

        corrected = 0
        for post_id, cached, actual in query.all():
            if cached == actual:
                continue
            self.db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(like_count=actual)
                .execution_options(synchronize_session=False)
            )
            corrected += 1
            logger.warning(
                f"Post {post_id}: like_count {cached} corrected to {actual}"
            )

        self.db.commit()
        return corrected
