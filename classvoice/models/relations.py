# classvoice/models/relations.py

from sqlalchemy.orm import relationship

from .course import Course
from .lecture import LectureSession
from .like import Like
from .post import Post
from .summary import Summary


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    Deleting a parent through the ORM cascades down the ownership chain
    Course -> LectureSession -> {Post -> Like, Summary}.
    """

    # 1. Course to Sessions (One-to-Many)
    Course.lectures = relationship(
        "LectureSession",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LectureSession.session_number",
    )
    LectureSession.course = relationship("Course", back_populates="lectures")

    # 2. Session to Posts (One-to-Many)
    LectureSession.posts = relationship(
        "Post",
        back_populates="lecture",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    Post.lecture = relationship("LectureSession", back_populates="posts")

    # 3. Session to Summary (One-to-One)
    LectureSession.summary = relationship(
        "Summary",
        back_populates="lecture",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    Summary.lecture = relationship("LectureSession", back_populates="summary")

    # 4. Post to Likes (One-to-Many)
    Post.likes = relationship(
        "Like",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    Like.post = relationship("Post", back_populates="likes")
