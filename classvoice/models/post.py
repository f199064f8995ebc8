# classvoice/models/post.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.sql import func

from classvoice.core.database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    lecture_id = Column(
        Integer,
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Content
    content = Column(Text, nullable=False)

    # Statistics (cache of count(likes), maintained with atomic updates)
    like_count = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("like_count >= 0", name="check_like_count_non_negative"),
    )

    def __repr__(self):
        return f"<Post(id={self.id}, lecture_id={self.lecture_id}, likes={self.like_count})>"
