# classvoice/models/like.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from classvoice.core.database import Base


class Like(Base):
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    post_id = Column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Opaque per-browser token, not an account
    user_identifier = Column(String(255), nullable=False)

    # Timestamp
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Unique constraint: one identifier can only like a post once
    __table_args__ = (
        UniqueConstraint("post_id", "user_identifier", name="unique_post_like"),
    )

    def __repr__(self):
        return f"<Like(post_id={self.post_id}, user_identifier='{self.user_identifier}')>"
