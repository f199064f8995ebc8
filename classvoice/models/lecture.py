# classvoice/models/lecture.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from classvoice.core.database import Base


class LectureSession(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)

    # Course relationship
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_number = Column(Integer, nullable=False)

    # Lifecycle: scheduled, active, ended, summarized
    status = Column(String(20), default="scheduled", nullable=False, index=True)
    # How the terminal state was reached: summary, purge (NULL before that)
    summarized_via = Column(String(20), nullable=True)

    # Schedule
    scheduled_start_time = Column(DateTime(timezone=True), nullable=True)
    scheduled_end_time = Column(DateTime(timezone=True), nullable=True)
    is_rescheduled = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("course_id", "session_number", name="unique_course_session"),
        CheckConstraint(
            "status IN ('scheduled', 'active', 'ended', 'summarized')",
            name="check_lecture_status",
        ),
    )

    def __repr__(self):
        return (
            f"<LectureSession(id={self.id}, course_id={self.course_id}, "
            f"session_number={self.session_number}, status='{self.status}')>"
        )
