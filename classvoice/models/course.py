# classvoice/models/course.py
from sqlalchemy import Column, Date, DateTime, Integer, String, Time
from sqlalchemy.sql import func

from classvoice.core.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)

    # Basic Info
    code = Column(String(50), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)

    # Scheduling template
    total_sessions = Column(Integer, nullable=False, default=15)
    regular_day_of_week = Column(Integer, nullable=True)  # 0 = Sunday
    regular_start_time = Column(Time, nullable=True)
    regular_end_time = Column(Time, nullable=True)
    first_session_date = Column(Date, nullable=True)

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

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}', title='{self.title}')>"
