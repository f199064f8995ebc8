# classvoice/schemas/lecture.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from classvoice.core.clock import as_utc

# ==================== Lecture Session Schemas ====================


class LectureCreate(BaseModel):
    course_id: int
    session_number: int = Field(..., ge=1, le=15)
    scheduled_start_time: Optional[datetime] = None
    scheduled_end_time: Optional[datetime] = None
    is_rescheduled: bool = False

    @model_validator(mode="after")
    def check_schedule(self):
        if (
            self.scheduled_start_time
            and self.scheduled_end_time
            and as_utc(self.scheduled_end_time) <= as_utc(self.scheduled_start_time)
        ):
            raise ValueError("scheduled_end_time must be after scheduled_start_time")
        return self


class LectureUpdate(BaseModel):
    session_number: Optional[int] = Field(None, ge=1, le=15)
    status: Optional[str] = Field(
        None, pattern="^(scheduled|active|ended|summarized)$"
    )
    scheduled_start_time: Optional[datetime] = None
    scheduled_end_time: Optional[datetime] = None
    is_rescheduled: Optional[bool] = None


class CourseBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    title: str


class LectureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    session_number: int
    status: str
    summarized_via: Optional[str] = None
    scheduled_start_time: Optional[datetime] = None
    scheduled_end_time: Optional[datetime] = None
    is_rescheduled: bool
    created_at: datetime
    updated_at: datetime


class LectureWithCourseResponse(LectureResponse):
    course: Optional[CourseBrief] = None


class LectureListResponse(BaseModel):
    lectures: List[LectureWithCourseResponse]
    total: int
    page: int
    size: int
    total_pages: int


# ==================== Window / Transition Schemas ====================


class OpenStateResponse(BaseModel):
    lecture_id: int
    status: str
    is_open: bool
    remaining_minutes: Optional[int] = None
    scheduled_end_time: Optional[datetime] = None
    grace_period_end_time: Optional[datetime] = None


class TransitionResponse(BaseModel):
    lecture_id: int
    status: str
    message: str
