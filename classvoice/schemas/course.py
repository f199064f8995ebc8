# classvoice/schemas/course.py
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CourseBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, description="Course code")
    title: str = Field(..., min_length=1, max_length=255)
    total_sessions: int = Field(15, ge=1, le=15)
    regular_day_of_week: Optional[int] = Field(
        None, ge=0, le=6, description="0 = Sunday ... 6 = Saturday"
    )
    regular_start_time: Optional[time] = None
    regular_end_time: Optional[time] = None
    first_session_date: Optional[date] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Course code cannot be empty")
        return v


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    total_sessions: Optional[int] = Field(None, ge=1, le=15)
    regular_day_of_week: Optional[int] = Field(None, ge=0, le=6)
    regular_start_time: Optional[time] = None
    regular_end_time: Optional[time] = None
    first_session_date: Optional[date] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if not v:
            raise ValueError("Course code cannot be empty")
        return v


class CourseResponse(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class CourseListResponse(BaseModel):
    courses: List[CourseResponse]
    total: int
    page: int
    size: int
    total_pages: int
