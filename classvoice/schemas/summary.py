# classvoice/schemas/summary.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from classvoice.schemas.lecture import CourseBrief


class SummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lecture_id: int
    summary_text: str
    total_posts_count: Optional[int] = None
    total_likes_count: Optional[int] = None
    created_at: datetime


class LectureBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_number: int
    status: str
    scheduled_start_time: Optional[datetime] = None
    scheduled_end_time: Optional[datetime] = None
    course: Optional[CourseBrief] = None


class SummaryWithLectureResponse(SummaryResponse):
    lecture: Optional[LectureBrief] = None


# ==================== Purge ====================


class PurgePreviewResponse(BaseModel):
    lecture_id: int
    status: str
    posts_count: int
    likes_count: int
    can_delete: bool
    already_deleted: bool


class PurgeResponse(BaseModel):
    lecture_id: int
    status: str
    deleted_posts_count: int
    deleted_likes_count: int
    message: str
