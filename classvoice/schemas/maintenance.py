# classvoice/schemas/maintenance.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class EndedLecture(BaseModel):
    lecture_id: int
    course_id: int
    session_number: int
    scheduled_end_time: Optional[datetime] = None


class AutoEndResponse(BaseModel):
    checked_at: datetime
    active_lectures_count: int
    processed_count: int
    ended_lectures: List[EndedLecture]


class SummarizeResult(BaseModel):
    lecture_id: int
    status: str  # success | error
    summary_id: Optional[int] = None
    error: Optional[str] = None


class AutoSummarizeResponse(BaseModel):
    checked_at: datetime
    ended_lectures_count: int
    processed_count: int
    success_count: int
    error_count: int
    results: List[SummarizeResult]
