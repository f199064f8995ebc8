# classvoice/routers/lecture.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from classvoice.core.clock import get_now
from classvoice.core.database import get_db
from classvoice.core.dependencies import get_current_admin
from classvoice.schemas.lecture import (
    LectureCreate,
    LectureListResponse,
    LectureUpdate,
    LectureWithCourseResponse,
    OpenStateResponse,
    TransitionResponse,
)
from classvoice.schemas.post import ReconcileLikesResponse
from classvoice.schemas.summary import (
    PurgePreviewResponse,
    PurgeResponse,
    SummaryWithLectureResponse,
)
from classvoice.services.lecture import LectureService
from classvoice.services.like import LikeService
from classvoice.services.purge import PurgeService
from classvoice.services.summary import SummaryService
from classvoice.utils.ai import get_summarizer

admin_router = APIRouter(
    prefix="/admin/lectures",
    tags=["Lectures (admin)"],
    responses={404: {"description": "Not found"}},
)

router = APIRouter(
    prefix="/lectures",
    tags=["Lectures"],
    responses={404: {"description": "Not found"}},
)


# ==================== Admin Endpoints ====================


@admin_router.get("", response_model=LectureListResponse)
def list_lectures(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    course_id: Optional[int] = Query(None, description="Filter by course"),
    status: Optional[str] = Query(
        None,
        pattern="^(scheduled|active|ended|summarized)$",
        description="Filter by status",
    ),
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    service = LectureService(db)
    lectures, pagination = service.get_lectures(
        page=page, size=size, course_id=course_id, status=status
    )
    return {"lectures": lectures, **pagination}


@admin_router.post("", response_model=LectureWithCourseResponse, status_code=201)
def create_lecture(
    lecture_in: LectureCreate,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    Create a lecture session in the scheduled state.
    Fails with 409 when the course already has this session number.
    """
    service = LectureService(db)
    lecture = service.create_lecture(lecture_in)
    return service.get_lecture(lecture.id)


@admin_router.patch("/{lecture_id}", response_model=LectureWithCourseResponse)
def update_lecture(
    lecture_id: int,
    lecture_in: LectureUpdate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    return LectureService(db).update_lecture(lecture_id, lecture_in, now=now)


@admin_router.delete("/{lecture_id}", status_code=204)
def delete_lecture(
    lecture_id: int,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    LectureService(db).delete_lecture(lecture_id)
    return None


@admin_router.post("/{lecture_id}/activate", response_model=TransitionResponse)
def activate_lecture(
    lecture_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    lecture = LectureService(db).activate_lecture(lecture_id, now=now)
    return {
        "lecture_id": lecture.id,
        "status": lecture.status,
        "message": "Lecture started",
    }


@admin_router.post(
    "/{lecture_id}/reconcile-likes", response_model=ReconcileLikesResponse
)
def reconcile_likes(
    lecture_id: int,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """Rebuild the cached like counts of one lecture from the likes table."""
    LectureService(db).get_lecture(lecture_id)
    corrected = LikeService(db).reconcile_like_counts(lecture_id)
    return {"lecture_id": lecture_id, "corrected_posts": corrected}


# ==================== Public Endpoints ====================


@router.get("/active", response_model=List[LectureWithCourseResponse])
def list_active_lectures(db: Session = Depends(get_db)):
    """Lectures currently accepting feedback, latest start first."""
    return LectureService(db).get_active_lectures()


@router.get("/search", response_model=LectureWithCourseResponse)
def search_lecture(
    code: str = Query(..., min_length=1, max_length=50, description="Course code"),
    db: Session = Depends(get_db),
):
    """Find the latest active lecture of a course by its code."""
    return LectureService(db).search_active_by_code(code)


@router.get("/{lecture_id}", response_model=LectureWithCourseResponse)
def get_lecture(lecture_id: int, db: Session = Depends(get_db)):
    return LectureService(db).get_lecture(lecture_id)


@router.get("/{lecture_id}/status", response_model=OpenStateResponse)
def get_open_state(
    lecture_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Whether the lecture accepts posts right now, and for how many more
    minutes when it has a scheduled end.
    """
    return LectureService(db).get_open_state(lecture_id, now=now)


@router.post("/{lecture_id}/end", response_model=TransitionResponse)
def end_lecture(
    lecture_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    lecture = LectureService(db).end_lecture(lecture_id, now=now)
    return {
        "lecture_id": lecture.id,
        "status": lecture.status,
        "message": "Lecture ended",
    }


@router.post(
    "/{lecture_id}/summarize",
    response_model=SummaryWithLectureResponse,
    status_code=201,
)
async def summarize_lecture(
    lecture_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    summarizer=Depends(get_summarizer),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    Generate the summary of an ended lecture.
    The lecture moves to summarized once the summary is stored.
    """
    service = SummaryService(db, summarizer)
    await service.summarize(lecture_id, now=now)
    return service.get_summary(lecture_id)


@router.get("/{lecture_id}/summary", response_model=SummaryWithLectureResponse)
def get_summary(lecture_id: int, db: Session = Depends(get_db)):
    return SummaryService(db).get_summary(lecture_id)


@router.get("/{lecture_id}/delete-data", response_model=PurgePreviewResponse)
def preview_purge(
    lecture_id: int,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    return PurgeService(db).preview(lecture_id)


@router.post("/{lecture_id}/delete-data", response_model=PurgeResponse)
def purge_lecture_data(
    lecture_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    Permanently delete every post and like of an ended lecture without
    summarizing it. Repeating the call on a purged lecture deletes nothing.
    """
    return PurgeService(db).purge(lecture_id, now=now)
