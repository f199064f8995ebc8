# classvoice/routers/course.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from classvoice.core.database import get_db
from classvoice.core.dependencies import get_current_admin
from classvoice.schemas.course import (
    CourseCreate,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
)
from classvoice.services.course import CourseService

router = APIRouter(
    prefix="/admin/courses",
    tags=["Courses"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=CourseListResponse)
def list_courses(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by code or title"),
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    List courses ordered by code.
    Only admins can list courses.
    """
    service = CourseService(db)
    courses, pagination = service.get_courses(page=page, size=size, search=search)
    return {"courses": courses, **pagination}


@router.post("", response_model=CourseResponse, status_code=201)
def create_course(
    course_in: CourseCreate,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    Create a new course.
    The code is stored upper-cased and must be unique.
    """
    return CourseService(db).create_course(course_in)


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    return CourseService(db).get_course(course_id)


@router.patch("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    return CourseService(db).update_course(course_id, course_in)


@router.delete("/{course_id}", status_code=204)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """
    Delete a course.
    All of its sessions, posts, likes and summaries are deleted with it.
    """
    CourseService(db).delete_course(course_id)
    return None
