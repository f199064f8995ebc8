# classvoice/services/course.py
import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classvoice.core.decorator import db_exception
from classvoice.core.exceptions import AlreadyExists, NotFound
from classvoice.models.course import Course
from classvoice.schemas.course import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)


class CourseService:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def create_course(self, course_in: CourseCreate) -> Course:
        """Create a new course (admin only)"""
        course = Course(**course_in.model_dump())

        self.db.add(course)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyExists(f"Course code '{course.code}' already exists")
        self.db.refresh(course)

        logger.info(f"Course created: {course.code}")
        return course

    def get_course(self, course_id: int) -> Course:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFound("Course not found")
        return course

    def get_courses(
        self,
        page: int = 1,
        size: int = 20,
        search: Optional[str] = None,
    ) -> Tuple[List[Course], dict]:
        """Get list of courses with pagination"""
        query = self.db.query(Course)

        # Search by code or title
        if search:
            search_pattern = f"%{search}%"
            query = query.filter(
                (Course.code.ilike(search_pattern))
                | (Course.title.ilike(search_pattern))
            )

        total = query.count()

        offset = (page - 1) * size
        courses = query.order_by(Course.code.asc()).offset(offset).limit(size).all()

        total_pages = math.ceil(total / size) if size > 0 else 0
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": total_pages,
        }

        return courses, pagination

    @db_exception
    def update_course(self, course_id: int, course_in: CourseUpdate) -> Course:
        course = self.get_course(course_id)

        for field, value in course_in.model_dump(exclude_unset=True).items():
            setattr(course, field, value)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyExists(f"Course code '{course_in.code}' already exists")
        self.db.refresh(course)

        return course

    @db_exception
    def delete_course(self, course_id: int) -> bool:
        """Delete a course together with its sessions, posts, likes and summaries"""
        course = self.get_course(course_id)

        self.db.delete(course)
        self.db.commit()

        logger.info(f"Course deleted: {course_id}")
        return True
