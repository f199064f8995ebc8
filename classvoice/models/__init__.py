"""
Models package initialization
Import all models and setup relationships
"""

from .course import Course
from .lecture import LectureSession
from .like import Like
from .post import Post

# Import and setup relationships
from .relations import setup_relationships
from .summary import Summary

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Course",
    "LectureSession",
    "Like",
    "Post",
    "Summary",
]
