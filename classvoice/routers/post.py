# classvoice/routers/post.py
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from classvoice.core.clock import get_now
from classvoice.core.config import settings
from classvoice.core.database import get_db
from classvoice.core.dependencies import get_current_admin
from classvoice.core.limiter import limiter
from classvoice.schemas.post import (
    PostCreate,
    PostDeleteResponse,
    PostListResponse,
    PostResponse,
)
from classvoice.services.post import PostService

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
    responses={404: {"description": "Not found"}},
)

admin_router = APIRouter(
    prefix="/admin/posts",
    tags=["Posts (admin)"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=PostResponse, status_code=201)
@limiter.limit(settings.post_rate_limit)
def create_post(
    request: Request,
    post_in: PostCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Submit an anonymous post.
    Accepted only while the lecture is active and within its grace period.
    """
    return PostService(db).create_post(post_in.lecture_id, post_in.content, now=now)


@router.get("/{lecture_id}", response_model=PostListResponse)
def list_posts(
    lecture_id: int,
    sort: str = Query("newest", pattern="^(newest|popular)$"),
    db: Session = Depends(get_db),
):
    posts = PostService(db).get_posts(lecture_id, sort)
    return {
        "lecture_id": lecture_id,
        "sort": sort,
        "posts": posts,
        "total": len(posts),
    }


@admin_router.post("/{post_id}/delete", response_model=PostDeleteResponse)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_admin: Dict[str, Any] = Depends(get_current_admin),
):
    """Hide a post from listings and summaries."""
    post = PostService(db).soft_delete_post(post_id, now=now)
    return {"id": post.id, "deleted_at": post.deleted_at, "message": "Post deleted"}
