# classvoice/routers/like.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from classvoice.core.config import settings
from classvoice.core.database import get_db
from classvoice.core.limiter import limiter
from classvoice.schemas.post import (
    LikeStatusResponse,
    LikeToggleRequest,
    LikeToggleResponse,
)
from classvoice.services.like import LikeService

router = APIRouter(
    prefix="/likes",
    tags=["Likes"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=LikeToggleResponse)
@limiter.limit(settings.like_rate_limit)
def toggle_like(
    request: Request,
    like_in: LikeToggleRequest,
    db: Session = Depends(get_db),
):
    """
    Like or unlike a post.
    Returns the state after the call: liked=true when the post is now liked.
    """
    liked = LikeService(db).toggle_like(like_in.post_id, like_in.user_identifier)
    return {"post_id": like_in.post_id, "liked": liked}


@router.get("", response_model=LikeStatusResponse)
def get_like_status(
    post_id: int = Query(...),
    user_identifier: str = Query(..., min_length=1, max_length=255),
    db: Session = Depends(get_db),
):
    liked = LikeService(db).is_liked(post_id, user_identifier)
    return {"post_id": post_id, "user_identifier": user_identifier, "liked": liked}
