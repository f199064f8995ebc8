# classvoice/schemas/post.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Content length is checked by PostService so the error code stays specific


class PostCreate(BaseModel):
    lecture_id: int
    content: str


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lecture_id: int
    content: str
    like_count: int
    created_at: datetime


class PostListResponse(BaseModel):
    lecture_id: int
    sort: str
    posts: List[PostResponse]
    total: int


class PostDeleteResponse(BaseModel):
    id: int
    deleted_at: Optional[datetime] = None
    message: str


# ==================== Likes ====================


class LikeToggleRequest(BaseModel):
    post_id: int
    user_identifier: str = Field(..., min_length=1, max_length=255)


class LikeToggleResponse(BaseModel):
    post_id: int
    liked: bool


class LikeStatusResponse(BaseModel):
    post_id: int
    user_identifier: str
    liked: bool


class ReconcileLikesResponse(BaseModel):
    lecture_id: Optional[int] = None
    corrected_posts: int
