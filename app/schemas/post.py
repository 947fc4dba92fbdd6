"""Pydantic schemas for Post and its likes/comments."""
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, StringConstraints

from app.models.comment import COMMENT_MAX_LENGTH


class CommentCreate(BaseModel):
    text: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=COMMENT_MAX_LENGTH)]


class LikeResponse(BaseModel):
    user_id: UUID
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: UUID
    user_id: UUID
    username: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    id: UUID
    user_id: UUID
    username: str
    content: str = ""
    image_url: str | None = None
    likes: list[LikeResponse] = []
    comments: list[CommentResponse] = []
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginationMeta(BaseModel):
    current_page: int
    limit: int
    total_pages: int
    total_posts: int
    has_more: bool


class PostPage(BaseModel):
    items: list[PostResponse]
    pagination: PaginationMeta
