"""Post endpoints: create, list, get, like-toggle, comment, delete."""
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.schemas.common import ApiResponse
from app.schemas.post import CommentCreate, PostPage, PostResponse
from app.schemas.user import UserIdentity
from app.services.interaction_service import add_comment, toggle_like
from app.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT
from app.services.post_service import create_post, delete_post, get_post, list_posts, post_to_response

router = APIRouter(prefix="/posts", tags=["posts"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=ApiResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    content: str | None = Form(None),
    image: UploadFile | None = File(None),
    current_user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await create_post(db, current_user, content=content, image=image)
    return ApiResponse(message="Post created successfully", data=post_to_response(post))


@router.get("", response_model=ApiResponse[PostPage])
async def list_posts_endpoint(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await list_posts(db, page, limit))


@router.get("/{post_id}", response_model=ApiResponse[PostResponse])
async def get_post_endpoint(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    post = await get_post(db, post_id)
    return ApiResponse(data=post_to_response(post))


@router.put("/{post_id}/like", response_model=ApiResponse[PostResponse])
async def toggle_like_endpoint(
    post_id: UUID,
    current_user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post, liked = await toggle_like(db, post_id, current_user)
    return ApiResponse(message="Post liked" if liked else "Post unliked", data=post_to_response(post))


@router.post("/{post_id}/comment", response_model=ApiResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def add_comment_endpoint(
    post_id: UUID,
    data: CommentCreate,
    current_user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await add_comment(db, post_id, current_user, data.text)
    return ApiResponse(message="Comment added successfully", data=post_to_response(post))


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def delete_post_endpoint(
    post_id: UUID,
    current_user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await delete_post(db, post_id, current_user)
    return ApiResponse(message="Post deleted successfully")
