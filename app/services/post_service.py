"""Post business logic: create, read, list, delete, and the atomic update primitive."""
import asyncio
import logging
import random
from collections.abc import Callable
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.db.session import utcnow
from app.models.post import CONTENT_MAX_LENGTH, Post
from app.schemas.post import CommentResponse, LikeResponse, PostPage, PostResponse
from app.schemas.user import UserIdentity
from app.services.pagination import paginate
from app.services.storage_service import remove_media, store_image

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 5
RETRY_BACKOFF_SECONDS = 0.01


def _post_query():
    return select(Post).options(selectinload(Post.likes), selectinload(Post.comments))


async def get_post(db: AsyncSession, post_id: UUID, for_update: bool = False) -> Post:
    q = _post_query().where(Post.id == post_id)
    if for_update:
        q = q.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(q)
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def create_post(
    db: AsyncSession,
    author: UserIdentity,
    content: str | None = None,
    image: UploadFile | None = None,
) -> Post:
    content = (content or "").strip()
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Post cannot exceed {CONTENT_MAX_LENGTH} characters",
            errors=[{"field": "content", "message": f"at most {CONTENT_MAX_LENGTH} characters"}],
        )
    has_image = image is not None and bool(image.filename)
    if not content and not has_image:
        raise ValidationError("Post must have either content or an image")

    image_url = await store_image(image) if has_image else None
    post = Post(
        user_id=author.id,
        username=author.username,
        content=content,
        image_url=image_url,
        likes=[],
        comments=[],
    )
    db.add(post)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        remove_media(image_url)
        raise
    logger.info("Post %s created by %s", post.id, author.id)
    return post


async def list_posts(db: AsyncSession, page: int, limit: int) -> PostPage:
    """Most recent first; equal timestamps fall back to id so pages are stable."""
    stmt = _post_query().order_by(desc(Post.created_at), desc(Post.id))
    posts, meta = await paginate(db, stmt, page, limit)
    return PostPage(items=[post_to_response(p) for p in posts], pagination=meta)


async def apply_post_update(db: AsyncSession, post_id: UUID, mutate: Callable[[Post], None]) -> Post:
    """Apply ``mutate`` to one post and commit it as a single versioned write.

    The row is locked where the backend supports it; the version check on the
    post row catches any writer that slipped in between read and commit, in
    which case the transaction is discarded and ``mutate`` re-runs on fresh state.
    """
    for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
        post = await get_post(db, post_id, for_update=True)
        mutate(post)
        post.updated_at = utcnow()
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.warning("Concurrent update on post %s (attempt %d/%d)", post_id, attempt, MAX_WRITE_ATTEMPTS)
            if attempt < MAX_WRITE_ATTEMPTS:
                await asyncio.sleep(random.uniform(0, RETRY_BACKOFF_SECONDS * attempt))
            continue
        return post
    raise ConflictError("Post was modified concurrently, please retry")


async def delete_post(db: AsyncSession, post_id: UUID, requester: UserIdentity) -> None:
    post = await get_post(db, post_id, for_update=True)
    if post.user_id != requester.id:
        raise AuthorizationError("Not authorized to delete this post")
    image_url = post.image_url
    remove_media(image_url)
    await db.delete(post)
    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        if image_url:
            logger.error("Delete of post %s failed after its media was removed; orphaned image %s", post_id, image_url)
        if isinstance(e, StaleDataError):
            raise ConflictError("Post was modified concurrently, please retry") from e
        raise
    logger.info("Post %s deleted by %s", post_id, requester.id)


def post_to_response(post: Post) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        username=post.username,
        content=post.content or "",
        image_url=post.image_url,
        likes=[LikeResponse.model_validate(like) for like in post.likes],
        comments=[CommentResponse.model_validate(c) for c in post.comments],
        likes_count=post.likes_count,
        comments_count=post.comments_count,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )
