"""Likes and comments on a single post."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.comment import COMMENT_MAX_LENGTH, Comment
from app.models.engagement import Like
from app.models.post import Post
from app.schemas.user import UserIdentity
from app.services.post_service import apply_post_update

logger = logging.getLogger(__name__)


async def toggle_like(db: AsyncSession, post_id: UUID, user: UserIdentity) -> tuple[Post, bool]:
    """Like the post, or unlike it if the user already does. Returns (post, liked)."""
    liked = False

    def mutate(post: Post) -> None:
        nonlocal liked
        existing = next((like for like in post.likes if like.user_id == user.id), None)
        if existing is not None:
            post.likes.remove(existing)
            liked = False
        else:
            post.likes.append(Like(user_id=user.id, username=user.username))
            liked = True

    post = await apply_post_update(db, post_id, mutate)
    logger.info("Post %s %s by %s", post_id, "liked" if liked else "unliked", user.id)
    return post, liked


def validate_comment_text(text: str | None) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty", errors=[{"field": "text", "message": "must not be empty"}])
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters",
            errors=[{"field": "text", "message": f"at most {COMMENT_MAX_LENGTH} characters"}],
        )
    return text


async def add_comment(db: AsyncSession, post_id: UUID, user: UserIdentity, text: str) -> Post:
    text = validate_comment_text(text)

    def mutate(post: Post) -> None:
        post.comments.append(Comment(user_id=user.id, username=user.username, text=text))

    post = await apply_post_update(db, post_id, mutate)
    logger.info("Comment added to post %s by %s", post_id, user.id)
    return post
