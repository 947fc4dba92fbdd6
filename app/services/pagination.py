"""Page-based pagination over ordered selects."""
import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.schemas.post import PaginationMeta

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def page_offset(page: int, limit: int) -> int:
    if page < 1:
        raise ValidationError("Page must be at least 1", errors=[{"field": "page", "message": "must be >= 1"}])
    if limit < 1:
        raise ValidationError("Limit must be at least 1", errors=[{"field": "limit", "message": "must be >= 1"}])
    return (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    return PaginationMeta(
        current_page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
        total_posts=total,
        has_more=page * limit < total,
    )


async def paginate(db: AsyncSession, stmt: Select, page: int, limit: int) -> tuple[list[Any], PaginationMeta]:
    """Run ``stmt`` (already ordered) for one page and count the full result.

    Windows are computed per call; rows inserted or deleted between two page
    fetches can shift items across page boundaries.
    """
    skip = page_offset(page, limit)
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all()), build_pagination(page, limit, total)
