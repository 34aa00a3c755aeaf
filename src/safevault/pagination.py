"""Offset pagination shared by every list endpoint."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import func, select

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


def build_pagination(page: int, per_page: int, total: int) -> Pagination:
    """Page metadata for ``total`` items split into pages of ``per_page``."""
    return Pagination(
        current_page=page,
        total_pages=math.ceil(total / per_page) if per_page else 0,
        total_items=total,
        items_per_page=per_page,
    )


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[Any], Pagination]:
    """Run ``query`` for one page of ORM rows.

    The count is taken over the same filtered query without its ordering.

    Returns:
        Tuple of (rows on the page, pagination metadata).
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
    rows = list(result.scalars().all())
    return rows, build_pagination(page, per_page, total)
