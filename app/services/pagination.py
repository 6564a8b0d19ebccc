"""Offset pagination over SQLAlchemy select statements."""
from typing import Any, NamedTuple
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession


class Page(NamedTuple):
    items: list[Any]
    total: int
    page: int
    page_size: int
    pages: int

    def as_dict(self) -> dict[str, Any]:
        return self._asdict()


async def fetch_page(db: AsyncSession, query: Select, page: int, page_size: int) -> Page:
    """Run ``query`` for one page of scalar results plus the total count."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    items = list(result.scalars().all())

    return Page(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )
