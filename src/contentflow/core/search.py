"""Content search with filters, sorting and pagination."""
import logging
import math
from typing import Optional

from sqlalchemy import String, case, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Content, Priority, Tag
from .schemas.search import SearchFilters, SearchPagination, SortField, SortOrder

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

_PRIORITY_RANK = case(
    {
        Priority.LOW.value: 0,
        Priority.MEDIUM.value: 1,
        Priority.HIGH.value: 2,
        Priority.URGENT.value: 3,
    },
    value=Content.priority,
    else_=1,
)

_SORT_COLUMNS = {
    SortField.CREATED_AT: Content.created_at,
    SortField.UPDATED_AT: Content.updated_at,
    SortField.TITLE: Content.title,
    SortField.PRIORITY: _PRIORITY_RANK,
    SortField.DUE_DATE: Content.due_date,
}


def build_search_query(filters: SearchFilters):
    """Build the filtered (unsorted, unpaginated) content query."""
    query = select(Content)

    if filters.query and filters.query.strip():
        pattern = f"%{filters.query.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(Content.title).like(pattern),
                func.lower(cast(Content.body, String)).like(pattern),
            )
        )
    if filters.statuses:
        query = query.where(Content.status.in_([s.value for s in filters.statuses]))
    if filters.types:
        query = query.where(Content.type.in_([t.value for t in filters.types]))
    if filters.priorities:
        query = query.where(Content.priority.in_([p.value for p in filters.priorities]))
    if filters.tags:
        names = [name.strip().lower() for name in filters.tags if name.strip()]
        if names:
            query = query.where(Content.tags.any(Tag.name.in_(names)))
    if filters.author_id is not None:
        query = query.where(Content.author_id == filters.author_id)
    if filters.assignee_id is not None:
        query = query.where(Content.assignee_id == filters.assignee_id)
    if filters.start_date is not None:
        query = query.where(Content.created_at >= filters.start_date)
    if filters.end_date is not None:
        query = query.where(Content.created_at <= filters.end_date)
    return query


async def search_content(
    session: AsyncSession,
    filters: SearchFilters,
    default_limit: Optional[int] = None,
) -> tuple[list[Content], SearchPagination]:
    """Run a search and return one page of results.

    Args:
        session: Database session
        filters: Search criteria
        default_limit: Page size used when ``filters.limit`` is unset

    Returns:
        Tuple of (results, pagination)
    """
    limit = filters.limit or default_limit or DEFAULT_PAGE_SIZE
    query = build_search_query(filters)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await session.execute(count_query)).scalar_one()

    column = _SORT_COLUMNS[filters.sort_by]
    ordering = column.asc() if filters.sort_order == SortOrder.ASC else column.desc()
    offset = (filters.page - 1) * limit
    query = query.order_by(ordering, Content.id.desc()).offset(offset).limit(limit)

    result = await session.execute(query)
    results = list(result.scalars().all())

    pagination = SearchPagination(
        page=filters.page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total else 0,
    )
    logger.debug(f"Search matched {total} content item(s)")
    return results, pagination
