"""Search endpoints"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.config import get_config
from ...core.models import ContentStatus, ContentType, Priority, User
from ...core.permissions import CONTENT_VIEW
from ...core.schemas.content import ContentResponse
from ...core.schemas.search import SearchFilters, SearchResults, SortField, SortOrder
from ...core.search import search_content
from ..dependencies import get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search", response_model=SearchResults)
async def search(
    q: Optional[str] = Query(None, description="Text matched against title and body"),
    status: list[ContentStatus] = Query(default=[], description="Any of these statuses"),
    type: list[ContentType] = Query(default=[], description="Any of these types"),
    priority: list[Priority] = Query(default=[], description="Any of these priorities"),
    tag: list[str] = Query(default=[], description="Has any of these tags"),
    author_id: Optional[int] = Query(None),
    assignee_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Created at or after"),
    end_date: Optional[datetime] = Query(None, description="Created at or before"),
    sort_by: SortField = Query(SortField.UPDATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Full-text and faceted content search."""
    filters = SearchFilters(
        query=q,
        statuses=status,
        types=type,
        priorities=priority,
        tags=tag,
        author_id=author_id,
        assignee_id=assignee_id,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    try:
        results, pagination = await search_content(
            session, filters, default_limit=get_config().search_page_size
        )
        return SearchResults(
            results=[ContentResponse.model_validate(item) for item in results],
            pagination=pagination,
        )

    except Exception as e:
        logger.error(f"Error searching content: {e}")
        raise HTTPException(status_code=500, detail=str(e))
