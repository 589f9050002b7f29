"""Analytics endpoints"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.analytics import export_csv, get_dashboard_analytics
from ...core.models import User
from ...core.permissions import ANALYTICS_VIEW
from ...core.schemas.search import DashboardAnalytics
from ..dependencies import get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_range(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")


@router.get("/analytics/dashboard", response_model=DashboardAnalytics)
async def dashboard(
    start_date: Optional[datetime] = Query(None, description="Range start (default: 30 days ago)"),
    end_date: Optional[datetime] = Query(None, description="Range end (default: now)"),
    user: User = Depends(require_permission(ANALYTICS_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Content, approval and contributor statistics."""
    _check_range(start_date, end_date)
    try:
        return await get_dashboard_analytics(session, start_date, end_date)
    except Exception as e:
        logger.error(f"Error computing analytics: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/analytics/export", response_class=PlainTextResponse)
async def export(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    user: User = Depends(require_permission(ANALYTICS_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    _check_range(start_date, end_date)
    try:
        analytics = await get_dashboard_analytics(session, start_date, end_date)
    except Exception as e:
        logger.error(f"Error exporting analytics: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    filename = f"analytics-{analytics.end_date.date().isoformat()}.csv"
    return PlainTextResponse(
        export_csv(analytics),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
