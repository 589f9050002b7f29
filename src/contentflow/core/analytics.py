"""Dashboard analytics and CSV export."""
import csv
import io
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Approval, ApprovalStatus, Comment, Content, User, UserRole
from .schemas.search import (
    ContributorActivity,
    CountBucket,
    DashboardAnalytics,
    RecentActivity,
    TimeSeriesPoint,
)
from .storage.database import utcnow

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30
TOP_CONTRIBUTORS = 5


def default_time_range(days: int = DEFAULT_RANGE_DAYS) -> tuple[datetime, datetime]:
    end = utcnow()
    return end - timedelta(days=days), end


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


async def _count(session: AsyncSession, query) -> int:
    return (await session.execute(query)).scalar_one()


async def _group_counts(session: AsyncSession, column) -> list[CountBucket]:
    result = await session.execute(
        select(column, func.count()).group_by(column).order_by(column)
    )
    return [CountBucket(key=key, count=count) for key, count in result.all()]


def approval_hours(approvals: list[tuple[datetime, datetime]]) -> Optional[float]:
    """Mean hours between creation and last update of decided approvals."""
    if not approvals:
        return None
    total = sum((updated - created).total_seconds() for created, updated in approvals)
    return total / len(approvals) / 3600


async def average_approval_hours(
    session: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Optional[float]:
    query = select(Approval.created_at, Approval.updated_at).where(
        Approval.status.in_([ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value])
    )
    if start is not None:
        query = query.where(Approval.created_at >= start)
    if end is not None:
        query = query.where(Approval.created_at <= end)
    result = await session.execute(query)
    return approval_hours([(row.created_at, row.updated_at) for row in result.all()])


async def _top_contributors(session: AsyncSession) -> list[ContributorActivity]:
    created = (
        select(func.count(Content.id)).where(Content.author_id == User.id).scalar_subquery()
    )
    comments = (
        select(func.count(Comment.id)).where(Comment.user_id == User.id).scalar_subquery()
    )
    approvals = (
        select(func.count(Approval.id)).where(Approval.reviewer_id == User.id).scalar_subquery()
    )
    result = await session.execute(
        select(User.id, User.name, User.email, created, comments, approvals)
        .where(User.role != UserRole.VIEWER.value)
        .order_by(created.desc(), User.id)
        .limit(TOP_CONTRIBUTORS)
    )
    return [
        ContributorActivity(
            user_id=user_id,
            user_name=name or email,
            content_created=n_created,
            comments_added=n_comments,
            approvals_given=n_approvals,
        )
        for user_id, name, email, n_created, n_comments, n_approvals in result.all()
    ]


async def _creation_over_time(
    session: AsyncSession, start: datetime, end: datetime
) -> list[TimeSeriesPoint]:
    result = await session.execute(
        select(Content.created_at).where(Content.created_at >= start, Content.created_at <= end)
    )
    by_day: dict[date, int] = {}
    day = start.date()
    while day <= end.date():
        by_day[day] = 0
        day += timedelta(days=1)
    for (created_at,) in result.all():
        key = _as_date(created_at)
        by_day[key] = by_day.get(key, 0) + 1
    return [TimeSeriesPoint(date=key, count=count) for key, count in sorted(by_day.items())]


async def get_dashboard_analytics(
    session: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> DashboardAnalytics:
    """Aggregate dashboard figures over ``[start, end]``.

    Totals and breakdowns cover all content; recent activity, approval time
    and the time series are restricted to the range. The range defaults to
    the last 30 days.
    """
    default_start, default_end = default_time_range()
    start = start or default_start
    end = end or default_end

    total_content = await _count(session, select(func.count(Content.id)))
    total_users = await _count(session, select(func.count(User.id)))
    total_comments = await _count(session, select(func.count(Comment.id)))
    total_approvals = await _count(session, select(func.count(Approval.id)))

    recent = RecentActivity(
        new_content=await _count(
            session,
            select(func.count(Content.id)).where(
                Content.created_at >= start, Content.created_at <= end
            ),
        ),
        updated_content=await _count(
            session,
            select(func.count(Content.id)).where(
                Content.updated_at >= start,
                Content.updated_at <= end,
                Content.created_at < start,
            ),
        ),
        new_comments=await _count(
            session,
            select(func.count(Comment.id)).where(
                Comment.created_at >= start, Comment.created_at <= end
            ),
        ),
        new_approvals=await _count(
            session,
            select(func.count(Approval.id)).where(
                Approval.created_at >= start, Approval.created_at <= end
            ),
        ),
    )

    return DashboardAnalytics(
        start_date=start,
        end_date=end,
        total_content=total_content,
        total_users=total_users,
        total_comments=total_comments,
        total_approvals=total_approvals,
        content_by_status=await _group_counts(session, Content.status),
        content_by_type=await _group_counts(session, Content.type),
        content_by_priority=await _group_counts(session, Content.priority),
        recent_activity=recent,
        average_approval_hours=await average_approval_hours(session, start, end),
        top_contributors=await _top_contributors(session),
        content_creation_over_time=await _creation_over_time(session, start, end),
    )


def export_csv(analytics: DashboardAnalytics) -> str:
    """Flatten dashboard analytics into ``section,key,value`` CSV rows."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["section", "key", "value"])
    writer.writerow(["range", "start_date", analytics.start_date.isoformat()])
    writer.writerow(["range", "end_date", analytics.end_date.isoformat()])
    writer.writerow(["totals", "content", analytics.total_content])
    writer.writerow(["totals", "users", analytics.total_users])
    writer.writerow(["totals", "comments", analytics.total_comments])
    writer.writerow(["totals", "approvals", analytics.total_approvals])
    for bucket in analytics.content_by_status:
        writer.writerow(["content_by_status", bucket.key, bucket.count])
    for bucket in analytics.content_by_type:
        writer.writerow(["content_by_type", bucket.key, bucket.count])
    for bucket in analytics.content_by_priority:
        writer.writerow(["content_by_priority", bucket.key, bucket.count])
    for key, value in analytics.recent_activity.model_dump().items():
        writer.writerow(["recent_activity", key, value])
    hours = analytics.average_approval_hours
    writer.writerow(["approvals", "average_hours", "" if hours is None else f"{hours:.2f}"])
    for contributor in analytics.top_contributors:
        writer.writerow(["top_contributors", contributor.user_name, contributor.content_created])
    for point in analytics.content_creation_over_time:
        writer.writerow(["content_created", point.date.isoformat(), point.count])
    return buffer.getvalue()
