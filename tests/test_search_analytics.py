"""Tests for content search and dashboard analytics."""
from datetime import datetime, timedelta, timezone

import pytest

from contentflow.core.analytics import approval_hours, export_csv, get_dashboard_analytics
from contentflow.core.content import create_content
from contentflow.core.schemas.search import SearchFilters, SortField, SortOrder
from contentflow.core.search import search_content
from contentflow.core.workflow import record_verdict, submit_for_review


@pytest.fixture
async def library(session, contributor, make_user):
    other = await make_user()
    items = [
        await create_content(session, contributor, "Alpha guide", body={"text": "Getting started"},
                             tags=["docs"], priority="low"),
        await create_content(session, contributor, "Beta notes", type="documentation", priority="urgent"),
        await create_content(session, other, "Gamma post", body={"text": "Started a blog"},
                             tags=["blog", "docs"], type="blog_post"),
    ]
    return items, other


@pytest.mark.asyncio
async def test_search_text_matches_title_and_body(session, library):
    results, pagination = await search_content(session, SearchFilters(query="started"))

    assert sorted(c.title for c in results) == ["Alpha guide", "Gamma post"]
    assert pagination.total == 2

    results, _ = await search_content(session, SearchFilters(query="BETA"))
    assert [c.title for c in results] == ["Beta notes"]


@pytest.mark.asyncio
async def test_search_matches_accented_body_text(session, contributor):
    await create_content(session, contributor, "Dessert menu", body={"text": "Crème brûlée au café"})
    await create_content(session, contributor, "Drinks", body={"text": "Plain coffee"})

    results, _ = await search_content(session, SearchFilters(query="café"))
    assert [c.title for c in results] == ["Dessert menu"]

    results, _ = await search_content(session, SearchFilters(query="brûlée"))
    assert [c.title for c in results] == ["Dessert menu"]


@pytest.mark.asyncio
async def test_search_filters(session, library, contributor):
    _, other = library

    results, _ = await search_content(session, SearchFilters(tags=["docs"]))
    assert len(results) == 2

    results, _ = await search_content(session, SearchFilters(author_id=other.id))
    assert [c.title for c in results] == ["Gamma post"]

    results, _ = await search_content(session, SearchFilters(types=["documentation", "blog_post"]))
    assert sorted(c.title for c in results) == ["Beta notes", "Gamma post"]

    results, _ = await search_content(session, SearchFilters(statuses=["published"]))
    assert results == []

    future = datetime.now(timezone.utc) + timedelta(days=1)
    results, _ = await search_content(session, SearchFilters(start_date=future))
    assert results == []


@pytest.mark.asyncio
async def test_search_sorting_and_pagination(session, library):
    by_priority, _ = await search_content(
        session, SearchFilters(sort_by=SortField.PRIORITY, sort_order=SortOrder.DESC)
    )
    assert [c.title for c in by_priority] == ["Beta notes", "Gamma post", "Alpha guide"]

    page, pagination = await search_content(
        session, SearchFilters(sort_by=SortField.TITLE, sort_order=SortOrder.ASC, page=2, limit=2)
    )
    assert [c.title for c in page] == ["Gamma post"]
    assert (pagination.total, pagination.total_pages) == (3, 2)

    _, pagination = await search_content(session, SearchFilters(), default_limit=25)
    assert pagination.limit == 25


def test_approval_hours():
    start = datetime(2024, 1, 1, 9, 0)
    assert approval_hours([]) is None
    assert approval_hours([
        (start, start + timedelta(hours=2)),
        (start, start + timedelta(hours=4)),
    ]) == 3.0


@pytest.mark.asyncio
async def test_dashboard_counts(session, library, contributor, moderator):
    items, _ = library
    await submit_for_review(session, items[0].id, contributor)
    await record_verdict(session, items[0].id, moderator, "approved")

    analytics = await get_dashboard_analytics(session)

    assert analytics.total_content == 3
    assert analytics.total_approvals == 1
    statuses = {bucket.key: bucket.count for bucket in analytics.content_by_status}
    assert statuses == {"approved": 1, "draft": 2}
    priorities = {bucket.key: bucket.count for bucket in analytics.content_by_priority}
    assert priorities == {"low": 1, "medium": 1, "urgent": 1}
    assert analytics.recent_activity.new_content == 3
    assert analytics.recent_activity.new_approvals == 1
    assert analytics.average_approval_hours is not None
    assert analytics.top_contributors[0].user_id == contributor.id
    assert analytics.top_contributors[0].content_created == 2
    assert sum(point.count for point in analytics.content_creation_over_time) == 3


@pytest.mark.asyncio
async def test_dashboard_range_excludes_old_activity(session, library):
    end = datetime.now(timezone.utc) - timedelta(days=10)
    analytics = await get_dashboard_analytics(session, end - timedelta(days=5), end)

    assert analytics.total_content == 3
    assert analytics.recent_activity.new_content == 0
    assert len(analytics.content_creation_over_time) == 6


@pytest.mark.asyncio
async def test_export_csv(session, library):
    analytics = await get_dashboard_analytics(session)

    rows = [line.split(",") for line in export_csv(analytics).splitlines()]

    assert rows[0] == ["section", "key", "value"]
    assert ["totals", "content", "3"] in rows
    assert ["content_by_type", "documentation", "1"] in rows
    assert ["recent_activity", "new_content", "3"] in rows
