"""Search and analytics schemas"""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.content import ContentStatus, ContentType, Priority
from .content import ContentResponse


class SortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE = "title"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SearchFilters(BaseModel):
    """Content search criteria. Empty lists mean no filter."""
    query: Optional[str] = None
    statuses: list[ContentStatus] = Field(default_factory=list)
    types: list[ContentType] = Field(default_factory=list)
    priorities: list[Priority] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    author_id: Optional[int] = None
    assignee_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_by: SortField = SortField.UPDATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=100)


class SearchPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SearchResults(BaseModel):
    results: list[ContentResponse]
    pagination: SearchPagination


# Analytics
class CountBucket(BaseModel):
    key: str
    count: int


class RecentActivity(BaseModel):
    new_content: int
    updated_content: int
    new_comments: int
    new_approvals: int


class ContributorActivity(BaseModel):
    user_id: int
    user_name: str
    content_created: int
    comments_added: int
    approvals_given: int


class TimeSeriesPoint(BaseModel):
    date: date
    count: int


class DashboardAnalytics(BaseModel):
    start_date: datetime
    end_date: datetime
    total_content: int
    total_users: int
    total_comments: int
    total_approvals: int
    content_by_status: list[CountBucket]
    content_by_type: list[CountBucket]
    content_by_priority: list[CountBucket]
    recent_activity: RecentActivity
    average_approval_hours: Optional[float]
    top_contributors: list[ContributorActivity]
    content_creation_over_time: list[TimeSeriesPoint]

    model_config = ConfigDict(from_attributes=True)
