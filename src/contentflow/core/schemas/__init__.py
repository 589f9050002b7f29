"""Pydantic schemas for API validation and serialization."""
from .user import UserCreate, UserResponse, UserRoleUpdate, UserSummary
from .content import (
    ActivityResponse,
    CommentCreate,
    CommentResponse,
    ContentCreate,
    ContentList,
    ContentResponse,
    ContentUpdate,
    TagResponse,
    VersionComparisonResponse,
    VersionResponse,
    WorkflowAction,
)
from .approval import (
    ApprovalCreate,
    ApprovalList,
    ApprovalListItem,
    ApprovalRequest,
    ApprovalResponse,
    ApprovalStats,
    ApprovalUpdate,
    BulkApprovalRequest,
    BulkApprovalResponse,
    BulkItemResponse,
    VerdictResponse,
)
from .notification import NotificationList, NotificationResponse
from .project import (
    BoardColumn,
    BoardResponse,
    BulkTaskResponse,
    ColumnCreate,
    ColumnReorder,
    ColumnResponse,
    ColumnUpdate,
    ProjectCreate,
    ProjectReorder,
    ProjectResponse,
    ProjectUpdate,
    TaskBulkUpdate,
    TaskCreate,
    TaskMove,
    TaskResponse,
    TaskUpdate,
)
from .search import DashboardAnalytics, SearchFilters, SearchResults

__all__ = [
    # User schemas
    "UserCreate",
    "UserResponse",
    "UserRoleUpdate",
    "UserSummary",
    # Content schemas
    "ActivityResponse",
    "CommentCreate",
    "CommentResponse",
    "ContentCreate",
    "ContentList",
    "ContentResponse",
    "ContentUpdate",
    "TagResponse",
    "VersionComparisonResponse",
    "VersionResponse",
    "WorkflowAction",
    # Approval schemas
    "ApprovalCreate",
    "ApprovalList",
    "ApprovalListItem",
    "ApprovalRequest",
    "ApprovalResponse",
    "ApprovalStats",
    "ApprovalUpdate",
    "BulkApprovalRequest",
    "BulkApprovalResponse",
    "BulkItemResponse",
    "VerdictResponse",
    # Notification schemas
    "NotificationList",
    "NotificationResponse",
    # Board schemas
    "BoardColumn",
    "BoardResponse",
    "BulkTaskResponse",
    "ColumnCreate",
    "ColumnReorder",
    "ColumnResponse",
    "ColumnUpdate",
    "ProjectCreate",
    "ProjectReorder",
    "ProjectResponse",
    "ProjectUpdate",
    "TaskBulkUpdate",
    "TaskCreate",
    "TaskMove",
    "TaskResponse",
    "TaskUpdate",
    # Search and analytics
    "DashboardAnalytics",
    "SearchFilters",
    "SearchResults",
]
