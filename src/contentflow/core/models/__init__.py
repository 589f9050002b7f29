"""Core data models for content, approvals, and project boards."""
# Import all models to ensure relationships work correctly
from .user import User, UserRole
from .content import (
    ActivityAction,
    Content,
    ContentActivity,
    ContentStatus,
    ContentType,
    Priority,
    Tag,
    content_tags,
)
from .approval import Approval, ApprovalStatus
from .comment import Comment
from .version import ContentVersion
from .notification import Notification, NotificationType
from .project import Project, ProjectColumn, ProjectStatus, Task

__all__ = [
    # User models
    "User",
    "UserRole",
    # Content models
    "ActivityAction",
    "Content",
    "ContentActivity",
    "ContentStatus",
    "ContentType",
    "Priority",
    "Tag",
    "content_tags",
    # Approval models
    "Approval",
    "ApprovalStatus",
    # Discussion and history
    "Comment",
    "ContentVersion",
    # Notification models
    "Notification",
    "NotificationType",
    # Board models
    "Project",
    "ProjectColumn",
    "ProjectStatus",
    "Task",
]
