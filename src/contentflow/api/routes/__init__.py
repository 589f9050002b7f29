"""API route modules."""
from . import (
    analytics,
    approvals,
    comments,
    content,
    notifications,
    projects,
    search,
    tasks,
    users,
    versions,
)

__all__ = [
    "analytics",
    "approvals",
    "comments",
    "content",
    "notifications",
    "projects",
    "search",
    "tasks",
    "users",
    "versions",
]
