"""Contentflow - role-based content management with approval workflows.

Content moves from draft through review to publication; reviewers' verdicts
are aggregated into the content status, and project boards keep projects,
columns and tasks in a stable positional order.
"""
__version__ = "0.1.0"

from .core.config.settings import ContentflowConfig, get_config, init_config
from .core.storage.database import Database, get_db, init_db
from .core.models import (
    Approval,
    ApprovalStatus,
    Comment,
    Content,
    ContentStatus,
    ContentType,
    ContentVersion,
    Notification,
    Priority,
    Project,
    ProjectColumn,
    ProjectStatus,
    Task,
    User,
    UserRole,
)
from .core.ordering import compute_next_status_order
from .core.workflow import aggregate_approval_status

from . import core

__all__ = [
    # Version
    "__version__",
    # Config
    "ContentflowConfig",
    "init_config",
    "get_config",
    # Database
    "Database",
    "init_db",
    "get_db",
    # Models
    "User",
    "UserRole",
    "Content",
    "ContentStatus",
    "ContentType",
    "Priority",
    "Approval",
    "ApprovalStatus",
    "Comment",
    "ContentVersion",
    "Notification",
    "Project",
    "ProjectColumn",
    "ProjectStatus",
    "Task",
    # Algorithms
    "aggregate_approval_status",
    "compute_next_status_order",
    # Core module
    "core",
]
