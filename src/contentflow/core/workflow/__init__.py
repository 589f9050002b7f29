"""Content workflow: status transitions and approval aggregation."""
from .approvals import (
    BulkAction,
    BulkItemResult,
    VerdictResult,
    aggregate_approval_status,
    bulk_apply,
    record_verdict,
    request_reviews,
    update_content_status_based_on_approvals,
)
from .locks import KeyedLock
from .transitions import (
    VALID_STATUS_TRANSITIONS,
    can_transition_status,
    content_locks,
    log_activity,
    publish,
    return_to_draft,
    submit_for_review,
    unpublish,
)

__all__ = [
    "BulkAction",
    "BulkItemResult",
    "KeyedLock",
    "VALID_STATUS_TRANSITIONS",
    "VerdictResult",
    "aggregate_approval_status",
    "bulk_apply",
    "can_transition_status",
    "content_locks",
    "log_activity",
    "publish",
    "record_verdict",
    "request_reviews",
    "return_to_draft",
    "submit_for_review",
    "unpublish",
    "update_content_status_based_on_approvals",
]
