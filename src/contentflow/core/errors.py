"""Domain exceptions raised by the core services.

Each carries the HTTP status the API maps it to, so route handlers can
translate them without a per-type lookup table.
"""
from typing import Any, Optional


class ContentflowError(Exception):
    """Base exception for all contentflow domain failures."""

    http_status: int = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(ContentflowError):
    http_status = 404


class ContentNotFoundError(NotFoundError):
    def __init__(self, content_id: int):
        super().__init__(f"Content {content_id} not found", {"content_id": content_id})
        self.content_id = content_id


class WorkflowError(ContentflowError):
    """An action is not valid for the current content status."""
    http_status = 409


class PermissionDeniedError(ContentflowError):
    http_status = 403


class ValidationError(ContentflowError):
    """Input is well-formed but violates a business rule."""
    http_status = 400


class ApprovalValidationError(ValidationError):
    pass
