"""Approval schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.approval import ApprovalStatus
from ..workflow.approvals import BulkAction
from .user import UserSummary


class ApprovalCreate(BaseModel):
    """Schema for recording the caller's verdict."""
    status: ApprovalStatus = Field(..., description="pending, approved or rejected")
    comment: Optional[str] = Field(None, max_length=5000, description="Reviewer comment")

    @model_validator(mode="after")
    def require_comment_on_reject(self) -> "ApprovalCreate":
        """Ensure a comment is provided when rejecting."""
        if self.status == ApprovalStatus.REJECTED and not (self.comment and self.comment.strip()):
            raise ValueError("comment is required when status is rejected")
        return self


class ApprovalUpdate(ApprovalCreate):
    pass


class ApprovalRequest(BaseModel):
    reviewer_ids: list[int] = Field(..., min_length=1, description="Users invited to review")


class ApprovalResponse(BaseModel):
    """Schema for approval response."""
    id: int
    content_id: int
    reviewer_id: int
    status: str
    comment: Optional[str]
    created_at: datetime
    updated_at: datetime
    reviewer: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class VerdictResponse(BaseModel):
    approval: ApprovalResponse
    previous_status: str
    content_status: str


class ApprovalListItem(ApprovalResponse):
    content_title: str
    content_type: str
    content_status: str


class ApprovalStats(BaseModel):
    pending: int
    approved: int
    rejected: int
    total: int
    avg_approval_hours: Optional[float] = None
    approval_rate: Optional[float] = Field(None, description="Approved share of decided approvals, in percent")


class ApprovalList(BaseModel):
    approvals: list[ApprovalListItem]
    stats: ApprovalStats
    total: int
    page: int
    page_size: int


class BulkApprovalRequest(BaseModel):
    action: BulkAction
    approval_ids: list[int] = Field(..., min_length=1)
    comment: Optional[str] = Field(None, max_length=5000)


class BulkItemResponse(BaseModel):
    approval_id: int
    content_id: int
    success: bool
    content_status: Optional[str] = None
    error: Optional[str] = None


class BulkApprovalResponse(BaseModel):
    message: str
    count: int
    failed: int
    results: list[BulkItemResponse]
