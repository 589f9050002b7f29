"""Content, comment and version schemas"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.content import ContentType, Priority


class ContentCreate(BaseModel):
    """Schema for creating content."""
    title: str = Field(..., min_length=1, max_length=255, description="Title")
    body: Optional[Any] = Field(None, description="Rich text document (JSON)")
    type: ContentType = Field(default=ContentType.ARTICLE, description="Content type")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority")
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    tags: list[str] = Field(default_factory=list, description="Tag names")

    model_config = ConfigDict(use_enum_values=True)


class ContentUpdate(BaseModel):
    """Schema for editing content. Only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    body: Optional[Any] = None
    type: Optional[ContentType] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    tags: Optional[list[str]] = None
    change_description: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(use_enum_values=True)


class TagResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ContentResponse(BaseModel):
    """Schema for content response."""
    id: int
    title: str
    slug: str
    body: Optional[Any]
    status: str
    type: str
    priority: str
    due_date: Optional[datetime]
    version: int
    author_id: int
    assignee_id: Optional[int]
    tags: list[TagResponse]
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class ContentList(BaseModel):
    items: list[ContentResponse]
    total: int
    page: int
    page_size: int


class WorkflowAction(BaseModel):
    """Schema for a workflow action on content."""
    action: str = Field(..., description="submit_for_review, publish, return_to_draft or unpublish")
    reason: Optional[str] = Field(None, max_length=1000)
    reviewer_ids: list[int] = Field(default_factory=list, description="Reviewers to invite on submit")

    @field_validator("action")
    @classmethod
    def validate_action(cls, v: str) -> str:
        allowed = {"submit_for_review", "publish", "return_to_draft", "unpublish"}
        if v not in allowed:
            raise ValueError(f"action must be one of {sorted(allowed)}")
        return v


class ActivityResponse(BaseModel):
    id: int
    content_id: int
    user_id: Optional[int]
    action: str
    details: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Comment schemas
class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    id: int
    content_id: int
    user_id: int
    text: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Version schemas
class VersionResponse(BaseModel):
    id: int
    content_id: int
    version_number: int
    title: str
    body: Optional[Any]
    status: str
    type: str
    priority: str
    due_date: Optional[datetime]
    change_description: Optional[str]
    created_by_id: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionComparisonResponse(BaseModel):
    version1: VersionResponse
    version2: VersionResponse
    changed_fields: list[str]
    title_changed: bool
    body_changed: bool
    status_changed: bool
    priority_changed: bool
    due_date_changed: bool
