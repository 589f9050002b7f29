"""Content, tag and activity models."""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base, utcnow


class ContentStatus(str, Enum):
    """Lifecycle status of a content item."""
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class ContentType(str, Enum):
    ARTICLE = "article"
    BLOG_POST = "blog_post"
    MARKETING_COPY = "marketing_copy"
    DOCUMENTATION = "documentation"
    SOCIAL_MEDIA = "social_media"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ActivityAction(str, Enum):
    """Audit actions recorded against content."""
    CREATED = "created"
    UPDATED = "updated"
    SUBMITTED_FOR_REVIEW = "submitted_for_review"
    STATUS_CHANGED = "status_changed"
    PUBLISHED = "published"
    RETURNED_TO_DRAFT = "returned_to_draft"
    UNPUBLISHED = "unpublished"
    VERSION_CREATED = "version_created"
    VERSION_RESTORED = "version_restored"


content_tags = Table(
    "content_tags",
    Base.metadata,
    Column("content_id", Integer, ForeignKey("contents.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"


class Content(Base):
    """A unit of authored material subject to review and publication."""

    __tablename__ = "contents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, unique=True, index=True)
    body: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ContentStatus.DRAFT.value, index=True
    )
    type: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ContentType.ARTICLE.value, index=True
    )
    priority: Mapped[str] = mapped_column(
        String(50), nullable=False, default=Priority.MEDIUM.value, index=True
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    assignee_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary=content_tags, lazy="selectin", order_by="Tag.name"
    )
    approvals: Mapped[list["Approval"]] = relationship(
        "Approval", back_populates="content", cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="content", cascade="all, delete-orphan",
        passive_deletes=True,
    )
    versions: Mapped[list["ContentVersion"]] = relationship(
        "ContentVersion", back_populates="content", cascade="all, delete-orphan",
        passive_deletes=True,
    )
    activities: Mapped[list["ContentActivity"]] = relationship(
        "ContentActivity", back_populates="content", cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<Content(id={self.id}, title='{self.title}', status='{self.status}')>"


class ContentActivity(Base):
    """Audit trail entry for a content item."""

    __tablename__ = "content_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    content: Mapped["Content"] = relationship("Content", back_populates="activities")

    def __repr__(self) -> str:
        return f"<ContentActivity(id={self.id}, content_id={self.content_id}, action='{self.action}')>"
