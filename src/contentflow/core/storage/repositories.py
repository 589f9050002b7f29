"""Repositories wrapping common queries for each aggregate."""
import logging
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    Approval,
    Comment,
    Content,
    ContentActivity,
    ContentVersion,
    Notification,
    Project,
    ProjectColumn,
    Tag,
    Task,
    User,
)
from .database import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD over one model class.

    Writes flush but do not commit; the caller owns the transaction.
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, obj: ModelT) -> ModelT:
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def get(self, obj_id: int) -> Optional[ModelT]:
        return await self.session.get(self.model, obj_id)

    async def update(self, obj_id: int, **fields: Any) -> Optional[ModelT]:
        obj = await self.get(obj_id)
        if obj is None:
            return None
        for key, value in fields.items():
            setattr(obj, key, value)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj_id: int) -> bool:
        obj = await self.get(obj_id)
        if obj is None:
            return False
        await self.session.delete(obj)
        await self.session.flush()
        return True

    async def list(self, limit: int = 100, offset: int = 0) -> list[ModelT]:
        query = select(self.model).order_by(self.model.id).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_many(self, ids: Sequence[int]) -> List[ModelT]:
        """Fetch rows by id. Unknown ids are silently absent from the result."""
        if not ids:
            return []
        result = await self.session.execute(select(self.model).where(self.model.id.in_(ids)))
        return list(result.scalars().all())


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_by_roles(self, roles: Sequence[str]) -> list[User]:
        result = await self.session.execute(
            select(User).where(User.role.in_(list(roles))).order_by(User.id)
        )
        return list(result.scalars().all())


class ContentRepository(BaseRepository[Content]):
    model = Content

    async def get_by_slug(self, slug: str) -> Optional[Content]:
        result = await self.session.execute(select(Content).where(Content.slug == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(func.count()).select_from(Content).where(Content.slug == slug)
        )
        return result.scalar_one() > 0

    async def list_by_status(self, statuses: Sequence[str]) -> list[Content]:
        result = await self.session.execute(
            select(Content).where(Content.status.in_(list(statuses))).order_by(Content.id)
        )
        return list(result.scalars().all())

    async def get_with_relationships(self, content_id: int) -> Optional[Content]:
        result = await self.session.execute(
            select(Content)
            .where(Content.id == content_id)
            .options(
                selectinload(Content.approvals),
                selectinload(Content.comments),
                selectinload(Content.versions),
            )
        )
        return result.scalar_one_or_none()


class TagRepository(BaseRepository[Tag]):
    model = Tag

    async def get_or_create_many(self, names: Sequence[str]) -> list[Tag]:
        """Resolve tag names to rows, creating the missing ones."""
        cleaned = sorted({name.strip().lower() for name in names if name and name.strip()})
        if not cleaned:
            return []
        result = await self.session.execute(select(Tag).where(Tag.name.in_(cleaned)))
        existing = {tag.name: tag for tag in result.scalars().all()}
        for name in cleaned:
            if name not in existing:
                tag = Tag(name=name)
                self.session.add(tag)
                existing[name] = tag
        await self.session.flush()
        return [existing[name] for name in cleaned]


class ApprovalRepository(BaseRepository[Approval]):
    model = Approval

    async def get_by_content_id(self, content_id: int) -> list[Approval]:
        result = await self.session.execute(
            select(Approval).where(Approval.content_id == content_id).order_by(Approval.id)
        )
        return list(result.scalars().all())

    async def get_for_reviewer(self, content_id: int, reviewer_id: int) -> Optional[Approval]:
        result = await self.session.execute(
            select(Approval).where(
                Approval.content_id == content_id,
                Approval.reviewer_id == reviewer_id,
            )
        )
        return result.scalar_one_or_none()


class CommentRepository(BaseRepository[Comment]):
    model = Comment

    async def get_by_content_id(self, content_id: int) -> list[Comment]:
        result = await self.session.execute(
            select(Comment)
            .where(Comment.content_id == content_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars().all())


class VersionRepository(BaseRepository[ContentVersion]):
    model = ContentVersion

    async def get_by_content_id(self, content_id: int) -> list[ContentVersion]:
        result = await self.session.execute(
            select(ContentVersion)
            .where(ContentVersion.content_id == content_id)
            .order_by(ContentVersion.version_number.desc())
        )
        return list(result.scalars().all())

    async def get_by_number(self, content_id: int, version_number: int) -> Optional[ContentVersion]:
        result = await self.session.execute(
            select(ContentVersion).where(
                ContentVersion.content_id == content_id,
                ContentVersion.version_number == version_number,
            )
        )
        return result.scalar_one_or_none()


class ActivityRepository(BaseRepository[ContentActivity]):
    model = ContentActivity

    async def recent(self, limit: int = 20) -> list[ContentActivity]:
        result = await self.session.execute(
            select(ContentActivity)
            .order_by(ContentActivity.created_at.desc(), ContentActivity.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    async def list_for_user(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())


class ProjectRepository(BaseRepository[Project]):
    model = Project

    async def list_by_status(self, status: str) -> list[Project]:
        """Projects of one status in board order."""
        result = await self.session.execute(
            select(Project)
            .where(Project.status == status)
            .order_by(Project.status_order, Project.created_at, Project.id)
        )
        return list(result.scalars().all())

    async def list_ordered(self) -> list[Project]:
        result = await self.session.execute(
            select(Project).order_by(
                Project.status, Project.status_order, Project.created_at, Project.id
            )
        )
        return list(result.scalars().all())


class ColumnRepository(BaseRepository[ProjectColumn]):
    model = ProjectColumn

    async def list_by_project(self, project_id: int) -> list[ProjectColumn]:
        result = await self.session.execute(
            select(ProjectColumn)
            .where(ProjectColumn.project_id == project_id)
            .order_by(ProjectColumn.position, ProjectColumn.created_at, ProjectColumn.id)
        )
        return list(result.scalars().all())


class TaskRepository(BaseRepository[Task]):
    model = Task

    async def list_by_column(self, column_id: int) -> list[Task]:
        result = await self.session.execute(
            select(Task)
            .where(Task.column_id == column_id)
            .order_by(Task.position, Task.created_at, Task.id)
        )
        return list(result.scalars().all())

    async def list_by_columns(self, column_ids: Sequence[int]) -> list[Task]:
        if not column_ids:
            return []
        result = await self.session.execute(
            select(Task)
            .where(Task.column_id.in_(list(column_ids)))
            .order_by(Task.column_id, Task.position, Task.created_at, Task.id)
        )
        return list(result.scalars().all())
