"""Content authoring: create, edit and delete."""
import logging
import re
import unicodedata
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import ContentNotFoundError, PermissionDeniedError, ValidationError
from .models import ActivityAction, Content, ContentStatus, User, UserRole
from .permissions import CONTENT_CREATE, CONTENT_DELETE, CONTENT_EDIT, has_permission
from .storage.repositories import ContentRepository, TagRepository, UserRepository
from .versioning import snapshot_content
from .workflow.transitions import content_locks, log_activity

logger = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_DASH = re.compile(r"[\s_-]+")

# Fields an edit may change. Status only moves through the workflow.
EDITABLE_FIELDS = ("title", "body", "type", "priority", "due_date", "assignee_id")

# Inserts retried when a concurrent write takes the chosen slug
SLUG_ATTEMPTS = 5


def slugify(text: str) -> str:
    """Lowercase ASCII slug, e.g. ``"Hello, World!"`` -> ``"hello-world"``."""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_STRIP.sub("", normalized.lower())
    slug = _SLUG_DASH.sub("-", slug).strip("-")
    return slug or "content"


async def unique_slug(session: AsyncSession, title: str, exclude_id: Optional[int] = None) -> str:
    repo = ContentRepository(session)
    base = slugify(title)
    candidate = base
    suffix = 2
    while True:
        existing = await repo.get_by_slug(candidate)
        if existing is None or existing.id == exclude_id:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


async def _slug_taken(session: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    existing = await ContentRepository(session).get_by_slug(slug)
    return existing is not None and existing.id != exclude_id


async def _check_assignee(session: AsyncSession, assignee_id: Optional[int]) -> None:
    if assignee_id is not None and await UserRepository(session).get(assignee_id) is None:
        raise ValidationError(f"Assignee {assignee_id} does not exist")


async def create_content(
    session: AsyncSession,
    author: User,
    title: str,
    body: Any = None,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    due_date: Optional[datetime] = None,
    assignee_id: Optional[int] = None,
    tags: Sequence[str] = (),
) -> Content:
    """Create a draft owned by ``author``.

    The free slug is picked before the insert, so a concurrent create with
    the same title can take it first. The insert is then retried with the
    next suffix, up to ``SLUG_ATTEMPTS`` times.
    """
    if not has_permission(author.role, CONTENT_CREATE):
        raise PermissionDeniedError("You do not have permission to create content")
    await _check_assignee(session, assignee_id)
    author_id = author.id

    for attempt in range(1, SLUG_ATTEMPTS + 1):
        slug = await unique_slug(session, title)
        content = Content(
            title=title,
            slug=slug,
            body=body,
            status=ContentStatus.DRAFT.value,
            due_date=due_date,
            author_id=author_id,
            assignee_id=assignee_id,
            version=1,
        )
        if type is not None:
            content.type = type
        if priority is not None:
            content.priority = priority
        content.tags = await TagRepository(session).get_or_create_many(tags)

        session.add(content)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            if attempt == SLUG_ATTEMPTS or not await _slug_taken(session, slug):
                raise
            logger.warning(f"Slug '{slug}' was taken concurrently, retrying")
            continue
        break

    log_activity(session, content.id, author_id, ActivityAction.CREATED, f"Created '{title}'")
    await session.commit()
    await session.refresh(content)

    logger.info(f"Content {content.id} created by user {author_id}")
    return content


def can_modify(user: User, content: Content) -> bool:
    return user.role == UserRole.ADMIN.value or content.author_id == user.id


async def update_content(
    session: AsyncSession,
    content_id: int,
    user: User,
    changes: dict[str, Any],
    tags: Optional[Sequence[str]] = None,
    change_description: Optional[str] = None,
) -> Content:
    """Apply an edit, snapshotting the previous state as a version.

    Only the author or an admin may edit. A title change that loses its new
    slug to a concurrent write is reapplied with the next free slug.
    """
    if not has_permission(user.role, CONTENT_EDIT):
        raise PermissionDeniedError("You do not have permission to edit content")
    user_id = user.id

    async with content_locks.acquire(content_id):
        content = await session.get(Content, content_id, populate_existing=True)
        if content is None:
            raise ContentNotFoundError(content_id)
        if not can_modify(user, content):
            raise PermissionDeniedError("Only the author or an admin can edit this content")

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")
        if "assignee_id" in changes:
            await _check_assignee(session, changes["assignee_id"])

        for attempt in range(1, SLUG_ATTEMPTS + 1):
            if attempt > 1:
                content = await session.get(Content, content_id, populate_existing=True)
            snapshot_content(session, content, user_id, change_description)
            if tags is not None:
                content.tags = await TagRepository(session).get_or_create_many(tags)

            slug = None
            if "title" in changes and changes["title"] != content.title:
                slug = content.slug = await unique_slug(session, changes["title"], exclude_id=content_id)
            for field, value in changes.items():
                setattr(content, field, value)

            log_activity(session, content_id, user_id, ActivityAction.UPDATED, "Content updated")
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                if slug is None or attempt == SLUG_ATTEMPTS or not await _slug_taken(session, slug, content_id):
                    raise
                logger.warning(f"Slug '{slug}' was taken concurrently, retrying")
                continue
            break

        await session.refresh(content)

    return content


async def delete_content(session: AsyncSession, content_id: int, user: User) -> None:
    """Delete content and, by cascade, its approvals, comments and history."""
    if not has_permission(user.role, CONTENT_DELETE):
        raise PermissionDeniedError("You do not have permission to delete content")

    async with content_locks.acquire(content_id):
        content = await session.get(Content, content_id)
        if content is None:
            raise ContentNotFoundError(content_id)
        if not can_modify(user, content):
            raise PermissionDeniedError("You do not have permission to delete this content")
        await session.delete(content)
        await session.commit()

    logger.info(f"Content {content_id} deleted by user {user.id}")
