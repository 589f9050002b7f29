"""Content version history.

Before every edit the current state of a content item is copied into a
``ContentVersion`` numbered with the item's current ``version`` counter,
then the counter is incremented.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import NotFoundError, PermissionDeniedError
from .models import ActivityAction, Content, ContentVersion, User
from .permissions import CONTENT_VERSION_RESTORE, has_permission
from .storage.repositories import VersionRepository
from .workflow.transitions import log_activity

logger = logging.getLogger(__name__)

COMPARED_FIELDS = ("title", "body", "status", "priority", "due_date")


@dataclass
class VersionComparison:
    version1: ContentVersion
    version2: ContentVersion
    changed_fields: list[str]

    def changed(self, field: str) -> bool:
        return field in self.changed_fields


def snapshot_content(
    session: AsyncSession,
    content: Content,
    user_id: Optional[int],
    change_description: Optional[str] = None,
) -> ContentVersion:
    """Stage a snapshot of ``content`` and bump its version counter.

    Nothing is flushed; the snapshot commits with the caller's edit.
    """
    version = ContentVersion(
        content_id=content.id,
        version_number=content.version,
        title=content.title,
        body=content.body,
        status=content.status,
        type=content.type,
        priority=content.priority,
        due_date=content.due_date,
        change_description=change_description,
        created_by_id=user_id,
    )
    session.add(version)
    details = f"Version {content.version} created"
    if change_description:
        details = f"{details}: {change_description}"
    log_activity(session, content.id, user_id, ActivityAction.VERSION_CREATED, details)
    content.version = content.version + 1
    return version


async def list_versions(session: AsyncSession, content_id: int) -> list[ContentVersion]:
    """Versions of a content item, newest first."""
    return await VersionRepository(session).get_by_content_id(content_id)


async def get_version(session: AsyncSession, content_id: int, version_number: int) -> ContentVersion:
    version = await VersionRepository(session).get_by_number(content_id, version_number)
    if version is None:
        raise NotFoundError(
            f"Version {version_number} of content {content_id} not found",
            {"content_id": content_id, "version_number": version_number},
        )
    return version


async def compare_versions(
    session: AsyncSession,
    content_id: int,
    version1: int,
    version2: int,
) -> VersionComparison:
    """Field-level comparison of two stored versions."""
    v1 = await get_version(session, content_id, version1)
    v2 = await get_version(session, content_id, version2)
    changed = [field for field in COMPARED_FIELDS if getattr(v1, field) != getattr(v2, field)]
    return VersionComparison(version1=v1, version2=v2, changed_fields=changed)


async def restore_version(
    session: AsyncSession,
    content: Content,
    version_number: int,
    user: User,
) -> Content:
    """Bring back the editable fields of an older version.

    The current state is snapshotted first, so a restore is itself
    reversible. Status and type are left as they are.

    Raises:
        PermissionDeniedError: user may not restore versions
        NotFoundError: version does not exist
    """
    if not has_permission(user.role, CONTENT_VERSION_RESTORE):
        raise PermissionDeniedError("You do not have permission to restore versions")

    target = await get_version(session, content.id, version_number)
    snapshot_content(
        session, content, user.id,
        f"Automatic version created before restoring to version {version_number}",
    )
    content.title = target.title
    content.body = target.body
    content.priority = target.priority
    content.due_date = target.due_date
    log_activity(
        session, content.id, user.id, ActivityAction.VERSION_RESTORED,
        f"Content restored to version {version_number}",
    )
    await session.commit()
    await session.refresh(content)

    logger.info(f"Content {content.id} restored to version {version_number} by user {user.id}")
    return content
