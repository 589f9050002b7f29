"""Version history endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.errors import ContentflowError, ContentNotFoundError
from ...core.models import Content, User
from ...core.permissions import CONTENT_VERSION, CONTENT_VERSION_RESTORE
from ...core.schemas.content import ContentResponse, VersionComparisonResponse, VersionResponse
from ...core.versioning import compare_versions, get_version, list_versions, restore_version
from ...core.workflow import content_locks
from ..dependencies import get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_content(session: AsyncSession, content_id: int) -> Content:
    content = await session.get(Content, content_id, populate_existing=True)
    if content is None:
        raise ContentNotFoundError(content_id)
    return content


@router.get("/content/{content_id}/versions", response_model=list[VersionResponse])
async def get_versions(
    content_id: int,
    user: User = Depends(require_permission(CONTENT_VERSION)),
    session: AsyncSession = Depends(get_session),
):
    """Stored versions of a content item, newest first."""
    await _require_content(session, content_id)
    return await list_versions(session, content_id)


@router.get("/content/{content_id}/versions/compare", response_model=VersionComparisonResponse)
async def compare(
    content_id: int,
    v1: int = Query(..., ge=1, description="First version number"),
    v2: int = Query(..., ge=1, description="Second version number"),
    user: User = Depends(require_permission(CONTENT_VERSION)),
    session: AsyncSession = Depends(get_session),
):
    await _require_content(session, content_id)
    comparison = await compare_versions(session, content_id, v1, v2)
    return VersionComparisonResponse(
        version1=VersionResponse.model_validate(comparison.version1),
        version2=VersionResponse.model_validate(comparison.version2),
        changed_fields=comparison.changed_fields,
        title_changed=comparison.changed("title"),
        body_changed=comparison.changed("body"),
        status_changed=comparison.changed("status"),
        priority_changed=comparison.changed("priority"),
        due_date_changed=comparison.changed("due_date"),
    )


@router.get("/content/{content_id}/versions/{version_number}", response_model=VersionResponse)
async def get_single_version(
    content_id: int,
    version_number: int,
    user: User = Depends(require_permission(CONTENT_VERSION)),
    session: AsyncSession = Depends(get_session),
):
    return await get_version(session, content_id, version_number)


@router.post("/content/{content_id}/versions/{version_number}/restore", response_model=ContentResponse)
async def restore(
    content_id: int,
    version_number: int,
    user: User = Depends(require_permission(CONTENT_VERSION_RESTORE)),
    session: AsyncSession = Depends(get_session),
):
    """Restore an older version. The current state is kept as a new version first."""
    try:
        async with content_locks.acquire(content_id):
            content = await _require_content(session, content_id)
            return await restore_version(session, content, version_number, user)

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error restoring content {content_id} to version {version_number}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
