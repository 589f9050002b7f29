"""Content endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core import content as content_service
from ...core.errors import ContentflowError
from ...core.integrations.manager import NotificationService
from ...core.models import Content, ContentActivity, User
from ...core.permissions import CONTENT_CREATE, CONTENT_DELETE, CONTENT_EDIT, CONTENT_VIEW
from ...core.schemas.content import (
    ActivityResponse,
    ContentCreate,
    ContentList,
    ContentResponse,
    ContentUpdate,
    WorkflowAction,
)
from ...core.storage.repositories import ContentRepository
from ...core.workflow import publish, return_to_draft, submit_for_review, unpublish
from ..dependencies import get_current_user, get_notifier, get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/content", response_model=ContentResponse, status_code=201)
async def create_content(
    data: ContentCreate,
    user: User = Depends(require_permission(CONTENT_CREATE)),
    session: AsyncSession = Depends(get_session),
):
    """Create a draft owned by the caller."""
    try:
        return await content_service.create_content(
            session,
            user,
            title=data.title,
            body=data.body,
            type=data.type,
            priority=data.priority,
            due_date=data.due_date,
            assignee_id=data.assignee_id,
            tags=data.tags,
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating content: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/content", response_model=ContentList)
async def list_content(
    status: Optional[str] = Query(None, description="Filter by status"),
    type: Optional[str] = Query(None, description="Filter by content type"),
    author_id: Optional[int] = Query(None, description="Filter by author"),
    q: Optional[str] = Query(None, description="Title contains"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """List content with optional filtering and pagination."""
    try:
        query = select(Content)

        if status:
            query = query.where(Content.status == status)
        if type:
            query = query.where(Content.type == type)
        if author_id is not None:
            query = query.where(Content.author_id == author_id)
        if q:
            query = query.where(func.lower(Content.title).contains(q.lower()))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await session.execute(count_query)).scalar_one()

        offset = (page - 1) * page_size
        query = query.order_by(Content.updated_at.desc(), Content.id.desc()).offset(offset).limit(page_size)
        result = await session.execute(query)

        return ContentList(
            items=[ContentResponse.model_validate(item) for item in result.scalars().all()],
            total=total,
            page=page,
            page_size=page_size,
        )

    except Exception as e:
        logger.error(f"Error listing content: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/content/slug/{slug}", response_model=ContentResponse)
async def get_content_by_slug(
    slug: str,
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    content = await ContentRepository(session).get_by_slug(slug)
    if not content:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


@router.get("/content/{content_id}", response_model=ContentResponse)
async def get_content(
    content_id: int,
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Get a specific content item by ID."""
    content = await session.get(Content, content_id)
    if not content:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


@router.patch("/content/{content_id}", response_model=ContentResponse)
async def update_content(
    content_id: int,
    data: ContentUpdate,
    user: User = Depends(require_permission(CONTENT_EDIT)),
    session: AsyncSession = Depends(get_session),
):
    """Edit content. The previous state is kept as a version."""
    try:
        changes = data.model_dump(exclude_unset=True, exclude={"tags", "change_description"})
        return await content_service.update_content(
            session,
            content_id,
            user,
            changes,
            tags=data.tags,
            change_description=data.change_description,
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/content/{content_id}", status_code=204)
async def delete_content(
    content_id: int,
    user: User = Depends(require_permission(CONTENT_DELETE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        await content_service.delete_content(session, content_id, user)
        return Response(status_code=204)
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/content/{content_id}/workflow", response_model=ContentResponse)
async def run_workflow_action(
    content_id: int,
    data: WorkflowAction,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Perform a workflow action on content.

    Actions: ``submit_for_review`` (optionally inviting reviewers),
    ``publish``, ``return_to_draft`` and ``unpublish``.
    """
    try:
        user_id = user.id
        if data.action == "submit_for_review":
            content = await submit_for_review(session, content_id, user, data.reviewer_ids)
            await notifier.approval_requested(content_id, user_id, data.reviewer_ids or None)
        elif data.action == "publish":
            content = await publish(session, content_id, user)
            await notifier.content_published(content_id, user_id)
        elif data.action == "return_to_draft":
            content = await return_to_draft(session, content_id, user, data.reason)
        else:
            content = await unpublish(session, content_id, user, data.reason)

        await session.refresh(content)
        return content

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error running {data.action} on content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/content/{content_id}/activity", response_model=list[ActivityResponse])
async def list_activity(
    content_id: int,
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Audit trail of a content item, newest first."""
    if not await session.get(Content, content_id):
        raise HTTPException(status_code=404, detail="Content not found")
    result = await session.execute(
        select(ContentActivity)
        .where(ContentActivity.content_id == content_id)
        .order_by(ContentActivity.created_at.desc(), ContentActivity.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
