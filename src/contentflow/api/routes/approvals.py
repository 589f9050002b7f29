"""Approval endpoints"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.analytics import average_approval_hours
from ...core.errors import ContentflowError
from ...core.integrations.manager import NotificationService
from ...core.models import Approval, ApprovalStatus, Content, User
from ...core.permissions import APPROVAL_VIEW, CONTENT_VIEW
from ...core.schemas.approval import (
    ApprovalCreate,
    ApprovalList,
    ApprovalListItem,
    ApprovalRequest,
    ApprovalResponse,
    ApprovalStats,
    ApprovalUpdate,
    BulkApprovalRequest,
    BulkApprovalResponse,
    BulkItemResponse,
    VerdictResponse,
)
from ...core.storage.repositories import ApprovalRepository
from ...core.workflow import bulk_apply, record_verdict, request_reviews
from ..dependencies import get_current_user, get_notifier, get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


async def _notify_verdict(
    notifier: NotificationService,
    content_id: int,
    reviewer_id: int,
    status: str,
    comment: Optional[str],
) -> None:
    if status == ApprovalStatus.APPROVED.value:
        await notifier.approval_status_changed(content_id, reviewer_id, True, comment)
    elif status == ApprovalStatus.REJECTED.value:
        await notifier.approval_status_changed(content_id, reviewer_id, False, comment)


def _verdict_response(result) -> VerdictResponse:
    return VerdictResponse(
        approval=ApprovalResponse.model_validate(result.approval),
        previous_status=result.previous_status.value,
        content_status=result.content_status.value,
    )


@router.get("/content/{content_id}/approvals", response_model=list[ApprovalResponse])
async def list_content_approvals(
    content_id: int,
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    if not await session.get(Content, content_id):
        raise HTTPException(status_code=404, detail="Content not found")
    return await ApprovalRepository(session).get_by_content_id(content_id)


@router.post("/content/{content_id}/approvals", response_model=VerdictResponse)
async def create_approval(
    content_id: int,
    data: ApprovalCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Record the caller's verdict on a content item.

    A reviewer has at most one approval per content item; posting again
    replaces the earlier verdict. The content status is re-derived from
    all approvals in the same transaction.
    """
    try:
        user_id = user.id
        result = await record_verdict(session, content_id, user, data.status, data.comment)
        await _notify_verdict(notifier, content_id, user_id, result.approval.status, data.comment)
        return _verdict_response(result)

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error recording approval on content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/content/{content_id}/approvals/request", response_model=list[ApprovalResponse], status_code=201)
async def request_approvals(
    content_id: int,
    data: ApprovalRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Invite reviewers. Returns the approvals created by this request."""
    try:
        user_id = user.id
        created = await request_reviews(session, content_id, user, data.reviewer_ids)
        invited = [approval.reviewer_id for approval in created]
        if invited:
            await notifier.approval_requested(content_id, user_id, invited)
        return created

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error requesting approvals on content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


async def _get_content_approval(session: AsyncSession, content_id: int, approval_id: int) -> Approval:
    approval = await session.get(Approval, approval_id)
    if not approval or approval.content_id != content_id:
        raise HTTPException(status_code=404, detail="Approval not found")
    return approval


@router.get("/content/{content_id}/approvals/{approval_id}", response_model=ApprovalResponse)
async def get_approval(
    content_id: int,
    approval_id: int,
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    return await _get_content_approval(session, content_id, approval_id)


@router.patch("/content/{content_id}/approvals/{approval_id}", response_model=VerdictResponse)
async def update_approval(
    content_id: int,
    approval_id: int,
    data: ApprovalUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Change a verdict. Only the reviewer who owns the approval may do so."""
    try:
        approval = await _get_content_approval(session, content_id, approval_id)
        if approval.reviewer_id != user.id:
            raise HTTPException(status_code=403, detail="Only the assigned reviewer can update this approval")

        user_id = user.id
        result = await record_verdict(session, content_id, user, data.status, data.comment)
        await _notify_verdict(notifier, content_id, user_id, result.approval.status, data.comment)
        return _verdict_response(result)

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating approval {approval_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/approvals", response_model=ApprovalList)
async def list_approvals(
    status: Optional[str] = Query(None, description="Filter by approval status"),
    content_id: Optional[int] = Query(None, description="Filter by content"),
    reviewer_id: Optional[int] = Query(None, description="Filter by reviewer"),
    content_type: Optional[str] = Query(None, description="Filter by content type"),
    assignee_id: Optional[int] = Query(None, description="Filter by content assignee"),
    q: Optional[str] = Query(None, description="Search content titles"),
    start_date: Optional[datetime] = Query(None, description="Approvals created on or after"),
    end_date: Optional[datetime] = Query(None, description="Approvals created on or before"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    user: User = Depends(require_permission(APPROVAL_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Approval queue across all content, with overall statistics."""
    try:
        query = select(Approval, Content).join(Content, Approval.content_id == Content.id)
        if status:
            query = query.where(Approval.status == status)
        if content_id is not None:
            query = query.where(Approval.content_id == content_id)
        if reviewer_id is not None:
            query = query.where(Approval.reviewer_id == reviewer_id)
        if content_type:
            query = query.where(Content.type == content_type)
        if assignee_id is not None:
            query = query.where(Content.assignee_id == assignee_id)
        if q and q.strip():
            query = query.where(func.lower(Content.title).like(f"%{q.strip().lower()}%"))
        if start_date:
            query = query.where(Approval.created_at >= start_date)
        if end_date:
            query = query.where(Approval.created_at <= end_date)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await session.execute(count_query)).scalar_one()

        offset = (page - 1) * page_size
        query = query.order_by(Approval.created_at.desc(), Approval.id.desc()).offset(offset).limit(page_size)
        result = await session.execute(query)

        items = []
        for approval, content in result.all():
            item = ApprovalResponse.model_validate(approval).model_dump()
            items.append(ApprovalListItem(
                **item,
                content_title=content.title,
                content_type=content.type,
                content_status=content.status,
            ))

        # Stats cover every approval, not just this page
        counts_result = await session.execute(
            select(Approval.status, func.count()).group_by(Approval.status)
        )
        counts = dict(counts_result.all())
        approved = counts.get(ApprovalStatus.APPROVED.value, 0)
        rejected = counts.get(ApprovalStatus.REJECTED.value, 0)
        decided = approved + rejected
        stats = ApprovalStats(
            pending=counts.get(ApprovalStatus.PENDING.value, 0),
            approved=approved,
            rejected=rejected,
            total=sum(counts.values()),
            avg_approval_hours=await average_approval_hours(session),
            approval_rate=round(approved / decided * 100, 1) if decided else None,
        )

        return ApprovalList(approvals=items, stats=stats, total=total, page=page, page_size=page_size)

    except Exception as e:
        logger.error(f"Error listing approvals: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/approvals/bulk", response_model=BulkApprovalResponse)
async def bulk_approvals(
    data: BulkApprovalRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Approve or reject several approvals.

    Items are processed one by one; a failure on one item does not undo
    the others. The response lists the outcome of each.
    """
    try:
        user_id = user.id
        results = await bulk_apply(session, user, data.action, data.approval_ids, data.comment)

        approved = data.action.value == "approve"
        for item in results:
            if item.success:
                await notifier.approval_status_changed(item.content_id, user_id, approved, data.comment)

        succeeded = sum(1 for item in results if item.success)
        verb = "approved" if approved else "rejected"
        return BulkApprovalResponse(
            message=f"{succeeded} approval(s) {verb}",
            count=succeeded,
            failed=len(results) - succeeded,
            results=[
                BulkItemResponse(
                    approval_id=item.approval_id,
                    content_id=item.content_id,
                    success=item.success,
                    content_status=item.content_status.value if item.content_status else None,
                    error=item.error,
                )
                for item in results
            ],
        )

    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error in bulk approval: {e}")
        raise HTTPException(status_code=500, detail=str(e))
