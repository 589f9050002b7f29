"""Approval aggregation and reviewer verdicts.

A content item in the review phase takes its status from the verdicts of
its reviewers:

- any rejection rejects the content
- otherwise, approval by every reviewer approves it
- otherwise it stays in review

Drafts and published content never change status through aggregation.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import (
    ApprovalValidationError,
    ContentNotFoundError,
    NotFoundError,
    PermissionDeniedError,
)
from ..models import (
    ActivityAction,
    Approval,
    ApprovalStatus,
    Content,
    ContentStatus,
    User,
)
from ..permissions import APPROVAL_APPROVE, APPROVAL_CREATE, APPROVAL_REJECT, has_permission
from .transitions import add_pending_approvals, content_locks, log_activity, validate_reviewers

logger = logging.getLogger(__name__)

REVIEW_PHASE = frozenset({
    ContentStatus.IN_REVIEW,
    ContentStatus.APPROVED,
    ContentStatus.REJECTED,
})

BULK_APPROVE_COMMENT = "Bulk approved"


class BulkAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass
class VerdictResult:
    """Outcome of recording one reviewer's verdict."""
    approval: Approval
    previous_status: ContentStatus
    content_status: ContentStatus

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.content_status


@dataclass
class BulkItemResult:
    approval_id: int
    content_id: int
    success: bool
    content_status: Optional[ContentStatus] = None
    previous_status: Optional[ContentStatus] = None
    error: Optional[str] = None


def aggregate_approval_status(
    current_status: Union[ContentStatus, str],
    approval_statuses: Iterable[Union[ApprovalStatus, str]],
) -> ContentStatus:
    """Derive a content status from its reviewers' verdicts.

    Args:
        current_status: Status the content has now
        approval_statuses: One verdict per reviewer

    Returns:
        REJECTED if any verdict is a rejection, APPROVED if every verdict
        is an approval, IN_REVIEW if some are still pending, and
        ``current_status`` unchanged when there are no verdicts at all.
    """
    statuses = [ApprovalStatus(status) for status in approval_statuses]
    if not statuses:
        return ContentStatus(current_status)
    if ApprovalStatus.REJECTED in statuses:
        return ContentStatus.REJECTED
    if all(status == ApprovalStatus.APPROVED for status in statuses):
        return ContentStatus.APPROVED
    return ContentStatus.IN_REVIEW


async def _load_content(session: AsyncSession, content_id: int) -> Content:
    content = await session.get(Content, content_id, populate_existing=True)
    if content is None:
        raise ContentNotFoundError(content_id)
    return content


async def _derive_status(
    session: AsyncSession,
    content: Content,
    user_id: Optional[int] = None,
) -> ContentStatus:
    """Re-aggregate and stage the new status. Caller holds the lock and commits."""
    current = ContentStatus(content.status)
    if current not in REVIEW_PHASE:
        return current

    await session.flush()
    result = await session.execute(
        select(Approval.status).where(Approval.content_id == content.id)
    )
    new_status = aggregate_approval_status(current, result.scalars().all())

    if new_status != current:
        content.status = new_status.value
        log_activity(
            session, content.id, user_id, ActivityAction.STATUS_CHANGED,
            f"Status changed from {current.value} to {new_status.value} by approvals",
        )
        logger.info(f"Content {content.id} status {current.value} -> {new_status.value}")
    return new_status


async def update_content_status_based_on_approvals(
    session: AsyncSession,
    content_id: int,
) -> ContentStatus:
    """Recompute and persist the status of one content item.

    Raises:
        ContentNotFoundError: content does not exist
    """
    async with content_locks.acquire(content_id):
        content = await _load_content(session, content_id)
        new_status = await _derive_status(session, content)
        await session.commit()
    return new_status


def _validate_verdict(
    reviewer: User,
    status: ApprovalStatus,
    comment: Optional[str],
) -> None:
    if status == ApprovalStatus.REJECTED:
        if not has_permission(reviewer.role, APPROVAL_REJECT):
            raise PermissionDeniedError("You do not have permission to reject content")
        if not comment or not comment.strip():
            raise ApprovalValidationError("A comment is required when rejecting content")
    elif not has_permission(reviewer.role, APPROVAL_APPROVE):
        raise PermissionDeniedError("You do not have permission to review content")


async def record_verdict(
    session: AsyncSession,
    content_id: int,
    reviewer: User,
    status: Union[ApprovalStatus, str],
    comment: Optional[str] = None,
) -> VerdictResult:
    """Create or update ``reviewer``'s approval on a content item and re-aggregate.

    The approval upsert and the resulting status change commit together.

    Raises:
        ContentNotFoundError: content does not exist
        PermissionDeniedError: reviewer lacks the approve/reject permission
        ApprovalValidationError: rejection without a comment
    """
    status = ApprovalStatus(status)
    _validate_verdict(reviewer, status, comment)

    async with content_locks.acquire(content_id):
        content = await _load_content(session, content_id)
        previous = ContentStatus(content.status)

        result = await session.execute(
            select(Approval).where(
                Approval.content_id == content_id,
                Approval.reviewer_id == reviewer.id,
            )
        )
        approval = result.scalar_one_or_none()
        if approval is None:
            approval = Approval(content_id=content_id, reviewer_id=reviewer.id)
            session.add(approval)
        approval.status = status.value
        approval.comment = comment

        new_status = await _derive_status(session, content, reviewer.id)
        await session.commit()
        await session.refresh(approval)

    logger.info(
        f"Reviewer {reviewer.id} recorded {status.value} on content {content_id} "
        f"({previous.value} -> {new_status.value})"
    )
    return VerdictResult(approval=approval, previous_status=previous, content_status=new_status)


async def request_reviews(
    session: AsyncSession,
    content_id: int,
    requester: User,
    reviewer_ids: Sequence[int],
) -> list[Approval]:
    """Invite reviewers by creating pending approvals.

    Reviewers that already have an approval on the content are left alone.
    Returns only the newly created approvals.

    Raises:
        ContentNotFoundError: content does not exist
        PermissionDeniedError: requester may not request approvals
        NotFoundError: a reviewer id is unknown
        ApprovalValidationError: a reviewer cannot review content
    """
    async with content_locks.acquire(content_id):
        content = await _load_content(session, content_id)
        # Authors may invite reviewers for their own content
        if content.author_id != requester.id and not has_permission(requester.role, APPROVAL_CREATE):
            raise PermissionDeniedError("You do not have permission to request approvals")

        wanted = await validate_reviewers(session, reviewer_ids)
        created = await add_pending_approvals(session, content_id, wanted)

        await _derive_status(session, content, requester.id)
        await session.commit()
        for approval in created:
            await session.refresh(approval)

    logger.info(f"Requested {len(created)} review(s) on content {content_id}")
    return created


async def bulk_apply(
    session: AsyncSession,
    actor: User,
    action: Union[BulkAction, str],
    approval_ids: Sequence[int],
    comment: Optional[str] = None,
) -> list[BulkItemResult]:
    """Approve or reject many approvals at once.

    Each approval is updated and its content re-aggregated in its own
    transaction. A failing item is rolled back and reported; items already
    committed stay committed.

    Raises:
        ApprovalValidationError: empty id list, or rejection without a comment
        PermissionDeniedError: actor lacks the permission for ``action``
        NotFoundError: any approval id is unknown (nothing is changed)
    """
    action = BulkAction(action)
    if not approval_ids:
        raise ApprovalValidationError("At least one approval id is required")

    if action == BulkAction.REJECT:
        verdict = ApprovalStatus.REJECTED
        if not comment or not comment.strip():
            raise ApprovalValidationError("Comments are required for rejection")
        required = APPROVAL_REJECT
    else:
        verdict = ApprovalStatus.APPROVED
        comment = comment or BULK_APPROVE_COMMENT
        required = APPROVAL_APPROVE
    if not has_permission(actor.role, required):
        raise PermissionDeniedError(f"You do not have permission to {action.value} content")

    # Rollbacks below expire every instance in the session
    actor_id = actor.id
    ids = list(dict.fromkeys(approval_ids))
    result = await session.execute(select(Approval.id, Approval.content_id).where(Approval.id.in_(ids)))
    content_by_approval = {row.id: row.content_id for row in result.all()}
    missing = [approval_id for approval_id in ids if approval_id not in content_by_approval]
    if missing:
        raise NotFoundError("One or more approvals not found", {"missing": missing})

    results: list[BulkItemResult] = []
    for approval_id in ids:
        content_id = content_by_approval[approval_id]
        item = BulkItemResult(approval_id=approval_id, content_id=content_id, success=False)
        try:
            async with content_locks.acquire(content_id):
                approval = await session.get(Approval, approval_id, populate_existing=True)
                if approval is None:
                    raise NotFoundError(f"Approval {approval_id} not found")
                content = await _load_content(session, content_id)
                item.previous_status = ContentStatus(content.status)

                approval.status = verdict.value
                approval.comment = comment
                item.content_status = await _derive_status(session, content, actor_id)
                await session.commit()
            item.success = True
        except Exception as e:
            await session.rollback()
            logger.error(f"Bulk {action.value} failed for approval {approval_id}: {e}")
            item.error = str(e)
        results.append(item)

    succeeded = sum(1 for item in results if item.success)
    logger.info(f"Bulk {action.value}: {succeeded}/{len(results)} approvals updated")
    return results
