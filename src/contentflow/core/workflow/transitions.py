"""Content status transitions and the actions that drive them."""
import logging
from typing import Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import (
    ApprovalValidationError,
    ContentNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    WorkflowError,
)
from ..models import (
    ActivityAction,
    Approval,
    ApprovalStatus,
    Content,
    ContentActivity,
    ContentStatus,
    User,
    UserRole,
)
from ..permissions import APPROVAL_APPROVE, has_permission
from ..storage.database import utcnow
from .locks import KeyedLock

logger = logging.getLogger(__name__)

# Serialises every status write for one content id
content_locks = KeyedLock()

_WRITERS = (UserRole.CONTRIBUTOR, UserRole.MODERATOR, UserRole.ADMIN)
_REVIEWERS = (UserRole.MODERATOR, UserRole.ADMIN)

VALID_STATUS_TRANSITIONS: dict[ContentStatus, tuple[ContentStatus, ...]] = {
    ContentStatus.DRAFT: (ContentStatus.IN_REVIEW,),
    ContentStatus.IN_REVIEW: (ContentStatus.APPROVED, ContentStatus.REJECTED, ContentStatus.DRAFT),
    ContentStatus.APPROVED: (ContentStatus.PUBLISHED, ContentStatus.DRAFT, ContentStatus.IN_REVIEW),
    ContentStatus.REJECTED: (ContentStatus.DRAFT, ContentStatus.IN_REVIEW),
    ContentStatus.PUBLISHED: (ContentStatus.DRAFT,),
}

STATUS_TRANSITION_ROLES: dict[tuple[ContentStatus, ContentStatus], tuple[UserRole, ...]] = {
    (ContentStatus.DRAFT, ContentStatus.IN_REVIEW): _WRITERS,
    (ContentStatus.IN_REVIEW, ContentStatus.APPROVED): _REVIEWERS,
    (ContentStatus.IN_REVIEW, ContentStatus.REJECTED): _REVIEWERS,
    (ContentStatus.IN_REVIEW, ContentStatus.DRAFT): _WRITERS,
    (ContentStatus.APPROVED, ContentStatus.PUBLISHED): _REVIEWERS,
    (ContentStatus.APPROVED, ContentStatus.DRAFT): _WRITERS,
    (ContentStatus.APPROVED, ContentStatus.IN_REVIEW): _WRITERS,
    (ContentStatus.REJECTED, ContentStatus.DRAFT): _WRITERS,
    (ContentStatus.REJECTED, ContentStatus.IN_REVIEW): _WRITERS,
    (ContentStatus.PUBLISHED, ContentStatus.DRAFT): _REVIEWERS,
}


def can_transition_status(
    from_status: Union[ContentStatus, str],
    to_status: Union[ContentStatus, str],
    role: Union[UserRole, str],
    is_author: bool,
) -> bool:
    """Check whether ``role`` may move content from one status to another.

    Only admins may submit someone else's draft for review.
    """
    from_status = ContentStatus(from_status)
    to_status = ContentStatus(to_status)
    role = UserRole(role)

    if to_status not in VALID_STATUS_TRANSITIONS.get(from_status, ()):
        return False
    if role not in STATUS_TRANSITION_ROLES.get((from_status, to_status), ()):
        return False
    if (
        from_status == ContentStatus.DRAFT
        and to_status == ContentStatus.IN_REVIEW
        and not is_author
        and role != UserRole.ADMIN
    ):
        return False
    return True


def log_activity(
    session: AsyncSession,
    content_id: int,
    user_id: Optional[int],
    action: ActivityAction,
    details: Optional[str] = None,
) -> ContentActivity:
    """Stage an audit row in the caller's transaction."""
    activity = ContentActivity(
        content_id=content_id,
        user_id=user_id,
        action=action.value,
        details=details,
    )
    session.add(activity)
    return activity


async def _load(session: AsyncSession, content_id: int) -> Content:
    content = await session.get(Content, content_id, populate_existing=True)
    if content is None:
        raise ContentNotFoundError(content_id)
    return content


def _check_transition(content: Content, target: ContentStatus, user: User) -> None:
    current = ContentStatus(content.status)
    if target not in VALID_STATUS_TRANSITIONS[current]:
        raise WorkflowError(
            f"Cannot move content from {current.value} to {target.value}",
            {"from": current.value, "to": target.value},
        )
    if not can_transition_status(current, target, user.role, content.author_id == user.id):
        raise PermissionDeniedError(
            f"Role {user.role} may not move content from {current.value} to {target.value}"
        )


async def validate_reviewers(session: AsyncSession, reviewer_ids: Sequence[int]) -> list[int]:
    """Deduplicate ``reviewer_ids`` and check each names a user who may review.

    Raises:
        NotFoundError: a reviewer id is unknown
        ApprovalValidationError: a reviewer cannot review content
    """
    wanted = list(dict.fromkeys(reviewer_ids))
    if not wanted:
        return wanted
    result = await session.execute(select(User).where(User.id.in_(wanted)))
    reviewers = {user.id: user for user in result.scalars().all()}
    missing = [reviewer_id for reviewer_id in wanted if reviewer_id not in reviewers]
    if missing:
        raise NotFoundError(f"Reviewers not found: {missing}", {"missing": missing})
    unable = sorted(
        user.id for user in reviewers.values()
        if not has_permission(user.role, APPROVAL_APPROVE)
    )
    if unable:
        raise ApprovalValidationError(f"Users cannot review content: {unable}", {"user_ids": unable})
    return wanted


async def add_pending_approvals(
    session: AsyncSession,
    content_id: int,
    reviewer_ids: Sequence[int],
) -> list[Approval]:
    """Stage a pending approval for each reviewer that has none yet. Does not commit."""
    result = await session.execute(
        select(Approval.reviewer_id).where(Approval.content_id == content_id)
    )
    existing = set(result.scalars().all())

    created = []
    for reviewer_id in reviewer_ids:
        if reviewer_id in existing:
            continue
        approval = Approval(
            content_id=content_id,
            reviewer_id=reviewer_id,
            status=ApprovalStatus.PENDING.value,
        )
        session.add(approval)
        created.append(approval)
    return created


async def submit_for_review(
    session: AsyncSession,
    content_id: int,
    user: User,
    reviewer_ids: Sequence[int] = (),
) -> Content:
    """Move a draft into review, optionally inviting reviewers.

    The status change and the pending approvals are committed together;
    if any reviewer is rejected the content stays a draft.

    Raises:
        ContentNotFoundError: content does not exist
        WorkflowError: content is not a draft
        PermissionDeniedError: user may not submit this content
        NotFoundError: a reviewer id is unknown
        ApprovalValidationError: a reviewer cannot review content
    """
    async with content_locks.acquire(content_id):
        content = await _load(session, content_id)
        if content.status != ContentStatus.DRAFT.value:
            raise WorkflowError("Only draft content can be submitted for review")
        _check_transition(content, ContentStatus.IN_REVIEW, user)
        wanted = await validate_reviewers(session, reviewer_ids)

        content.status = ContentStatus.IN_REVIEW.value
        await add_pending_approvals(session, content.id, wanted)
        log_activity(
            session, content.id, user.id, ActivityAction.SUBMITTED_FOR_REVIEW,
            "Content submitted for review",
        )
        await session.commit()

    logger.info(f"Content {content_id} submitted for review by user {user.id}")
    return content


async def publish(session: AsyncSession, content_id: int, user: User) -> Content:
    """Publish approved content and stamp ``published_at``."""
    async with content_locks.acquire(content_id):
        content = await _load(session, content_id)
        if content.status != ContentStatus.APPROVED.value:
            raise WorkflowError("Only approved content can be published")
        _check_transition(content, ContentStatus.PUBLISHED, user)

        content.status = ContentStatus.PUBLISHED.value
        content.published_at = utcnow()
        log_activity(session, content.id, user.id, ActivityAction.PUBLISHED, "Content published")
        await session.commit()

    logger.info(f"Content {content_id} published by user {user.id}")
    return content


_RETURNABLE = (
    ContentStatus.IN_REVIEW.value,
    ContentStatus.APPROVED.value,
    ContentStatus.REJECTED.value,
)


async def return_to_draft(
    session: AsyncSession,
    content_id: int,
    user: User,
    reason: Optional[str] = None,
) -> Content:
    """Send content in the review phase back to draft for further edits."""
    async with content_locks.acquire(content_id):
        content = await _load(session, content_id)
        if content.status not in _RETURNABLE:
            raise WorkflowError("This content cannot be returned to draft")
        _check_transition(content, ContentStatus.DRAFT, user)

        content.status = ContentStatus.DRAFT.value
        log_activity(
            session, content.id, user.id, ActivityAction.RETURNED_TO_DRAFT,
            reason or "Content returned to draft for edits",
        )
        await session.commit()

    logger.info(f"Content {content_id} returned to draft by user {user.id}")
    return content


async def unpublish(
    session: AsyncSession,
    content_id: int,
    user: User,
    reason: Optional[str] = None,
) -> Content:
    """Withdraw published content back to draft. Moderators and admins only."""
    async with content_locks.acquire(content_id):
        content = await _load(session, content_id)
        if content.status != ContentStatus.PUBLISHED.value:
            raise WorkflowError("Only published content can be unpublished")
        _check_transition(content, ContentStatus.DRAFT, user)

        content.status = ContentStatus.DRAFT.value
        log_activity(
            session, content.id, user.id, ActivityAction.UNPUBLISHED,
            reason or "Content withdrawn from publication",
        )
        await session.commit()

    logger.info(f"Content {content_id} unpublished by user {user.id}")
    return content
