"""Tests for approval aggregation and reviewer verdicts."""
import asyncio

import pytest
from sqlalchemy import select

from contentflow.core.content import create_content
from contentflow.core.errors import (
    ApprovalValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from contentflow.core.models import (
    ActivityAction,
    Approval,
    ApprovalStatus,
    Content,
    ContentActivity,
    ContentStatus,
)
from contentflow.core.workflow import (
    aggregate_approval_status,
    bulk_apply,
    content_locks,
    publish,
    record_verdict,
    request_reviews,
    submit_for_review,
    update_content_status_based_on_approvals,
)

APPROVED = ApprovalStatus.APPROVED
REJECTED = ApprovalStatus.REJECTED
PENDING = ApprovalStatus.PENDING


@pytest.mark.parametrize(
    "current,verdicts,expected",
    [
        (ContentStatus.IN_REVIEW, [], ContentStatus.IN_REVIEW),
        (ContentStatus.APPROVED, [], ContentStatus.APPROVED),
        (ContentStatus.IN_REVIEW, [APPROVED], ContentStatus.APPROVED),
        (ContentStatus.IN_REVIEW, [APPROVED, APPROVED], ContentStatus.APPROVED),
        (ContentStatus.IN_REVIEW, [APPROVED, PENDING], ContentStatus.IN_REVIEW),
        (ContentStatus.IN_REVIEW, [APPROVED, REJECTED], ContentStatus.REJECTED),
        (ContentStatus.APPROVED, [APPROVED, PENDING], ContentStatus.IN_REVIEW),
        (ContentStatus.REJECTED, [APPROVED, APPROVED], ContentStatus.APPROVED),
        (ContentStatus.IN_REVIEW, [PENDING, PENDING, REJECTED], ContentStatus.REJECTED),
    ],
)
def test_aggregate_approval_status(current, verdicts, expected):
    assert aggregate_approval_status(current, verdicts) == expected


def test_aggregate_accepts_raw_strings():
    assert aggregate_approval_status("in_review", ["approved", "rejected"]) == ContentStatus.REJECTED


@pytest.fixture
async def in_review(session, contributor):
    content = await create_content(session, contributor, "Launch announcement", body={"text": "hi"})
    await submit_for_review(session, content.id, contributor)
    return content


async def _activities(session, content_id, action):
    result = await session.execute(
        select(ContentActivity).where(
            ContentActivity.content_id == content_id,
            ContentActivity.action == action.value,
        )
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_single_approval_approves(session, in_review, moderator):
    result = await record_verdict(session, in_review.id, moderator, "approved")

    assert result.previous_status == ContentStatus.IN_REVIEW
    assert result.content_status == ContentStatus.APPROVED
    assert result.status_changed
    content = await session.get(Content, in_review.id, populate_existing=True)
    assert content.status == "approved"
    changes = await _activities(session, in_review.id, ActivityAction.STATUS_CHANGED)
    assert len(changes) == 1


@pytest.mark.asyncio
async def test_all_reviewers_must_approve(session, in_review, moderator, moderator2):
    await request_reviews(session, in_review.id, moderator, [moderator.id, moderator2.id])

    first = await record_verdict(session, in_review.id, moderator, "approved")
    assert first.content_status == ContentStatus.IN_REVIEW
    assert not first.status_changed

    second = await record_verdict(session, in_review.id, moderator2, "approved")
    assert second.content_status == ContentStatus.APPROVED


@pytest.mark.asyncio
async def test_any_rejection_rejects(session, in_review, moderator, moderator2):
    await record_verdict(session, in_review.id, moderator, "approved")
    result = await record_verdict(session, in_review.id, moderator2, "rejected", "Needs sources")

    assert result.content_status == ContentStatus.REJECTED
    assert result.approval.comment == "Needs sources"


@pytest.mark.asyncio
async def test_reviewer_changing_verdict_updates_same_row(session, in_review, moderator):
    await record_verdict(session, in_review.id, moderator, "rejected", "Typos")
    result = await record_verdict(session, in_review.id, moderator, "approved")

    assert result.previous_status == ContentStatus.REJECTED
    assert result.content_status == ContentStatus.APPROVED
    rows = (await session.execute(
        select(Approval).where(Approval.content_id == in_review.id)
    )).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_rejection_requires_comment(session, in_review, moderator):
    with pytest.raises(ApprovalValidationError):
        await record_verdict(session, in_review.id, moderator, "rejected", "   ")


@pytest.mark.asyncio
async def test_contributor_cannot_review(session, in_review, contributor):
    with pytest.raises(PermissionDeniedError):
        await record_verdict(session, in_review.id, contributor, "approved")


@pytest.mark.asyncio
async def test_verdict_on_draft_leaves_status(session, contributor, moderator):
    content = await create_content(session, contributor, "Still drafting")
    result = await record_verdict(session, content.id, moderator, "approved")

    assert result.content_status == ContentStatus.DRAFT
    assert not result.status_changed


@pytest.mark.asyncio
async def test_verdict_on_published_leaves_status(session, in_review, moderator, moderator2):
    await record_verdict(session, in_review.id, moderator, "approved")
    await publish(session, in_review.id, moderator)

    result = await record_verdict(session, in_review.id, moderator2, "rejected", "Too late")
    assert result.content_status == ContentStatus.PUBLISHED


@pytest.mark.asyncio
async def test_request_reviews_reopens_approved_content(session, in_review, moderator, moderator2):
    await record_verdict(session, in_review.id, moderator, "approved")

    created = await request_reviews(session, in_review.id, moderator, [moderator.id, moderator2.id])

    # moderator already reviewed; only moderator2 gets a new pending row
    assert [approval.reviewer_id for approval in created] == [moderator2.id]
    content = await session.get(Content, in_review.id, populate_existing=True)
    assert content.status == "in_review"


@pytest.mark.asyncio
async def test_author_may_request_reviews(session, in_review, contributor, moderator):
    created = await request_reviews(session, in_review.id, contributor, [moderator.id])
    assert created[0].status == PENDING.value


@pytest.mark.asyncio
async def test_request_reviews_rejects_unknown_and_unqualified(session, in_review, moderator, viewer):
    with pytest.raises(NotFoundError):
        await request_reviews(session, in_review.id, moderator, [9999])
    with pytest.raises(ApprovalValidationError):
        await request_reviews(session, in_review.id, moderator, [viewer.id])


@pytest.mark.asyncio
async def test_recompute_is_idempotent(session, in_review, moderator):
    await record_verdict(session, in_review.id, moderator, "approved")

    assert await update_content_status_based_on_approvals(session, in_review.id) == ContentStatus.APPROVED
    assert await update_content_status_based_on_approvals(session, in_review.id) == ContentStatus.APPROVED
    changes = await _activities(session, in_review.id, ActivityAction.STATUS_CHANGED)
    assert len(changes) == 1


@pytest.mark.asyncio
async def test_concurrent_verdicts_are_serialised(db, in_review, moderator, moderator2):
    async with db.session() as setup:
        await request_reviews(setup, in_review.id, moderator, [moderator.id, moderator2.id])

    async def vote(reviewer):
        async with db.session() as s:
            return await record_verdict(s, in_review.id, reviewer, "approved")

    results = await asyncio.gather(vote(moderator), vote(moderator2))

    statuses = sorted(result.content_status.value for result in results)
    assert statuses == ["approved", "in_review"]
    assert len(content_locks) == 0


@pytest.mark.asyncio
async def test_bulk_approve(session, contributor, moderator):
    ids = []
    for title in ("One", "Two"):
        content = await create_content(session, contributor, title)
        await submit_for_review(session, content.id, contributor)
        created = await request_reviews(session, content.id, moderator, [moderator.id])
        ids.append(created[0].id)

    results = await bulk_apply(session, moderator, "approve", ids)

    assert all(item.success for item in results)
    assert [item.content_status for item in results] == [ContentStatus.APPROVED] * 2
    approval = await session.get(Approval, ids[0], populate_existing=True)
    assert approval.comment == "Bulk approved"


@pytest.mark.asyncio
async def test_bulk_reject_requires_comment(session, moderator):
    with pytest.raises(ApprovalValidationError):
        await bulk_apply(session, moderator, "reject", [1])


@pytest.mark.asyncio
async def test_bulk_unknown_id_changes_nothing(session, in_review, moderator):
    created = await request_reviews(session, in_review.id, moderator, [moderator.id])

    with pytest.raises(NotFoundError) as exc:
        await bulk_apply(session, moderator, "approve", [created[0].id, 4242])

    assert exc.value.details["missing"] == [4242]
    approval = await session.get(Approval, created[0].id, populate_existing=True)
    assert approval.status == PENDING.value


@pytest.mark.asyncio
async def test_bulk_requires_permission(session, contributor):
    with pytest.raises(PermissionDeniedError):
        await bulk_apply(session, contributor, "approve", [1])
