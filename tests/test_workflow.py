"""Tests for content authoring, status transitions and version history."""
import pytest
from sqlalchemy import select

from contentflow.core.content import create_content, delete_content, slugify, update_content
from contentflow.core.errors import (
    ApprovalValidationError,
    ContentNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    WorkflowError,
)
from contentflow.core.models import ActivityAction, Approval, Content, ContentActivity
from contentflow.core.storage.repositories import ContentRepository
from contentflow.core.versioning import compare_versions, list_versions, restore_version
from contentflow.core.workflow import (
    publish,
    record_verdict,
    return_to_draft,
    submit_for_review,
    unpublish,
)


async def _actions(session, content_id):
    result = await session.execute(
        select(ContentActivity.action)
        .where(ContentActivity.content_id == content_id)
        .order_by(ContentActivity.id)
    )
    return list(result.scalars().all())


def test_slugify():
    assert slugify("Hello, World!") == "hello-world"
    assert slugify("  Café   crème  ") == "cafe-creme"
    assert slugify("!!!") == "content"


@pytest.mark.asyncio
async def test_create_content_starts_as_draft(session, contributor):
    content = await create_content(
        session, contributor, "Spring Launch", body={"blocks": []}, tags=["News", "launch"]
    )

    assert content.status == "draft"
    assert content.slug == "spring-launch"
    assert content.version == 1
    assert [tag.name for tag in content.tags] == ["launch", "news"]
    assert await _actions(session, content.id) == [ActivityAction.CREATED.value]


@pytest.mark.asyncio
async def test_duplicate_titles_get_unique_slugs(session, contributor):
    first = await create_content(session, contributor, "Weekly Update")
    second = await create_content(session, contributor, "Weekly Update")
    third = await create_content(session, contributor, "Weekly Update")

    assert [first.slug, second.slug, third.slug] == ["weekly-update", "weekly-update-2", "weekly-update-3"]


def _hide_first_slug_lookup(monkeypatch):
    """Make the next slug lookup miss, as if the row was committed just after it."""
    real_get_by_slug = ContentRepository.get_by_slug
    pending = [True]

    async def get_by_slug(self, slug):
        if pending:
            pending.pop()
            return None
        return await real_get_by_slug(self, slug)

    monkeypatch.setattr(ContentRepository, "get_by_slug", get_by_slug)


@pytest.mark.asyncio
async def test_create_retries_when_slug_is_taken_concurrently(session, contributor, monkeypatch):
    await create_content(session, contributor, "Weekly Update")
    _hide_first_slug_lookup(monkeypatch)

    content = await create_content(session, contributor, "Weekly Update", tags=["news"])

    assert content.slug == "weekly-update-2"
    assert [tag.name for tag in content.tags] == ["news"]
    assert await _actions(session, content.id) == [ActivityAction.CREATED.value]


@pytest.mark.asyncio
async def test_retitle_retries_when_slug_is_taken_concurrently(session, contributor, monkeypatch):
    await create_content(session, contributor, "Weekly Update")
    content = await create_content(session, contributor, "Draft title")
    _hide_first_slug_lookup(monkeypatch)

    updated = await update_content(session, content.id, contributor, {"title": "Weekly Update"})

    assert updated.slug == "weekly-update-2"
    assert updated.version == 2
    assert len(await list_versions(session, content.id)) == 1
    assert await _actions(session, content.id) == [
        ActivityAction.CREATED.value,
        ActivityAction.VERSION_CREATED.value,
        ActivityAction.UPDATED.value,
    ]


@pytest.mark.asyncio
async def test_viewer_cannot_create(session, viewer):
    with pytest.raises(PermissionDeniedError):
        await create_content(session, viewer, "Nope")


@pytest.mark.asyncio
async def test_unknown_assignee_is_rejected(session, contributor):
    with pytest.raises(ValidationError):
        await create_content(session, contributor, "Assigned", assignee_id=777)


@pytest.mark.asyncio
async def test_full_publication_flow(session, contributor, moderator):
    content = await create_content(session, contributor, "Release notes")

    await submit_for_review(session, content.id, contributor)
    await record_verdict(session, content.id, moderator, "approved")
    published = await publish(session, content.id, moderator)

    assert published.status == "published"
    assert published.published_at is not None
    assert await _actions(session, content.id) == [
        "created", "submitted_for_review", "status_changed", "published",
    ]


@pytest.mark.asyncio
async def test_only_drafts_can_be_submitted(session, contributor):
    content = await create_content(session, contributor, "Twice")
    await submit_for_review(session, content.id, contributor)

    with pytest.raises(WorkflowError):
        await submit_for_review(session, content.id, contributor)


@pytest.mark.asyncio
async def test_others_cannot_submit_a_draft(session, contributor, moderator, admin):
    content = await create_content(session, contributor, "Mine")

    with pytest.raises(PermissionDeniedError):
        await submit_for_review(session, content.id, moderator)

    submitted = await submit_for_review(session, content.id, admin)
    assert submitted.status == "in_review"


@pytest.mark.asyncio
async def test_submit_with_reviewers_is_atomic(session, contributor, moderator, viewer):
    content = await create_content(session, contributor, "Atomic")
    content_id = content.id

    with pytest.raises(ApprovalValidationError):
        await submit_for_review(session, content_id, contributor, [moderator.id, viewer.id])
    with pytest.raises(NotFoundError):
        await submit_for_review(session, content_id, contributor, [moderator.id, 999999])

    reloaded = await session.get(Content, content_id, populate_existing=True)
    assert reloaded.status == "draft"
    approvals = await session.execute(select(Approval).where(Approval.content_id == content_id))
    assert approvals.scalars().all() == []

    submitted = await submit_for_review(session, content_id, contributor, [moderator.id, moderator.id])
    assert submitted.status == "in_review"
    approvals = await session.execute(select(Approval).where(Approval.content_id == content_id))
    assert [(a.reviewer_id, a.status) for a in approvals.scalars().all()] == [(moderator.id, "pending")]


@pytest.mark.asyncio
async def test_publish_requires_approval(session, contributor, moderator):
    content = await create_content(session, contributor, "Early")
    await submit_for_review(session, content.id, contributor)

    with pytest.raises(WorkflowError):
        await publish(session, content.id, moderator)


@pytest.mark.asyncio
async def test_contributor_cannot_publish(session, contributor, moderator):
    content = await create_content(session, contributor, "Approved piece")
    await submit_for_review(session, content.id, contributor)
    await record_verdict(session, content.id, moderator, "approved")

    with pytest.raises(PermissionDeniedError):
        await publish(session, content.id, contributor)


@pytest.mark.asyncio
async def test_return_to_draft_from_rejected(session, contributor, moderator):
    content = await create_content(session, contributor, "Rough")
    await submit_for_review(session, content.id, contributor)
    await record_verdict(session, content.id, moderator, "rejected", "Too rough")

    returned = await return_to_draft(session, content.id, contributor, "Reworking intro")

    assert returned.status == "draft"
    result = await session.execute(
        select(ContentActivity.details).where(
            ContentActivity.content_id == content.id,
            ContentActivity.action == ActivityAction.RETURNED_TO_DRAFT.value,
        )
    )
    assert result.scalar_one() == "Reworking intro"


@pytest.mark.asyncio
async def test_published_content_needs_unpublish(session, contributor, moderator):
    content = await create_content(session, contributor, "Live")
    await submit_for_review(session, content.id, contributor)
    await record_verdict(session, content.id, moderator, "approved")
    await publish(session, content.id, moderator)

    with pytest.raises(WorkflowError):
        await return_to_draft(session, content.id, moderator)
    with pytest.raises(PermissionDeniedError):
        await unpublish(session, content.id, contributor)

    withdrawn = await unpublish(session, content.id, moderator)
    assert withdrawn.status == "draft"


@pytest.mark.asyncio
async def test_missing_content(session, contributor):
    with pytest.raises(ContentNotFoundError):
        await submit_for_review(session, 404, contributor)


@pytest.mark.asyncio
async def test_update_snapshots_previous_state(session, contributor):
    content = await create_content(session, contributor, "Draft title", body={"v": 1})

    updated = await update_content(
        session, content.id, contributor, {"title": "Final title", "body": {"v": 2}},
        change_description="Retitled",
    )

    assert updated.version == 2
    assert updated.slug == "final-title"
    versions = await list_versions(session, content.id)
    assert len(versions) == 1
    assert versions[0].version_number == 1
    assert versions[0].title == "Draft title"
    assert versions[0].body == {"v": 1}
    assert versions[0].change_description == "Retitled"


@pytest.mark.asyncio
async def test_only_author_or_admin_edits(session, contributor, make_user, admin):
    other = await make_user()
    content = await create_content(session, contributor, "Owned")

    with pytest.raises(PermissionDeniedError):
        await update_content(session, content.id, other, {"title": "Hijacked"})

    edited = await update_content(session, content.id, admin, {"priority": "urgent"})
    assert edited.priority == "urgent"


@pytest.mark.asyncio
async def test_status_cannot_be_edited_directly(session, contributor):
    content = await create_content(session, contributor, "Sneaky")

    with pytest.raises(ValidationError):
        await update_content(session, content.id, contributor, {"status": "published"})


@pytest.mark.asyncio
async def test_compare_and_restore(session, contributor, moderator):
    content = await create_content(session, contributor, "v1 title", body={"n": 1})
    await update_content(session, content.id, contributor, {"title": "v2 title"})
    await update_content(session, content.id, contributor, {"body": {"n": 3}})

    comparison = await compare_versions(session, content.id, 1, 2)
    assert comparison.changed_fields == ["title"]

    content = await session.get(Content, content.id, populate_existing=True)
    restored = await restore_version(session, content, 1, moderator)

    assert restored.title == "v1 title"
    assert restored.body == {"n": 1}
    assert restored.version == 4
    versions = await list_versions(session, content.id)
    assert [version.version_number for version in versions] == [3, 2, 1]
    assert versions[0].body == {"n": 3}


@pytest.mark.asyncio
async def test_restore_requires_permission(session, contributor):
    content = await create_content(session, contributor, "Keep")
    await update_content(session, content.id, contributor, {"title": "Changed"})
    content = await session.get(Content, content.id, populate_existing=True)

    with pytest.raises(PermissionDeniedError):
        await restore_version(session, content, 1, contributor)


@pytest.mark.asyncio
async def test_restore_unknown_version(session, contributor, moderator):
    content = await create_content(session, contributor, "Fresh")

    with pytest.raises(NotFoundError):
        await restore_version(session, content, 9, moderator)


@pytest.mark.asyncio
async def test_delete_requires_permission_and_ownership(session, contributor, moderator, admin):
    content = await create_content(session, contributor, "Doomed")
    content_id = content.id
    await submit_for_review(session, content_id, contributor)
    await record_verdict(session, content_id, moderator, "approved")

    # Contributors lack content:delete; moderators are not the author
    with pytest.raises(PermissionDeniedError):
        await delete_content(session, content_id, contributor)
    with pytest.raises(PermissionDeniedError):
        await delete_content(session, content_id, moderator)

    await delete_content(session, content_id, admin)

    session.expunge_all()
    assert await session.get(Content, content_id) is None
    assert await _actions(session, content_id) == []
    remaining = await session.execute(select(Approval).where(Approval.content_id == content_id))
    assert remaining.scalars().all() == []
