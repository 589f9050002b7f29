"""Tests for repository pattern implementations."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.core.models import (
    Approval,
    ApprovalStatus,
    Comment,
    Content,
    ContentActivity,
    ContentStatus,
    ContentVersion,
    Notification,
    NotificationType,
    UserRole,
)
from contentflow.core.storage.repositories import (
    ActivityRepository,
    ApprovalRepository,
    CommentRepository,
    ContentRepository,
    NotificationRepository,
    TagRepository,
    UserRepository,
    VersionRepository,
)


@pytest.fixture
async def content_repo(session: AsyncSession):
    """Create content repository."""
    return ContentRepository(session)


@pytest.fixture
async def approval_repo(session: AsyncSession):
    """Create approval repository."""
    return ApprovalRepository(session)


def _content(author, title="Test content", status=ContentStatus.DRAFT):
    return Content(
        title=title,
        slug=title.lower().replace(" ", "-"),
        status=status.value,
        author_id=author.id,
    )


@pytest.mark.asyncio
async def test_content_repository_create(content_repo: ContentRepository, contributor):
    """Test creating a content item."""
    created = await content_repo.create(_content(contributor))

    assert created.id is not None
    assert created.status == ContentStatus.DRAFT.value
    assert created.version == 1
    assert created.priority == "medium"


@pytest.mark.asyncio
async def test_content_repository_get_and_slug(content_repo: ContentRepository, contributor):
    """Test getting a content item by id and slug."""
    created = await content_repo.create(_content(contributor))

    retrieved = await content_repo.get(created.id)
    assert retrieved is not None
    assert retrieved.title == "Test content"

    by_slug = await content_repo.get_by_slug("test-content")
    assert by_slug.id == created.id
    assert await content_repo.slug_exists("test-content")
    assert not await content_repo.slug_exists("missing")


@pytest.mark.asyncio
async def test_content_repository_update(content_repo: ContentRepository, contributor):
    """Test updating a content item."""
    created = await content_repo.create(_content(contributor))

    updated = await content_repo.update(created.id, priority="urgent")
    assert updated is not None
    assert updated.priority == "urgent"

    assert await content_repo.update(99999, priority="low") is None


@pytest.mark.asyncio
async def test_content_repository_list_by_status(content_repo: ContentRepository, contributor):
    """Test listing content by status."""
    for i, status in enumerate([ContentStatus.DRAFT, ContentStatus.IN_REVIEW, ContentStatus.APPROVED]):
        await content_repo.create(_content(contributor, f"Item {i}", status))

    review_phase = await content_repo.list_by_status(["in_review", "approved"])
    assert [c.title for c in review_phase] == ["Item 1", "Item 2"]

    everything = await content_repo.list()
    assert len(everything) == 3
    assert len(await content_repo.list(limit=1, offset=2)) == 1


@pytest.mark.asyncio
async def test_content_repository_get_with_relationships(
    content_repo: ContentRepository, approval_repo: ApprovalRepository, contributor, moderator
):
    """Test getting content with approvals, comments and versions loaded."""
    created = await content_repo.create(_content(contributor, status=ContentStatus.IN_REVIEW))
    await approval_repo.create(Approval(content_id=created.id, reviewer_id=moderator.id))
    await CommentRepository(content_repo.session).create(
        Comment(content_id=created.id, user_id=moderator.id, text="Looks good")
    )

    loaded = await content_repo.get_with_relationships(created.id)
    assert loaded is not None
    assert [a.reviewer_id for a in loaded.approvals] == [moderator.id]
    assert [c.text for c in loaded.comments] == ["Looks good"]
    assert loaded.versions == []


@pytest.mark.asyncio
async def test_content_repository_delete(content_repo: ContentRepository, contributor):
    """Test deleting a content item."""
    created = await content_repo.create(_content(contributor))

    assert await content_repo.delete(created.id) is True
    assert await content_repo.get(created.id) is None
    assert await content_repo.delete(created.id) is False


@pytest.mark.asyncio
async def test_get_many_skips_unknown_ids(content_repo: ContentRepository, contributor):
    first = await content_repo.create(_content(contributor, "One"))
    second = await content_repo.create(_content(contributor, "Two"))

    found = await content_repo.get_many([first.id, second.id, 4242])
    assert sorted(c.id for c in found) == [first.id, second.id]
    assert await content_repo.get_many([]) == []


@pytest.mark.asyncio
async def test_approval_repository_per_reviewer(
    content_repo: ContentRepository, approval_repo: ApprovalRepository, contributor, moderator, moderator2
):
    """Test approvals are listed per content and found per reviewer."""
    content = await content_repo.create(_content(contributor, status=ContentStatus.IN_REVIEW))
    await approval_repo.create(Approval(content_id=content.id, reviewer_id=moderator.id))
    await approval_repo.create(
        Approval(content_id=content.id, reviewer_id=moderator2.id, status=ApprovalStatus.APPROVED.value)
    )

    approvals = await approval_repo.get_by_content_id(content.id)
    assert [a.status for a in approvals] == ["pending", "approved"]

    mine = await approval_repo.get_for_reviewer(content.id, moderator2.id)
    assert mine.status == ApprovalStatus.APPROVED.value
    assert await approval_repo.get_for_reviewer(content.id, contributor.id) is None


@pytest.mark.asyncio
async def test_tag_repository_get_or_create(session: AsyncSession):
    repo = TagRepository(session)

    first = await repo.get_or_create_many(["News", " news ", "Launch", ""])
    assert [tag.name for tag in first] == ["launch", "news"]

    second = await repo.get_or_create_many(["NEWS", "events"])
    assert [tag.name for tag in second] == ["events", "news"]
    assert second[1].id == first[1].id


@pytest.mark.asyncio
async def test_user_repository(session: AsyncSession, make_user):
    await make_user(UserRole.ADMIN)
    moderator = await make_user(UserRole.MODERATOR)
    await make_user(UserRole.VIEWER)
    repo = UserRepository(session)

    found = await repo.get_by_email(moderator.email)
    assert found.id == moderator.id
    assert await repo.get_by_email("nobody@example.com") is None

    reviewers = await repo.list_by_roles(["admin", "moderator"])
    assert [u.role for u in reviewers] == ["admin", "moderator"]


@pytest.mark.asyncio
async def test_version_repository(content_repo: ContentRepository, contributor):
    content = await content_repo.create(_content(contributor))
    repo = VersionRepository(content_repo.session)
    for number in (1, 2):
        await repo.create(ContentVersion(
            content_id=content.id,
            version_number=number,
            title=f"Title {number}",
            status="draft",
            type="article",
            priority="medium",
            created_by_id=contributor.id,
        ))

    versions = await repo.get_by_content_id(content.id)
    assert [v.version_number for v in versions] == [2, 1]
    assert (await repo.get_by_number(content.id, 1)).title == "Title 1"
    assert await repo.get_by_number(content.id, 3) is None


@pytest.mark.asyncio
async def test_activity_repository_recent(content_repo: ContentRepository, contributor):
    content = await content_repo.create(_content(contributor))
    repo = ActivityRepository(content_repo.session)
    for action in ("created", "updated", "submitted_for_review"):
        await repo.create(ContentActivity(content_id=content.id, user_id=contributor.id, action=action))

    recent = await repo.recent(limit=2)
    assert [a.action for a in recent] == ["submitted_for_review", "updated"]


@pytest.mark.asyncio
async def test_notification_repository_unread_filter(content_repo: ContentRepository, contributor):
    content = await content_repo.create(_content(contributor))
    repo = NotificationRepository(content_repo.session)
    read = await repo.create(Notification(
        user_id=contributor.id, content_id=content.id,
        type=NotificationType.COMMENT_ADDED.value, message="old", is_read=True,
    ))
    unread = await repo.create(Notification(
        user_id=contributor.id, content_id=content.id,
        type=NotificationType.CONTENT_APPROVED.value, message="new",
    ))

    assert [n.id for n in await repo.list_for_user(contributor.id)] == [unread.id, read.id]
    assert [n.id for n in await repo.list_for_user(contributor.id, unread_only=True)] == [unread.id]
