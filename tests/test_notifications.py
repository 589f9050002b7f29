"""Tests for in-app notifications and channel connectors."""
from unittest.mock import AsyncMock

import pytest
from slack_sdk.errors import SlackApiError
from sqlalchemy import select

from contentflow.core.content import create_content
from contentflow.core.integrations import (
    ConnectorRegistry,
    EmailConnector,
    EmailQueue,
    NotificationConnector,
    NotificationEvent,
    NotificationService,
    Recipient,
    SlackConnector,
)
from contentflow.core.integrations.email import EmailPriority
from contentflow.core.models import Notification, NotificationType, UserRole


class RecordingConnector(NotificationConnector):
    def __init__(self, fail: bool = False):
        super().__init__({})
        self.fail = fail
        self.events = []

    def _get_connector_type(self) -> str:
        return "recording"

    async def send_notification(self, event):
        self.events.append(event)
        if self.fail:
            raise RuntimeError("channel exploded")
        return {"success": True, "message_id": "1"}


@pytest.fixture
def connector():
    return RecordingConnector()


@pytest.fixture
def service(db, connector):
    registry = ConnectorRegistry()
    registry.register(connector)
    return NotificationService(db.session, registry=registry, base_url="https://cms.example.com/")


async def _notifications(session, user_id):
    result = await session.execute(
        select(Notification).where(Notification.user_id == user_id).order_by(Notification.id)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_approval_requested_goes_to_reviewers(session, service, connector, contributor, moderator, admin, viewer):
    content = await create_content(session, contributor, "Press release")

    created = await service.approval_requested(content.id, contributor.id)

    assert sorted(n.user_id for n in created) == sorted([moderator.id, admin.id])
    assert await _notifications(session, viewer.id) == []
    event = connector.events[0]
    assert event.type == NotificationType.APPROVAL_REQUESTED
    assert event.link == f"https://cms.example.com/content/{content.id}"
    assert "Press release" in event.message


@pytest.mark.asyncio
async def test_approval_requested_for_invited_reviewers(session, service, contributor, moderator, moderator2):
    content = await create_content(session, contributor, "Invite only")

    created = await service.approval_requested(content.id, contributor.id, [moderator2.id])

    assert [n.user_id for n in created] == [moderator2.id]


@pytest.mark.asyncio
async def test_verdict_notifies_author(session, service, connector, contributor, moderator):
    content = await create_content(session, contributor, "Op-ed")

    await service.approval_status_changed(content.id, moderator.id, approved=False, comment="Cite sources")

    notifications = await _notifications(session, contributor.id)
    assert [n.type for n in notifications] == ["content_rejected"]
    assert connector.events[0].comment == "Cite sources"
    assert connector.events[0].recipients[0].email == contributor.email


@pytest.mark.asyncio
async def test_comment_by_author_notifies_nobody(session, service, connector, contributor, viewer):
    content = await create_content(session, contributor, "Diary")

    assert await service.comment_added(content.id, contributor.id, "Note to self") == []
    assert connector.events == []

    created = await service.comment_added(content.id, viewer.id, "Nice read")
    assert [n.user_id for n in created] == [contributor.id]


@pytest.mark.asyncio
async def test_missing_content_is_logged_not_raised(service, contributor):
    assert await service.content_published(4040, contributor.id) == []


@pytest.mark.asyncio
async def test_dispatch_survives_failing_connector(db, make_user):
    author = await make_user(UserRole.CONTRIBUTOR)
    registry = ConnectorRegistry()
    broken = RecordingConnector(fail=True)
    registry.register(broken)
    service = NotificationService(db.session, registry=registry)

    async with db.session() as session:
        content = await create_content(session, author, "Resilient")

    event = NotificationEvent(
        type=NotificationType.CONTENT_PUBLISHED,
        content_id=content.id,
        content_title="Resilient",
        message="Published",
    )
    results = await service.dispatch(event)

    assert results["recording"]["success"] is False
    assert "exploded" in results["recording"]["error"]


def _event(**extra):
    return NotificationEvent(
        type=NotificationType.APPROVAL_REQUESTED,
        content_id=7,
        content_title="Launch plan",
        message='New content "Launch plan" requires your approval',
        actor_name="Ada",
        recipients=[Recipient(user_id=1, email="mod@example.com", name="Mod")],
        **extra,
    )


@pytest.mark.asyncio
async def test_email_connector_enqueues_per_recipient():
    queue = EmailQueue(AsyncMock())
    connector = EmailConnector({"queue": queue})
    event = _event(link="https://cms.example.com/content/7")
    event.recipients.append(Recipient(user_id=2, email="admin@example.com"))

    result = await connector.send_notification(event)

    assert result["success"] is True
    assert result["queued"] == 2
    jobs = queue.peek_order()
    assert [job.to for job in jobs] == ["mod@example.com", "admin@example.com"]
    assert all(job.priority == EmailPriority.HIGH for job in jobs)
    assert jobs[0].body.startswith("Hello Mod,")
    assert "View: https://cms.example.com/content/7" in jobs[0].body
    assert jobs[0].subject.startswith("[Content Management]")


@pytest.mark.asyncio
async def test_email_connector_without_recipients():
    connector = EmailConnector({"queue": EmailQueue(AsyncMock())})
    event = _event()
    event.recipients.clear()

    result = await connector.send_notification(event)
    assert result == {"success": False, "error": "No recipients"}


@pytest.mark.asyncio
async def test_slack_connector_posts_to_each_channel():
    client = AsyncMock()
    client.chat_postMessage.return_value = {"ok": True, "ts": "1700000000.1", "channel": "C1"}
    connector = SlackConnector({"channels": ["#content", "#editors"]}, client=client)

    result = await connector.send_notification(_event(comment="Please check dates"))

    assert result["success"] is True
    assert result["message_id"] == "1700000000.1"
    assert client.chat_postMessage.await_count == 2
    blocks = client.chat_postMessage.await_args.kwargs["blocks"]
    assert blocks[0]["text"]["text"].startswith(":eyes:")
    assert "Please check dates" in blocks[2]["text"]["text"]


@pytest.mark.asyncio
async def test_slack_api_error_is_reported():
    client = AsyncMock()
    client.chat_postMessage.side_effect = SlackApiError("boom", {"ok": False, "error": "channel_not_found"})
    connector = SlackConnector({"channels": ["#missing"]}, client=client)

    result = await connector.send_notification(_event())

    assert result["success"] is False
    assert "channel_not_found" in result["error"]


@pytest.mark.asyncio
async def test_slack_without_channels():
    connector = SlackConnector({"channels": []}, client=AsyncMock())
    result = await connector.send_notification(_event())
    assert result["success"] is False
