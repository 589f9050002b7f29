"""Notification service: in-app notification rows plus channel delivery."""
import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Content, Notification, NotificationType, User, UserRole
from .base import NotificationEvent, Recipient
from .registry import ConnectorRegistry, get_registry

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager]

REVIEWER_ROLES = (UserRole.MODERATOR.value, UserRole.ADMIN.value)


class NotificationService:
    """Records and delivers workflow notifications.

    Uses its own sessions so that a failure here never touches the
    caller's transaction, and catches everything: notifying is best effort.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        registry: Optional[ConnectorRegistry] = None,
        base_url: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.registry = registry or get_registry()
        self.base_url = base_url.rstrip("/") if base_url else None

    def content_link(self, content_id: int) -> Optional[str]:
        if not self.base_url:
            return None
        return f"{self.base_url}/content/{content_id}"

    async def approval_requested(
        self,
        content_id: int,
        actor_id: int,
        reviewer_ids: Optional[Sequence[int]] = None,
    ) -> List[Notification]:
        """Notify invited reviewers, or every moderator and admin when none were invited."""
        async def build(session: AsyncSession, content: Content, actor: User):
            query = select(User).where(User.id != actor.id)
            if reviewer_ids:
                query = query.where(User.id.in_(list(reviewer_ids)))
            else:
                query = query.where(User.role.in_(REVIEWER_ROLES))
            result = await session.execute(query.order_by(User.id))
            recipients = list(result.scalars().all())
            message = f'New content "{content.title}" requires your approval'
            return recipients, message, None

        return await self._notify(NotificationType.APPROVAL_REQUESTED, content_id, actor_id, build)

    async def approval_status_changed(
        self,
        content_id: int,
        actor_id: int,
        approved: bool,
        comment: Optional[str] = None,
    ) -> List[Notification]:
        """Tell the author a reviewer approved or rejected their content."""
        verdict = "approved" if approved else "rejected"

        async def build(session: AsyncSession, content: Content, actor: User):
            author = await session.get(User, content.author_id)
            message = f'Your content "{content.title}" has been {verdict} by {actor.display_name}'
            return [author] if author else [], message, comment

        event_type = NotificationType.CONTENT_APPROVED if approved else NotificationType.CONTENT_REJECTED
        return await self._notify(event_type, content_id, actor_id, build)

    async def content_published(self, content_id: int, actor_id: int) -> List[Notification]:
        async def build(session: AsyncSession, content: Content, actor: User):
            author = await session.get(User, content.author_id)
            message = f'Your content "{content.title}" has been published by {actor.display_name}'
            return [author] if author else [], message, None

        return await self._notify(NotificationType.CONTENT_PUBLISHED, content_id, actor_id, build)

    async def comment_added(self, content_id: int, actor_id: int, text: str) -> List[Notification]:
        """Tell the author about a new comment, unless they wrote it."""
        async def build(session: AsyncSession, content: Content, actor: User):
            if content.author_id == actor.id:
                return [], "", None
            author = await session.get(User, content.author_id)
            message = f'{actor.display_name} commented on your content "{content.title}"'
            return [author] if author else [], message, text

        return await self._notify(NotificationType.COMMENT_ADDED, content_id, actor_id, build)

    async def _notify(
        self,
        event_type: NotificationType,
        content_id: int,
        actor_id: int,
        build: Callable,
    ) -> List[Notification]:
        try:
            async with self.session_factory() as session:
                content = await session.get(Content, content_id)
                actor = await session.get(User, actor_id)
                if content is None or actor is None:
                    logger.error(
                        f"Cannot notify {event_type.value}: content {content_id} or user {actor_id} missing"
                    )
                    return []

                users, message, comment = await build(session, content, actor)
                if not users:
                    return []

                notifications = [
                    Notification(
                        user_id=user.id,
                        content_id=content.id,
                        type=event_type.value,
                        message=message,
                    )
                    for user in users
                ]
                session.add_all(notifications)
                await session.commit()

                event = NotificationEvent(
                    type=event_type,
                    content_id=content.id,
                    content_title=content.title,
                    message=message,
                    actor_name=actor.display_name,
                    comment=comment,
                    recipients=[Recipient(user_id=u.id, email=u.email, name=u.name) for u in users],
                    link=self.content_link(content.id),
                )
        except Exception as e:
            logger.error(f"Error recording {event_type.value} notification: {e}")
            return []

        await self.dispatch(event)
        return notifications

    async def dispatch(self, event: NotificationEvent) -> Dict[str, Dict[str, Any]]:
        """Send an event through every registered connector."""
        results: Dict[str, Dict[str, Any]] = {}
        for connector in self.registry.all():
            try:
                result = await connector.send_notification(event)
            except Exception as e:
                logger.error(f"Connector {connector.connector_type} raised: {e}")
                result = {"success": False, "error": str(e)}
            if not result.get("success"):
                logger.warning(
                    f"{connector.connector_type} delivery failed for content {event.content_id}: "
                    f"{result.get('error')}"
                )
            results[connector.connector_type] = result
        return results
