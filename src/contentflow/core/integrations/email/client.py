"""SMTP delivery and the email notification connector."""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Dict, Optional

from ..base import NotificationConnector, NotificationEvent
from ...models.notification import NotificationType
from .queue import EmailJob, EmailPriority, EmailQueue

logger = logging.getLogger(__name__)

EVENT_PRIORITY = {
    NotificationType.APPROVAL_REQUESTED: EmailPriority.HIGH,
    NotificationType.CONTENT_REJECTED: EmailPriority.HIGH,
    NotificationType.CONTENT_APPROVED: EmailPriority.NORMAL,
    NotificationType.CONTENT_PUBLISHED: EmailPriority.NORMAL,
    NotificationType.COMMENT_ADDED: EmailPriority.LOW,
}


@dataclass
class SMTPSettings:
    host: str
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_address: str = "noreply@example.com"
    reply_to: Optional[str] = None
    timeout: float = 10.0


class SMTPClient:
    """Sends one message per call through ``smtplib``."""

    def __init__(self, settings: SMTPSettings):
        self.settings = settings

    def build_message(self, job: EmailJob) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = job.subject
        msg["From"] = self.settings.from_address
        msg["To"] = job.to
        if self.settings.reply_to:
            msg["Reply-To"] = self.settings.reply_to
        msg.set_content(job.body)
        return msg

    def send_sync(self, job: EmailJob) -> None:
        """Blocking send. Raises ``smtplib.SMTPException`` or ``OSError`` on failure."""
        msg = self.build_message(job)
        with smtplib.SMTP(self.settings.host, self.settings.port, timeout=self.settings.timeout) as smtp:
            if self.settings.use_tls:
                smtp.starttls()
            if self.settings.user and self.settings.password:
                smtp.login(self.settings.user, self.settings.password)
            smtp.send_message(msg)

    async def send(self, job: EmailJob) -> None:
        await asyncio.to_thread(self.send_sync, job)


class EmailConnector(NotificationConnector):
    """Queues one email per recipient of an event.

    Config format:
    {
        "queue": EmailQueue,         # Delivery queue (required)
        "base_url": "https://..."    # Optional, used for links
    }
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.queue: EmailQueue = config["queue"]

    def _get_connector_type(self) -> str:
        return "email"

    async def send_notification(self, event: NotificationEvent) -> Dict[str, Any]:
        if not event.recipients:
            return {"success": False, "error": "No recipients"}

        priority = EVENT_PRIORITY.get(event.type, EmailPriority.NORMAL)
        body = self.format_message(event)
        job_ids = []
        for recipient in event.recipients:
            job = EmailJob(
                to=recipient.email,
                subject=event.subject,
                body=f"Hello {recipient.display_name},\n\n{body}\n",
                priority=priority,
            )
            job_ids.append(self.queue.enqueue(job))

        return {"success": True, "message_id": job_ids[0], "queued": len(job_ids)}

    async def test_connection(self) -> Dict[str, Any]:
        return {"success": True, "message": f"{self.queue.pending()} email(s) queued"}

    async def close(self) -> None:
        await self.queue.stop()
