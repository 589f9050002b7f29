"""Base connector interface for notification channels."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.notification import NotificationType


@dataclass
class Recipient:
    user_id: int
    email: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass
class NotificationEvent:
    """Everything a channel needs to render one notification."""
    type: NotificationType
    content_id: int
    content_title: str
    message: str
    actor_name: Optional[str] = None
    comment: Optional[str] = None
    recipients: List[Recipient] = field(default_factory=list)
    link: Optional[str] = None

    @property
    def subject(self) -> str:
        return f"[Content Management] {self.message}"


class NotificationConnector(ABC):
    """Base abstract class for notification connectors.

    Connectors deliver content workflow events through a communication
    channel (email, Slack, ...). Delivery failures are reported in the
    returned dict and never raised.
    """

    def __init__(self, config: Dict[str, Any]):
        """Initialize connector with configuration.

        Args:
            config: Connector-specific configuration (tokens, hosts, etc.)
        """
        self.config = config
        self.connector_type = self._get_connector_type()

    @abstractmethod
    def _get_connector_type(self) -> str:
        """Return the connector type identifier (e.g., 'slack', 'email')."""
        pass

    @abstractmethod
    async def send_notification(self, event: NotificationEvent) -> Dict[str, Any]:
        """Deliver an event.

        Args:
            event: The event to deliver; channels pick their own addressing
                from ``event.recipients`` or their configuration

        Returns:
            Dict with status and message_id:
            {
                'success': True/False,
                'message_id': 'external_message_id',
                'error': 'error message if failed'
            }
        """
        pass

    async def test_connection(self) -> Dict[str, Any]:
        """Test if the connector is properly configured.

        Returns:
            Dict with connection status:
            {
                'success': True/False,
                'message': 'status message'
            }
        """
        return {'success': True, 'message': 'No test implemented'}

    async def close(self) -> None:
        """Release channel resources."""
        return None

    def format_message(self, event: NotificationEvent) -> str:
        """Format an event into a plain-text message.

        Args:
            event: The event to format

        Returns:
            Formatted string representation
        """
        lines = [event.message, "", f"Content: {event.content_title}"]
        if event.actor_name:
            lines.append(f"By: {event.actor_name}")
        if event.comment:
            lines.extend(["", "Comments:", event.comment])
        if event.link:
            lines.extend(["", f"View: {event.link}"])
        return "\n".join(lines)
