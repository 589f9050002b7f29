"""Communication channel connectors for content notifications."""
from .base import NotificationConnector, NotificationEvent, Recipient
from .email import EmailConnector, EmailQueue, SMTPClient, SMTPSettings
from .manager import NotificationService
from .registry import ConnectorRegistry, get_registry
from .slack import SlackConnector

__all__ = [
    'ConnectorRegistry',
    'EmailConnector',
    'EmailQueue',
    'NotificationConnector',
    'NotificationEvent',
    'NotificationService',
    'Recipient',
    'SMTPClient',
    'SMTPSettings',
    'SlackConnector',
    'get_registry',
]
