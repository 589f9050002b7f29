"""Connector registry for managing notification channels."""
import logging
from typing import Dict, List, Optional

from .base import NotificationConnector

logger = logging.getLogger(__name__)


class ConnectorRegistry:
    """Registry for notification connectors, keyed by connector type."""

    def __init__(self):
        self._connectors: Dict[str, NotificationConnector] = {}

    def register(self, connector: NotificationConnector) -> None:
        """Register a connector, replacing any of the same type.

        Args:
            connector: Connector instance to register
        """
        self._connectors[connector.connector_type] = connector
        logger.info(f"Registered connector: {connector.connector_type}")

    def get(self, connector_type: str) -> Optional[NotificationConnector]:
        return self._connectors.get(connector_type)

    def unregister(self, connector_type: str) -> Optional[NotificationConnector]:
        return self._connectors.pop(connector_type, None)

    def list_connectors(self) -> List[str]:
        return list(self._connectors.keys())

    def all(self) -> List[NotificationConnector]:
        return list(self._connectors.values())

    async def close_all(self) -> None:
        for connector in list(self._connectors.values()):
            await connector.close()
        self._connectors.clear()


# Global registry instance
_registry = ConnectorRegistry()


def get_registry() -> ConnectorRegistry:
    """Get the global connector registry."""
    return _registry


def register_connector(connector: NotificationConnector) -> None:
    _registry.register(connector)


def get_connector(connector_type: str) -> Optional[NotificationConnector]:
    return _registry.get(connector_type)
