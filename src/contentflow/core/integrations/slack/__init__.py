from .client import SlackConnector

__all__ = ["SlackConnector"]
