"""REST API for contentflow."""
from .app import create_app

__all__ = ["create_app"]
