"""Persistence layer: engine, sessions and declarative base.

Repositories live in :mod:`contentflow.core.storage.repositories`.
"""
from .database import Base, Database, get_db, init_db, utcnow

__all__ = [
    "Base",
    "Database",
    "get_db",
    "init_db",
    "utcnow",
]
