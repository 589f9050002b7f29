"""Contentflow core library: models, workflow, ordering and integrations."""
from . import config
from . import storage
from . import models
from . import workflow
from . import schemas
from . import integrations

__all__ = [
    "config",
    "storage",
    "models",
    "workflow",
    "schemas",
    "integrations",
]
