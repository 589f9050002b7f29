"""Configuration for contentflow."""
from .settings import ContentflowConfig, get_config, init_config, setup_logging

__all__ = [
    "ContentflowConfig",
    "get_config",
    "init_config",
    "setup_logging",
]
