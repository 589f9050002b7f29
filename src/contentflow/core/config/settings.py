"""Configuration management for contentflow."""
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContentflowConfig(BaseSettings):
    """Main configuration for the contentflow service.

    Configuration can be loaded from:
    1. Environment variables (prefixed with CONTENTFLOW_)
    2. YAML configuration file (contentflow.yaml)
    3. Default values
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8000, description="API port")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Database Configuration
    storage: str = Field(default="sqlite", description="Storage backend (sqlite or postgresql)")
    db_path: str = Field(default="./contentflow.db", description="Database file path for SQLite")
    db_url: Optional[str] = Field(default=None, description="Database URL for PostgreSQL")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Security Configuration
    enable_auth: bool = Field(default=False, description="Require X-API-Key on every request")
    api_key: Optional[str] = Field(default=None, description="API key for authentication")

    # Email Configuration
    smtp_host: Optional[str] = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_user: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="Use STARTTLS")
    email_from: str = Field(default="noreply@example.com", description="Sender address")
    email_reply_to: str = Field(default="support@example.com", description="Reply-to address")
    email_max_attempts: int = Field(default=3, ge=1, description="Delivery attempts per email")
    app_base_url: str = Field(default="http://localhost:3000", description="Base URL used in links")

    # Slack Configuration
    slack_bot_token: Optional[str] = Field(default=None, description="Slack bot token (xoxb-...)")
    slack_channel: Optional[str] = Field(default=None, description="Channel for review notifications")

    # Board Configuration
    position_step: int = Field(
        default=1000, ge=2, description="Gap between positions of newly created siblings"
    )

    # Search Configuration
    search_page_size: int = Field(default=10, ge=1, le=100, description="Default search page size")

    model_config = SettingsConfigDict(
        env_prefix="CONTENTFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def get_database_url(self) -> str:
        """Get the database URL based on configuration.

        Returns:
            Database URL string
        """
        if self.db_url:
            return self.db_url

        if self.storage == "sqlite":
            if self.db_path == ":memory:":
                return "sqlite+aiosqlite:///:memory:"
            # Ensure path is absolute
            db_path = Path(self.db_path)
            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path
            return f"sqlite+aiosqlite:///{db_path}"
        elif self.storage == "postgresql":
            raise ValueError(
                "PostgreSQL selected but db_url not provided. "
                "Set CONTENTFLOW_DB_URL or db_url in config file."
            )
        else:
            raise ValueError(f"Unknown storage backend: {self.storage}")

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    @property
    def slack_enabled(self) -> bool:
        return bool(self.slack_bot_token and self.slack_channel)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "ContentflowConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ContentflowConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration file: {config_path}")

        return cls(**data)

    def to_yaml(self, config_path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save configuration file
        """
        config_path = Path(config_path)

        # Convert to dict and remove None values
        data = self.model_dump(exclude_none=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def create_default_config(cls, config_path: str | Path) -> "ContentflowConfig":
        """Create a default configuration file.

        Args:
            config_path: Path to save configuration file

        Returns:
            ContentflowConfig instance with default values
        """
        config = cls()
        config.to_yaml(config_path)
        return config


# Global configuration instance
_config: Optional[ContentflowConfig] = None


def init_config(config_path: Optional[str | Path] = None) -> ContentflowConfig:
    """Initialize the global configuration.

    Args:
        config_path: Optional path to YAML configuration file.
                    If not provided, uses environment variables and defaults.

    Returns:
        ContentflowConfig instance
    """
    global _config

    if config_path:
        _config = ContentflowConfig.from_yaml(config_path)
    else:
        # Try to load from default location
        default_paths = [
            Path("contentflow.yaml"),
            Path("contentflow.yml"),
            Path(".contentflow.yaml"),
            Path.home() / ".contentflow" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                _config = ContentflowConfig.from_yaml(path)
                return _config

        # No config file found, use defaults and env vars
        _config = ContentflowConfig()

    return _config


def get_config() -> ContentflowConfig:
    """Get the global configuration instance.

    Auto-initializes with defaults when nothing has been loaded yet.
    """
    if _config is None:
        return init_config()
    return _config


def setup_logging(config: ContentflowConfig) -> None:
    """Configure root logging from the config's level and optional file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
