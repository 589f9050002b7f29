"""FastAPI app factory"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.config import ContentflowConfig, get_config
from ..core.integrations.email import EmailConnector, EmailQueue, SMTPClient, SMTPSettings
from ..core.integrations.manager import NotificationService
from ..core.integrations.registry import get_registry
from ..core.integrations.slack import SlackConnector
from ..core.storage.database import get_db, init_db
from .dependencies import verify_api_key
from .error_handlers import register_error_handlers

logger = logging.getLogger(__name__)


def setup_connectors(config: ContentflowConfig) -> None:
    """Register the channels enabled in configuration."""
    registry = get_registry()

    if config.email_enabled:
        smtp = SMTPClient(SMTPSettings(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            from_address=config.email_from,
            reply_to=config.email_reply_to,
        ))
        queue = EmailQueue(smtp.send, max_attempts=config.email_max_attempts)
        queue.start()
        registry.register(EmailConnector({"queue": queue}))

    if config.slack_enabled:
        registry.register(SlackConnector({
            "bot_token": config.slack_bot_token,
            "channels": [config.slack_channel],
        }))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    config = get_config()
    try:
        db = get_db()
    except RuntimeError:
        db = init_db(config.get_database_url())
    await db.create_tables()

    setup_connectors(config)

    # Store in app state for access in routes
    app.state.db = db
    app.state.config = config
    app.state.notifications = NotificationService(db.session, base_url=config.app_base_url)

    logger.info("Contentflow API started")

    yield

    # Shutdown
    await get_registry().close_all()
    await db.close()
    logger.info("Contentflow API stopped")


def create_app() -> FastAPI:
    """Create FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    config = get_config()
    app = FastAPI(
        title="Contentflow API",
        description="Role-based content management with approval workflows",
        version=__version__,
        lifespan=lifespan,
        dependencies=[Depends(verify_api_key)],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routes
    from .routes import analytics, approvals, comments, content, notifications, projects, search, tasks, users, versions

    app.include_router(users.router, tags=["users"])
    app.include_router(content.router, tags=["content"])
    app.include_router(approvals.router, tags=["approvals"])
    app.include_router(comments.router, tags=["comments"])
    app.include_router(versions.router, tags=["versions"])
    app.include_router(projects.router, tags=["projects"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(search.router, tags=["search"])
    app.include_router(analytics.router, tags=["analytics"])
    app.include_router(notifications.router, tags=["notifications"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        db_ok = await get_db().health_check()
        return {
            "status": "healthy" if db_ok else "degraded",
            "service": "contentflow",
            "database": db_ok,
            "connectors": get_registry().list_connectors(),
        }

    return app
