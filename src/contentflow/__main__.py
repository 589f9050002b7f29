"""CLI interface for Contentflow.

This module provides a command-line interface for managing a Contentflow
installation: configuration, running the API server, status checks and
maintenance of derived content statuses.
"""
import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from . import __version__
from .core.config import ContentflowConfig, init_config, setup_logging


def _load_config(config: str | None) -> ContentflowConfig:
    app_config = init_config(config) if config else init_config()
    setup_logging(app_config)
    return app_config


@click.group()
@click.version_option(version=__version__)
def cli():
    """Contentflow - role-based content management with approval workflows."""
    pass


@cli.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False),
    default="contentflow.yaml",
    help="Path to configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Force overwrite existing config")
def init(config_path: str, force: bool):
    """Initialize Contentflow configuration.

    Creates a default configuration file with recommended settings.
    """
    config_file = Path(config_path)

    if config_file.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite")
        return

    try:
        config = ContentflowConfig.create_default_config(config_file)

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo("\nDefault configuration:")
        click.echo(f"  API Server: {config.api_host}:{config.api_port}")
        click.echo(f"  Database: {config.get_database_url()}")
        click.echo(f"\nEdit {config_path} to customize settings.")

    except Exception as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--host", help="Override API host")
@click.option("--port", type=int, help="Override API port")
def start(config: str, host: str, port: int):
    """Start the Contentflow API server."""
    try:
        app_config = _load_config(config)

        if host:
            app_config.api_host = host
        if port:
            app_config.api_port = port

        click.echo("🚀 Starting Contentflow...")
        click.echo(f"   API: http://{app_config.api_host}:{app_config.api_port}")
        click.echo("\nPress Ctrl+C to stop\n")

        uvicorn.run(
            "contentflow.api:create_app",
            factory=True,
            host=app_config.api_host,
            port=app_config.api_port,
            log_level=app_config.log_level.lower(),
        )

    except KeyboardInterrupt:
        click.echo("\n\nStopping Contentflow...")
    except Exception as e:
        click.echo(f"Error starting server: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def status(config: str):
    """Check Contentflow system status.

    Displays configuration, database and content counts.
    """
    try:
        app_config = _load_config(config)

        click.echo("Contentflow Status")
        click.echo("=" * 50)
        click.echo(f"Configuration: {config or 'default'}")
        click.echo(f"Database URL: {app_config.get_database_url()}")
        click.echo(f"API Server: {app_config.api_host}:{app_config.api_port}")
        click.echo(f"Log Level: {app_config.log_level}")
        click.echo(f"Email: {'enabled' if app_config.email_enabled else 'disabled'}")
        click.echo(f"Slack: {'enabled' if app_config.slack_enabled else 'disabled'}")

        from .core.storage.database import init_db

        db = init_db(app_config.get_database_url())

        async def get_counts():
            from sqlalchemy import func, select

            from .core.models import Approval, ApprovalStatus, Content

            await db.create_tables()
            async with db.session() as session:
                result = await session.execute(
                    select(Content.status, func.count(Content.id)).group_by(Content.status)
                )
                by_status = dict(result.all())

                result = await session.execute(
                    select(func.count(Approval.id)).where(
                        Approval.status == ApprovalStatus.PENDING.value
                    )
                )
                pending = result.scalar_one()
            await db.close()
            return by_status, pending

        by_status, pending = asyncio.run(get_counts())
        click.echo("\n✓ Database connection successful")
        click.echo(f"\nContent: {sum(by_status.values())} total")
        for key in sorted(by_status):
            click.echo(f"   {key}: {by_status[key]}")
        click.echo(f"Pending approvals: {pending}")

    except Exception as e:
        click.echo(f"Error checking status: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=20, help="Number of entries to show")
def logs(config: str, limit: int):
    """View the most recent content activity."""
    try:
        app_config = _load_config(config)
        from .core.storage.database import init_db
        from .core.storage.repositories import ActivityRepository

        db = init_db(app_config.get_database_url())

        async def get_recent_activity():
            await db.create_tables()
            async with db.session() as session:
                entries = await ActivityRepository(session).recent(limit)
            await db.close()
            return entries

        entries = asyncio.run(get_recent_activity())

        if not entries:
            click.echo("No activity found")
            return

        click.echo(f"\nRecent Activity (showing {len(entries)}):")
        click.echo("=" * 80)

        for entry in entries:
            user = f"user #{entry.user_id}" if entry.user_id else "system"
            click.echo(
                f"{entry.created_at.strftime('%Y-%m-%d %H:%M:%S')}  content #{entry.content_id}  "
                f"{entry.action.upper()} by {user}"
            )
            if entry.details:
                click.echo(f"   {entry.details[:100]}")

    except Exception as e:
        click.echo(f"Error retrieving logs: {e}", err=True)
        sys.exit(1)


@cli.command("recompute-statuses")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def recompute_statuses(config: str):
    """Re-derive the status of all content under review from its approvals."""
    try:
        app_config = _load_config(config)
        from .core.models import ContentStatus
        from .core.storage.database import init_db
        from .core.storage.repositories import ContentRepository
        from .core.workflow import update_content_status_based_on_approvals
        from .core.workflow.approvals import REVIEW_PHASE

        db = init_db(app_config.get_database_url())

        async def recompute():
            changed = []
            await db.create_tables()
            async with db.session() as session:
                contents = await ContentRepository(session).list_by_status(
                    [status.value for status in REVIEW_PHASE]
                )
                for content_id, before in [(c.id, c.status) for c in contents]:
                    after = await update_content_status_based_on_approvals(session, content_id)
                    if after != ContentStatus(before):
                        changed.append((content_id, before, after.value))
            await db.close()
            return changed

        changed = asyncio.run(recompute())
        if not changed:
            click.echo("All content statuses are consistent with their approvals")
            return
        for content_id, before, after in changed:
            click.echo(f"Content #{content_id}: {before} -> {after}")
        click.echo(f"\n✓ Updated {len(changed)} content item(s)")

    except Exception as e:
        click.echo(f"Error recomputing statuses: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
