"""CLI entry point for decadog."""

import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
import structlog

from decadog import __version__
from decadog.config.settings import DecadogSettings
from decadog.engine.context import SprintContext
from decadog.engine.orchestrator import SprintOrchestrator
from decadog.exceptions import ConfigurationError, DecadogError
from decadog.providers.github_rest import GitHubClient
from decadog.providers.zenhub_rest import ZenHubClient
from decadog.utils.logging_config import configure_logging
from decadog.utils.prompts import ClickPrompter

log = structlog.get_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./decadog.yml if present)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level",
)
@click.option("--json-logs", is_flag=True, help="Write logs as JSON lines")
@click.option("--exit-on-error", is_flag=True, help="Exit with status 1 when a command fails")
@click.version_option(__version__, prog_name="decadog")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str,
    json_logs: bool,
    exit_on_error: bool,
) -> None:
    """decadog: sprint planning across GitHub and ZenHub."""
    configure_logging(log_level, json_output=json_logs)
    ctx.obj = {"config_path": config_path, "exit_on_error": exit_on_error}


@cli.group()
def sprint() -> None:
    """Manage sprints."""


@sprint.command("create")
@click.pass_context
def create_command(ctx: click.Context) -> None:
    """Create a new sprint starting today."""
    _run_sprint_command(ctx, "create", lambda orchestrator: orchestrator.create())


@sprint.command("sync")
@click.pass_context
def sync_command(ctx: click.Context) -> None:
    """Sync a physical board to the digital board."""
    _run_sprint_command(ctx, "sync", lambda orchestrator: orchestrator.sync())


@sprint.command("start")
@click.pass_context
def start_command(ctx: click.Context) -> None:
    """Assign issues to a sprint, and people to issues (same as sync)."""
    _run_sprint_command(ctx, "sync", lambda orchestrator: orchestrator.sync())


@sprint.command("finish")
@click.pass_context
def finish_command(ctx: click.Context) -> None:
    """Tidy up and close a sprint."""
    _run_sprint_command(ctx, "finish", lambda orchestrator: orchestrator.finish())


@contextmanager
def build_orchestrator(settings: DecadogSettings, command: str) -> Iterator[SprintOrchestrator]:
    """Create both API clients and the orchestrator using them.

    The clients are closed when the context exits.

    Raises:
        ConfigurationError: If the ZenHub token is missing or a client
            cannot be configured.
    """
    if settings.zenhub_token is None:
        raise ConfigurationError(f"Zenhub token required to {command} sprint.")

    with (
        GitHubClient(
            settings.github_token.get_secret_value(),
            base_url=settings.github_url,
            max_retries=settings.max_retries,
        ) as github,
        ZenHubClient(
            settings.zenhub_token.get_secret_value(),
            base_url=settings.zenhub_url,
            max_retries=settings.max_retries,
        ) as zenhub,
    ):
        context = SprintContext(
            settings.owner,
            settings.repo,
            github,
            zenhub,
            workspace_id=settings.zenhub_workspace_id,
        )
        yield SprintOrchestrator(
            context,
            ClickPrompter(),
            estimates=settings.estimates,
            obsolete_label=settings.obsolete_label,
            sprint_length_days=settings.sprint_length_days,
        )


def _run_sprint_command(
    ctx: click.Context, command: str, operation: Callable[[SprintOrchestrator], Any]
) -> None:
    """Run one sprint workflow, reporting failures.

    Failures are reported on stderr. The process still exits 0 unless
    ``--exit-on-error`` or ``exit_on_error`` in the config asks otherwise.
    """
    exit_on_error = ctx.obj["exit_on_error"]
    try:
        settings = DecadogSettings.load(ctx.obj["config_path"])
        exit_on_error = exit_on_error or settings.exit_on_error
        structlog.contextvars.bind_contextvars(command=command, repo=f"{settings.owner}/{settings.repo}")

        with build_orchestrator(settings, command) as orchestrator:
            operation(orchestrator)
    except DecadogError as e:
        click.echo(f"Error: {e}", err=True)
        log.debug("sprint_command_error", exc_info=True)
        if exit_on_error:
            sys.exit(1)
    except (KeyboardInterrupt, click.Abort):
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("sprint_command_unexpected", exc_info=True)
        if exit_on_error:
            sys.exit(1)
    finally:
        structlog.contextvars.unbind_contextvars("command", "repo")


if __name__ == "__main__":
    cli()
