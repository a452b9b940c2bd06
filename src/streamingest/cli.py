"""streamingest Command Line Interface.

Entry point for the streamingest CLI tool. Lets an operator push a test
event through the same handler the serverless function uses, and check a
configuration without connecting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer

from streamingest import __version__
from streamingest.contracts.enums import IngestMode
from streamingest.contracts.errors import (
    CommitTimeoutError,
    IngestError,
    InitializationError,
    RowValidationError,
    SettingsError,
)
from streamingest.core.config import IngestSettings, load_settings, load_settings_from_env, resolve_config

__all__ = [
    "app",
]

app = typer.Typer(
    name="streamingest",
    help="streamingest: commit-confirmed event ingestion into streaming channels.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"streamingest version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _format_error(title: str, message: str, hint: str | None = None) -> None:
    """Display a formatted error with an optional hint."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)
    content = Text()
    content.append(message, style="white")
    if hint:
        content.append("\n\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")
    console.print(Panel(content, title=f"[red bold]{title}[/]", border_style="red", padding=(0, 1)))


def _load(settings: Path | None) -> IngestSettings:
    """Load settings from a YAML file, or from the environment if none given."""
    try:
        if settings is None:
            return load_settings_from_env()
        return load_settings(settings.expanduser())
    except FileNotFoundError:
        _format_error(
            "File Not Found",
            f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except SettingsError as e:
        _format_error(
            "Configuration Validation Failed",
            str(e),
            hint="Set account, user, role, warehouse, private_key, database, schema and table.",
        )
        raise typer.Exit(1) from None


def _read_event(event: str | None, event_file: Path | None) -> dict[str, Any]:
    if event_file is not None:
        raw = event_file.expanduser().read_text(encoding="utf-8")
    elif event is not None:
        raw = event
    else:
        _format_error("Missing Event", "Pass an event as JSON or with --event-file.")
        raise typer.Exit(1)

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        _format_error("Invalid Event", f"Event is not valid JSON: {e}")
        raise typer.Exit(1) from None
    if not isinstance(parsed, dict):
        _format_error("Invalid Event", "Event must be a JSON object.")
        raise typer.Exit(1)
    return parsed


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """streamingest: commit-confirmed event ingestion into streaming channels."""
    from streamingest.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def send(
    event: str | None = typer.Argument(None, help="Event as a JSON object."),
    event_file: Path | None = typer.Option(
        None,
        "--event-file",
        "-f",
        help="Read the event from a JSON file instead.",
    ),
    rows: bool = typer.Option(
        False,
        "--rows",
        help="One row per event entry instead of one row for the whole event.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (default: read from environment).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Use an in-memory channel instead of connecting.",
    ),
) -> None:
    """Ingest one event and wait for its commit."""
    from streamingest.engine.connection import IngestSession
    from streamingest.handler import build_handler, request_identity

    config = _load(settings)
    payload = _read_event(event, event_file)

    client_factory = None
    if dry_run:
        from streamingest.testing.fake_channel import FakeClientFactory

        client_factory = FakeClientFactory()

    handler = build_handler(config, client_factory=client_factory)
    outcome = handler.handle(
        IngestSession(),
        payload,
        identity=request_identity(None),
        mode=IngestMode.MULTI if rows else IngestMode.SINGLE,
    )

    if outcome.ok:
        typer.secho(outcome.status, fg=typer.colors.GREEN)
        typer.echo(f"rows: {outcome.rows_submitted}  offset token: {outcome.confirmed_token}")
        return
    typer.secho(outcome.status, fg=typer.colors.RED, err=True)
    try:
        outcome.raise_for_status()
    except CommitTimeoutError as e:
        _format_error(
            "Commit Not Confirmed",
            f"Offset token {e.result.expected_token} not committed after {e.result.polls} polls.",
            hint="The row may still land; raise commit_max_retries if commits are routinely slow.",
        )
    except RowValidationError as e:
        _format_error("Row Rejected", str(e), hint="Check the event against the target table's columns.")
    except InitializationError as e:
        _format_error("Initialization Failed", str(e), hint="Check credentials, role grants and the target table.")
    except IngestError as e:
        _format_error("Ingest Failed", str(e))
    raise typer.Exit(1)


@app.command("check-config")
def check_config(
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (default: read from environment).",
    ),
) -> None:
    """Validate configuration and print it with secrets fingerprinted."""
    config = _load(settings)
    typer.echo(json.dumps(resolve_config(config), indent=2))
    typer.secho("Configuration valid.", fg=typer.colors.GREEN)
