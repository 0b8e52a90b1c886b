"""Command line interface for the Filebay project."""

from __future__ import annotations

import difflib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import click
import uvicorn
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from filebay.auth import TokenService
from filebay.classification import ClassificationTables
from filebay.config import (
    ConfigError,
    ConfigManager,
    FilebayConfig,
    assign_nested,
    resolve_with_precedence,
)
from filebay.errors import FilebayError
from filebay.logging_config import setup_logging
from filebay.server import create_app
from filebay.services import build_services

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _load_config(
    *,
    root: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> FilebayConfig:
    """Load the effective configuration, applying command-line overrides last.

    Raises:
        click.ClickException: If the configuration cannot be loaded.
    """
    cli_overrides: dict[str, Any] = dict(overrides or {})
    if root:
        cli_overrides["storage.root"] = root
    manager = ConfigManager()
    try:
        return manager.load(cli_overrides=cli_overrides or None)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="filebay")
def cli() -> None:
    """Filebay stores, organizes, and serves uploaded files."""


@cli.command()
@click.option("--host", type=str, help="Interface to bind (overrides server.host).")
@click.option("--port", type=int, help="Port to listen on (overrides server.port).")
@click.option("--root", type=click.Path(file_okay=False, path_type=str), help="Storage root.")
@click.option("--log-level", type=str, help="Logging level (overrides logging.level).")
def serve(
    host: Optional[str],
    port: Optional[int],
    root: Optional[str],
    log_level: Optional[str],
) -> None:
    """Run the HTTP server.

    Args:
        host: Optional bind address override.
        port: Optional port override.
        root: Optional storage root override.
        log_level: Optional logging level override.

    Raises:
        click.ClickException: If configuration or startup fails.
    """
    overrides: dict[str, Any] = {}
    if host:
        overrides["server.host"] = host
    if port is not None:
        overrides["server.port"] = port
    if log_level:
        overrides["logging.level"] = log_level
    config = _load_config(root=root, overrides=overrides)

    setup_logging(config.logging, console=console)
    try:
        app = create_app(config)
    except (ConfigError, FilebayError) as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        f"[green]Serving {Path(config.storage.root).expanduser()} on "
        f"http://{config.server.host}:{config.server.port}[/green]"
    )
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
        log_config=None,
    )


@cli.command()
@click.argument("user_id")
@click.option("--user-type", default="user", show_default=True, help="Value of the userType claim.")
@click.option("--json", "json_output", is_flag=True, help="Emit the token as JSON.")
def token(user_id: str, user_type: str, json_output: bool) -> None:
    """Issue a bearer token for USER_ID signed with the configured secret."""
    config = _load_config()
    service = TokenService.from_settings(config.auth)
    issued_at = datetime.now(timezone.utc)
    encoded = service.issue(user_id, user_type, now=issued_at)
    if json_output:
        console.print_json(
            data={
                "token": encoded,
                "userId": user_id,
                "userType": user_type,
                "expiresAt": (issued_at + service.ttl).isoformat(),
            }
        )
        return
    click.echo(encoded)


@cli.command()
@click.option(
    "--older-than",
    "older_than",
    type=float,
    help="Age threshold in hours (overrides storage.orphan_max_age_hours).",
)
@click.option("--root", type=click.Path(file_okay=False, path_type=str), help="Storage root.")
@click.option("--dry-run", is_flag=True, help="List orphaned staging files without deleting.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the sweep.")
def sweep(
    older_than: Optional[float],
    root: Optional[str],
    dry_run: bool,
    json_output: bool,
) -> None:
    """Remove staging files left behind by interrupted uploads.

    Args:
        older_than: Optional age threshold override in hours.
        root: Optional storage root override.
        dry_run: Only report orphaned files.
        json_output: Emit JSON instead of human-readable output.
    """
    config = _load_config(root=root)
    if older_than is not None and older_than <= 0:
        _handle_cli_error(
            "--older-than must be a positive number of hours.",
            code="invalid_argument",
            json_output=json_output,
        )
    try:
        services = build_services(config)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    max_age = (
        timedelta(hours=older_than) if older_than is not None else services.orphan_max_age
    )
    if dry_run:
        affected = services.stager.orphans(max_age)
    else:
        affected = services.stager.sweep(max_age)

    names = [path.name for path in affected]
    if json_output:
        console.print_json(
            data={
                "dryRun": dry_run,
                "olderThanHours": max_age.total_seconds() / 3600,
                "files": names,
            }
        )
        return

    verb = "Would remove" if dry_run else "Removed"
    for name in names:
        console.print(f"[yellow]{verb} {name}[/yellow]")
    console.print(f"[green]{verb} {len(names)} orphaned staging file(s).[/green]")


@cli.group()
def tables() -> None:
    """Inspect the classification tables."""


@tables.command("check")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the tables.")
def tables_check(json_output: bool) -> None:
    """Validate built-in and configured classification mappings for duplicates."""
    config = _load_config()
    try:
        built = ClassificationTables.build(
            extra_mime_types=config.classification.extra_mime_types,
            extra_extensions=config.classification.extra_extensions,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="invalid_tables", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "mimeTypes": len(built.mime_index),
                "extensions": len(built.extension_index),
                "duplicates": [],
            }
        )
        return

    table = Table(title="Classification tables")
    table.add_column("Table")
    table.add_column("Entries", justify="right")
    table.add_row("MIME types", str(len(built.mime_index)))
    table.add_row("Extensions", str(len(built.extension_index)))
    console.print(table)
    console.print("[green]No duplicate mappings found.[/green]")


@cli.group()
def config() -> None:
    """Manage Filebay configuration values."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'storage.max_upload_mb'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    file_data = manager.load_file_overrides()

    try:
        assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=FilebayConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.startswith(("-# Last updated", "+# Last updated"))
    ]

    if any(line.startswith(("+", "-")) and not line.startswith(("+++", "---")) for line in diff):
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=FilebayConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
