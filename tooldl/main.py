"""
tooldl — CLI entrypoint.

Usage:
    tooldl --user USER [--token TOKEN] [--path DIR]
    python -m tooldl --user USER --json
"""

from __future__ import annotations

import json
import os
import sys
from typing import NoReturn

import click

from tooldl import __version__
from tooldl.core.config.loader import ConfigError, RunConfig, load_run_config
from tooldl.core.config.registry import load_registry
from tooldl.core.errors import ToolDlError
from tooldl.core.observability.logging_config import resolve_level, setup_logging
from tooldl.core.services.credentials import KeyringStore, resolve_credential
from tooldl.core.services.releases import ReleaseClient
from tooldl.core.services.updater import ToolResult, ToolState, ToolUpdater, UpdateReport


@click.command()
@click.version_option(version=__version__, prog_name="tooldl")
@click.option("--user", "-u", required=True, help="Identity the API token is stored under.")
@click.option("--token", "-t", default=None, help="API token; saved for future runs.")
@click.option(
    "--path",
    "-p",
    "path",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding tools.txt and the tool folders (default: cwd).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    user: str,
    token: str | None,
    path: str | None,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """tooldl — download and update tools from their latest releases."""
    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get("TOOLDL_LOG_LEVEL")),
        log_file=os.environ.get("TOOLDL_LOG_FILE"),
        log_file_level=os.environ.get("TOOLDL_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )

    try:
        config = load_run_config(user, token=token, path=path)
    except ConfigError as exc:
        _fail(str(exc))

    try:
        report = run_update(config, echo=not (as_json or quiet))
    except ToolDlError as exc:
        _fail(str(exc))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif not quiet:
        _print_summary(report)

    if not report.ok:
        sys.exit(1)


def run_update(config: RunConfig, echo: bool = True) -> UpdateReport:
    """Resolve the credential, load the registry, and update every tool.

    Raises:
        CredentialMissing, CredentialStoreError: No usable token.
        RegistryNotFound, MalformedRegistryEntry: Bad or missing tools.txt.
        FilesystemError: tools.txt is unreadable, or the scratch area cannot be created.
    """
    credential = resolve_credential(config, KeyringStore())
    tools = load_registry(config.registry_path)

    client = ReleaseClient(credential, api_url=config.api_url, timeout=config.timeout)
    updater = ToolUpdater(
        client,
        tools_root=config.root,
        on_result=_print_result if echo else None,
    )
    return updater.run(tools)


def main() -> None:
    cli()


# ── Output ──────────────────────────────────────────────────────


def _fail(message: str) -> NoReturn:
    click.secho(f"✗ {message}", fg="red", err=True)
    sys.exit(1)


def _print_result(result: ToolResult) -> None:
    name = str(result.tool)
    if result.state == ToolState.UP_TO_DATE:
        click.secho(f"  ✓ {name} is up to date ({result.installed_tag})", fg="green")
    elif result.state == ToolState.DONE:
        previous = result.installed_tag or "not installed"
        click.secho(f"  ⬆ {name}: {previous} → {result.latest_tag}", fg="cyan")
        for asset in result.assets:
            click.echo(f"     • {asset.name} → {asset.destination}")
        if not result.assets:
            click.secho("     no matching assets", fg="yellow")
    else:
        click.secho(f"  ✗ {name}: {result.error}", fg="red", err=True)


def _print_summary(report: UpdateReport) -> None:
    total = len(report.results)
    updated = len(report.updated)
    failed = len(report.failed)
    click.echo()
    click.secho(
        f"  {total} tool(s): {updated} updated, {total - updated - failed} up to date, {failed} failed",
        fg="red" if failed else "white",
        bold=True,
    )
    if report.cleanup_error:
        click.secho(f"  ✗ {report.cleanup_error}", fg="red", err=True)


if __name__ == "__main__":
    main()
