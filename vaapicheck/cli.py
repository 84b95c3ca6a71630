"""CLI entry point — inspect the host, run every section, print the report."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import ConfigError, Settings, load_settings
from .engine import run_checks
from .format import format_human, format_json
from .resolver import FactResolver
from .rules.registry import APPLICABILITY, ENV_CHECKS, PREF_CHECKS, lookup
from .scanner import inspect_host

app = typer.Typer(help="Diagnose Firefox hardware video decoding (VA-API) on NVIDIA GPUs.")


def _err(msg: str) -> None:
    """Print a usage error to stderr and exit 2 — used for all CLI errors."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(code=2)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vaapicheck {__version__}")
        raise typer.Exit()


def _use_color(no_color: bool, settings: Settings) -> bool:
    if no_color or os.environ.get("NO_COLOR") or os.environ.get("TERM") == "dumb":
        return False
    if settings.color is not None:
        return settings.color
    return sys.stdout.isatty()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Only check Firefox profiles matching NAME"),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Subprocess timeout in seconds"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
    explain: Optional[str] = typer.Option(None, "--explain", "-e", help="Explain a setting by name ('list' for all)"),
) -> None:
    """Check drivers, environment and Firefox prefs needed for VA-API decoding."""
    if ctx.invoked_subcommand is not None:
        return
    if explain:
        _print_explain(explain)
        return

    _setup_logging(verbose)
    try:
        settings = load_settings(config)
    except ConfigError as e:
        _err(str(e))
    if profile is not None:
        settings.profile = profile
    if timeout is not None:
        settings.timeout = timeout

    resolver = FactResolver(timeout=settings.timeout)
    host = inspect_host(runner=resolver.runner)
    resolver.home = Path(host.home)
    result = run_checks(host, resolver, settings)

    if json_out:
        typer.echo(json.dumps(format_json(result), indent=2))
    else:
        typer.echo(format_human(result, color=_use_color(no_color, settings)))


def _print_explain(name: str) -> None:
    """Print a registered setting's definition and exit."""
    if name in ("list", "all"):
        typer.echo("Environment variables:")
        for d in ENV_CHECKS:
            typer.echo(f"  {d.name}")
        typer.echo("\nFirefox preferences:")
        for d in PREF_CHECKS:
            typer.echo(f"  {d.name}")
        typer.echo("\nUse: vaapicheck --explain <name>")
        return
    d = lookup(name)
    if d is None:
        _err(f"Unknown setting: {name}\nRun: vaapicheck --explain list")
    typer.echo(f"Setting: {d.name}")
    typer.echo(f"Expected: {d.expected}")
    typer.echo(f"Severity: {d.severity.value}")
    typer.echo(f"Default: {d.fallback if d.fallback is not None else 'unknown'}")
    if d.description:
        typer.echo(f"Description: {d.description}")
    if d.name in APPLICABILITY:
        typer.echo(f"Skipped when: {APPLICABILITY[d.name][1]}")
    if d.hint:
        typer.echo(f"Fix: {d.hint}")


def _main() -> None:
    """Entry point for the console script."""
    app()


if __name__ == "__main__":
    _main()
