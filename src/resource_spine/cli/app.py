"""
Root Typer application for the resource-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from resource_spine import __version__

app = Typer(
    name="resource-spine",
    help="resource-spine — reconciler core for RDS resources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"resource-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """resource-spine CLI — inspect rule tables and run handlers."""


# ── Sub-command registration ─────────────────────────────────────────────

from resource_spine.cli.invoke import app as invoke_app  # noqa: E402
from resource_spine.cli.rules import app as rules_app  # noqa: E402

app.add_typer(rules_app, name="rules", help="Fault classification tables.")
app.add_typer(invoke_app, name="invoke", help="Run one handler invocation.")
