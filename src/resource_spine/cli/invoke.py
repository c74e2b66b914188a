"""
CLI: ``resource-spine invoke`` — run one handler invocation against AWS.

The request file holds the scheduler request in its camelCase wire form
(``desiredResourceState``, ``previousResourceState``, ``rollback`` …). The
printed record's ``callbackContext`` is what to pass back with
``--context`` on the next invocation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from botocore.exceptions import BotoCoreError

from resource_spine.cli.utils import err_console, load_document, output_record
from resource_spine.core.errors import RuleSetConfigError
from resource_spine.core.logging import configure_logging
from resource_spine.core.settings import ReconcilerSettings
from resource_spine.orchestration.handler import ResourceHandlerRequest

app = typer.Typer(no_args_is_help=True)


def _run(handler_cls: Any, model_cls: Any, request: Path, context: Path | None, as_json: bool) -> None:
    settings = ReconcilerSettings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    handler_request = ResourceHandlerRequest.from_dict(load_document(request), model_cls.from_dict)
    callback_context = load_document(context) if context is not None else None
    try:
        handler = handler_cls.from_settings(settings)
    except RuleSetConfigError as exc:
        err_console.print(f"[bold red]Error[/bold red]: {exc.message}")
        raise typer.Exit(code=2) from exc
    except BotoCoreError as exc:
        err_console.print(f"[bold red]Error[/bold red]: cannot create AWS clients: {exc}")
        raise typer.Exit(code=2) from exc
    output_record(handler.handle_request(handler_request, callback_context), as_json=as_json)


@app.command("db-instance-update")
def db_instance_update(
    request: Path = typer.Option(..., "--request", "-r", help="Request JSON/YAML"),
    context: Path | None = typer.Option(None, "--context", "-c", help="Callback context JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Update a DB instance."""
    from resource_spine.rds.db_instance import DBInstanceUpdateHandler
    from resource_spine.rds.models import DBInstance

    _run(DBInstanceUpdateHandler, DBInstance, request, context, json_out)


@app.command("db-parameter-group-create")
def db_parameter_group_create(
    request: Path = typer.Option(..., "--request", "-r", help="Request JSON/YAML"),
    context: Path | None = typer.Option(None, "--context", "-c", help="Callback context JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create a DB parameter group."""
    from resource_spine.rds.db_parameter_group import DBParameterGroupCreateHandler
    from resource_spine.rds.models import DBParameterGroup

    _run(DBParameterGroupCreateHandler, DBParameterGroup, request, context, json_out)


@app.command("db-parameter-group-update")
def db_parameter_group_update(
    request: Path = typer.Option(..., "--request", "-r", help="Request JSON/YAML"),
    context: Path | None = typer.Option(None, "--context", "-c", help="Callback context JSON"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Update a DB parameter group."""
    from resource_spine.rds.db_parameter_group import DBParameterGroupUpdateHandler
    from resource_spine.rds.models import DBParameterGroup

    _run(DBParameterGroupUpdateHandler, DBParameterGroup, request, context, json_out)
