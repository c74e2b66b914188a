"""
CLI: ``resource-spine rules`` — inspect and exercise classification tables.
"""

from __future__ import annotations

from pathlib import Path

import typer

from resource_spine.cli.utils import console, err_console, print_rule_sets
from resource_spine.core.errors import RuleSetConfigError, ServiceError
from resource_spine.rules.defaults import DEFAULT_RULE_SET_NAME
from resource_spine.rules.loader import rule_sets_for
from resource_spine.rules.rule_set import ErrorRuleSet, classify

app = typer.Typer(no_args_is_help=True)


def _load(rules_file: Path | None) -> dict[str, ErrorRuleSet]:
    try:
        return rule_sets_for(rules_file)
    except RuleSetConfigError as exc:
        err_console.print(f"[bold red]Error[/bold red]: {exc.message}")
        raise typer.Exit(code=2) from exc


@app.command("show")
def show_rules(
    rules_file: Path | None = typer.Option(None, "--file", "-f", help="Extra rules YAML"),
    name: str | None = typer.Option(None, "--name", "-n", help="Only this rule set"),
) -> None:
    """Render the packaged rule tables (plus ``--file`` overrides)."""
    sets = _load(rules_file)
    if name is not None:
        if name not in sets:
            err_console.print(f"[bold red]Error[/bold red]: unknown rule set {name!r}")
            raise typer.Exit(code=1)
        sets = {name: sets[name]}
    print_rule_sets(sets)


@app.command("classify")
def classify_code(
    code: str = typer.Argument(..., help="Service error code, e.g. Throttling"),
    rule_set: str = typer.Option(DEFAULT_RULE_SET_NAME, "--rule-set", "-r"),
    rules_file: Path | None = typer.Option(None, "--file", "-f", help="Extra rules YAML"),
) -> None:
    """Classify a service error code through a rule set chain."""
    sets = _load(rules_file)
    if rule_set not in sets:
        err_console.print(f"[bold red]Error[/bold red]: unknown rule set {rule_set!r}")
        raise typer.Exit(code=1)
    chosen = sets[rule_set]
    status = classify(ServiceError(code, error_code=code), chosen)
    chain = " -> ".join(s.name for s in chosen.chain())
    console.print(f"[cyan]{code}[/cyan] via {chain}: [bold]{status!r}[/bold]")
