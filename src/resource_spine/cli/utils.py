"""
CLI utility helpers — file loading and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import typer
import yaml
from rich.console import Console
from rich.table import Table

from resource_spine.orchestration.progress import ProgressEvent
from resource_spine.rules.rule_set import ErrorRuleSet

console = Console()
err_console = Console(stderr=True)


# ── Input helpers ────────────────────────────────────────────────────────


def load_document(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML mapping from ``path``."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        err_console.print(f"[bold red]Error[/bold red]: cannot read {path}: {exc}")
        raise typer.Exit(code=2) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        err_console.print(f"[bold red]Error[/bold red]: {path} must contain a mapping")
        raise typer.Exit(code=2)
    return data


# ── Output helpers ───────────────────────────────────────────────────────


def output_record(record: ProgressEvent, *, as_json: bool = False) -> None:
    """Render a progress record; exits non-zero when it failed."""
    payload = record.to_dict()
    if as_json:
        console.print_json(json.dumps(payload, default=str))
    else:
        style = {"SUCCESS": "green", "FAILED": "red"}.get(payload["status"], "yellow")
        console.print(f"[bold {style}]{payload['status']}[/bold {style}]")
        for key in ("errorCode", "message", "callbackDelaySeconds"):
            if key in payload:
                console.print(f"  [cyan]{key}[/cyan]: {payload[key]}")
        console.print(f"  [cyan]callbackContext[/cyan]: {json.dumps(payload['callbackContext'])}")
    if record.is_failed():
        raise typer.Exit(code=1)


def print_rule_sets(rule_sets: Mapping[str, ErrorRuleSet]) -> None:
    """One table per rule set, rules in evaluation order."""
    for name in sorted(rule_sets):
        rule_set = rule_sets[name]
        fallback = rule_set.fallback.name if rule_set.fallback is not None else "-"
        table = Table(title=f"{name} (fallback: {fallback})", show_lines=False, pad_edge=False)
        table.add_column("#", justify="right")
        table.add_column("matcher", overflow="fold")
        table.add_column("outcome")
        for index, rule in enumerate(rule_set.rules, start=1):
            table.add_row(str(index), rule.matcher.describe(), repr(rule.status))
        console.print(table)
