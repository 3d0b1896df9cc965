from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from adapters.filesystem.json_utils import dump_json_bytes, write_json_atomic
from app.config import AppSettings, load_settings
from app.example_policies import EXAMPLE_POLICIES
from app.visualizer_wiring import build_policy_source, build_visualizer
from domain.errors import NoValidPoliciesError, PolicyDecodeError
from domain.models import AdminNetworkPolicy, NetworkPolicy, Policy
from domain.services.extract_policy_graph import count_rule_peers

app = typer.Typer(no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


def _configure(config: Optional[Path], verbose: bool) -> AppSettings:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )
    try:
        return load_settings(config)
    except FileNotFoundError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc


def _load_text(settings: AppSettings, input_path: Path) -> str:
    try:
        return build_policy_source(settings).load_text(input_path)
    except FileNotFoundError as exc:
        err_console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1) from exc
    except PolicyDecodeError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc


@app.command("render")
def render(
    input_path: Path = typer.Argument(..., help="Policy YAML/JSON file or a directory of them."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write visualization JSON here instead of stdout.",
    ),
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log dropped documents and rules."),
) -> None:
    settings = _configure(config, verbose)
    text = _load_text(settings, input_path)
    try:
        visualization = build_visualizer(settings).visualize(text)
    except (PolicyDecodeError, NoValidPoliciesError) as exc:
        err_console.print(f"[red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc

    payload = visualization.to_dict()
    if output is None:
        typer.echo(dump_json_bytes(payload).decode("utf-8"), nl=False)
    else:
        write_json_atomic(output, payload)
        err_console.print(f"[green]Wrote[/] {output}")
    summary = payload["summary"]
    err_console.print(
        f"Policies: {summary['policies']}  Nodes: {summary['nodes']}  "
        f"Connections: {summary['edges']}"
    )


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Policy YAML/JSON file or a directory of them."),
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log dropped documents and rules."),
) -> None:
    settings = _configure(config, verbose)
    text = _load_text(settings, input_path)
    try:
        policies = build_visualizer(settings).load(text)
    except (PolicyDecodeError, NoValidPoliciesError) as exc:
        console.print(f"[red]Validation failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"{len(policies)} valid policies")
    for column in ("Kind", "Name", "Scope", "Ingress", "Egress", "Connections"):
        table.add_column(column)
    for policy in policies:
        table.add_row(
            policy.kind,
            policy.name,
            _policy_scope(policy),
            str(len(policy.spec.ingress)),
            str(len(policy.spec.egress)),
            str(count_rule_peers([policy])),
        )
    console.print(table)


@app.command("example")
def example() -> None:
    typer.echo(EXAMPLE_POLICIES, nl=False)


def _policy_scope(policy: Policy) -> str:
    if isinstance(policy, NetworkPolicy):
        return f"ns: {policy.namespace}"
    if isinstance(policy, AdminNetworkPolicy):
        return f"priority {policy.priority}"
    return "cluster"


if __name__ == "__main__":
    app()
