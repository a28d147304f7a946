"""kcr command line interface."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from kcr.desired.document import load_desired_document
from kcr.errors import ErrorKind, ReconcileError
from kcr.reconcile import CycleReport, Reconciler
from kcr.state.store import load_state, save_state
from kcr.utils.config import ReconcilerConfig, load_reconciler_config
from kcr.utils.logging import configure_logging, get_logger, set_level

configure_logging()
LOG = get_logger(__name__)

app = typer.Typer(add_completion=False, help="Reconcile local kind clusters and their manifests.")

FileOption = typer.Option(Path("kcr.yaml"), "--file", "-f", help="Desired state document")
OutputOption = typer.Option("text", "--output", "-o", help="text|json")
ConfigOption = typer.Option(None, "--config", help="Reconciler config file (defaults to $KCR_CONFIG)")


def _load_config(config_path: Optional[str]) -> ReconcilerConfig:
    cfg = load_reconciler_config(config_path)
    set_level(cfg.log_level)
    return cfg


def build_reconciler(config: ReconcilerConfig) -> Reconciler:
    return Reconciler.from_config(config)


def _echo_report(report: CycleReport, output: str) -> None:
    if output == "json":
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    typer.echo(f"{report.operation} ({report.cycle_id})")
    for step in report.steps:
        header = f"  {step['resource']}"
        if step.get("id") is not None:
            header += f" -> {step['id']}"
        if step.get("phase"):
            header += f" [{step['phase']}]"
        typer.echo(header)
        for action in step.get("actions", []):
            detail = action.get("action", action)
            status = ""
            if "ok" in action:
                status = " ok" if action["ok"] else " FAILED"
                if action.get("soft_failure"):
                    status += " (already exists)"
            typer.echo(f"    {detail['kind']} {detail['target']}{status}")
    if report.error is not None:
        typer.echo(f"error: {report.error.kind.value}: {report.error.message}", err=True)


def _exit_for(error: Optional[ReconcileError]) -> None:
    if error is None:
        return
    raise typer.Exit(code=2 if error.kind == ErrorKind.VALIDATION else 1)


def _run(operation: str, file: Path, output: str, config_path: Optional[str]) -> None:
    try:
        cfg = _load_config(config_path)
        document = load_desired_document(file)
        state = load_state(cfg.state_path)
    except ReconcileError as exc:
        typer.echo(f"error: {exc.kind.value}: {exc.message}", err=True)
        raise typer.Exit(code=2)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    reconciler = build_reconciler(cfg)
    report = getattr(reconciler, operation)(document, state)
    if operation != "plan":
        save_state(state, cfg.state_path)
    _echo_report(report, output)
    _exit_for(report.error)


@app.command()
def plan(file: Path = FileOption, output: str = OutputOption, config: Optional[str] = ConfigOption) -> None:
    """Show the actions the next apply would execute."""
    _run("plan", file, output, config)


@app.command()
def apply(file: Path = FileOption, output: str = OutputOption, config: Optional[str] = ConfigOption) -> None:
    """Converge the cluster and manifests to the desired document."""
    _run("apply", file, output, config)


@app.command()
def replace(file: Path = FileOption, output: str = OutputOption, config: Optional[str] = ConfigOption) -> None:
    """Delete and recreate the cluster."""
    _run("replace", file, output, config)


@app.command()
def destroy(file: Path = FileOption, output: str = OutputOption, config: Optional[str] = ConfigOption) -> None:
    """Delete manifests and then the cluster."""
    _run("destroy", file, output, config)


@app.command()
def status(output: str = OutputOption, config: Optional[str] = ConfigOption) -> None:
    """Read back every stored resource."""
    try:
        cfg = _load_config(config)
        state = load_state(cfg.state_path)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    report = build_reconciler(cfg).status(state)
    save_state(state, cfg.state_path)
    _echo_report(report, output)
    _exit_for(report.error)


if __name__ == "__main__":
    app()
