"""Command line interface for the Azure NetApp Files sample."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from . import uri
from .config import load_config
from .contracts import StageStatus, WorkflowState
from .errors import InvalidArgumentError
from .workflow import run_sample

app = typer.Typer(help="CLI for the Azure NetApp Files SDK sample")

# Command groups
uri_app = typer.Typer(help="Commands for inspecting Azure resource ids")

app.add_typer(uri_app, name="uri")

HEADER = (
    "Azure NetAppFiles Python SDK Sample - Sample project that performs CRUD "
    "management operations with Azure NetApp Files SDK"
)

_STATUS_COLORS = {
    StageStatus.SUCCEEDED: typer.colors.GREEN,
    StageStatus.FAILED: typer.colors.RED,
    StageStatus.SKIPPED: typer.colors.YELLOW,
}


@app.callback()
def main() -> None:
    """anfsample CLI entry point."""
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_summary(state: WorkflowState) -> None:
    typer.echo("Stages:")
    for stage in state.stages:
        line = f"- {stage.name}: {stage.status.value}"
        if stage.resource_id:
            line += f" ({stage.resource_id})"
        if stage.error:
            line += f" - {stage.error}"
        typer.secho(line, fg=_STATUS_COLORS.get(stage.status))
    if state.cleanup:
        typer.echo("Cleanup:")
        for entry in state.cleanup:
            line = f"- {entry.name}: {entry.status.value}"
            if entry.error:
                line += f" - {entry.error}"
            typer.secho(line, fg=_STATUS_COLORS.get(entry.status))


@app.command("run")
def run(
    config: Optional[Path] = typer.Option(None, help="Path to a YAML configuration file"),
    backend: Optional[str] = typer.Option(
        None, help="Client backend to use: azure or inmemory"
    ),
    cleanup: Optional[bool] = typer.Option(
        None, "--cleanup/--no-cleanup", help="Delete created resources when done"
    ),
    auth_file: Optional[Path] = typer.Option(
        None, help="Azure SDK authentication file (defaults to AZURE_AUTH_LOCATION)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Provision an account, a capacity pool, volumes and a snapshot, then clean up.

    Example:
        anfsample run --backend inmemory
        anfsample run --config ./sample.yaml --no-cleanup
    """
    _configure_logging(verbose)

    settings = load_config(str(config) if config else None)
    if backend:
        backend = backend.lower()
        if backend not in ("azure", "inmemory"):
            typer.secho(f"Unsupported client backend: {backend}", fg=typer.colors.RED)
            raise typer.Exit(code=2)
        settings.client.backend = backend
    if cleanup is not None:
        settings.should_cleanup = cleanup

    typer.echo(HEADER)
    typer.echo("-" * len(HEADER))

    state = asyncio.run(
        run_sample(settings, auth_path=str(auth_file) if auth_file else None)
    )
    _print_summary(state)
    raise typer.Exit(code=state.exit_code)


@uri_app.command("inspect")
def uri_inspect(resource_id: str) -> None:
    """
    Break a resource id into its parts.

    Example:
        anfsample uri inspect /subscriptions/S/resourceGroups/RG/providers/Microsoft.NetApp/netAppAccounts/A
    """
    if not resource_id.strip():
        typer.secho("resource id cannot be blank", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    kind = uri.classify(resource_id)
    typer.echo(f"subscription: {uri.get_subscription(resource_id)}")
    typer.echo(f"resource group: {uri.get_resource_group(resource_id)}")
    typer.echo(f"account: {uri.get_anf_account(resource_id)}")
    typer.echo(f"capacity pool: {uri.get_anf_capacity_pool(resource_id)}")
    typer.echo(f"volume: {uri.get_anf_volume(resource_id)}")
    typer.echo(f"snapshot: {uri.get_anf_snapshot(resource_id)}")
    typer.echo(f"name: {uri.get_resource_name(resource_id)}")
    typer.echo(f"kind: {kind.value if kind else 'not an Azure NetApp Files resource'}")


@uri_app.command("value")
def uri_value(resource_id: str, marker: str) -> None:
    """Print the segment following MARKER in RESOURCE_ID."""
    try:
        value = uri.get_resource_value(resource_id, marker)
    except InvalidArgumentError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=2)
    typer.echo(value)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
