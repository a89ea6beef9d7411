"""Terminus CLI entry point."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.markup import escape

from terminus_client.api.errors import TerminusError, WorkflowFailedError
from terminus_client.output import (
    configure_logging,
    console,
    err_console,
    operations_table,
    print_error,
    print_operation_logs,
    workflow_output,
    workflows_table,
)

if TYPE_CHECKING:
    from terminus_client.config.models import TerminusConfig
    from terminus_client.models.resources import Sites
    from terminus_client.models.workflow import Workflow

app = typer.Typer(
    name="terminus",
    help="Terminus — command-line client for the Pantheon platform",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to .terminus.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    ctx.obj = {"config_path": config_path, "verbose": verbose}
    if verbose:
        configure_logging("DEBUG")


def _load(ctx: typer.Context) -> TerminusConfig:
    from terminus_client.config.loader import load_config

    options: dict[str, Any] = ctx.obj or {}
    try:
        config = load_config(path=options.get("config_path"))
    except (FileNotFoundError, ValueError) as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    if not options.get("verbose"):
        configure_logging(config.log_level)
    return config


@contextmanager
def _sites(ctx: typer.Context) -> Iterator[Sites]:
    """Yield a site lookup bound to an API client; report client errors and exit 1."""
    from terminus_client.api.client import RequestClient
    from terminus_client.models.resources import Sites

    config = _load(ctx)
    with RequestClient(config) as client:
        try:
            yield Sites(client, poll=config.workflows)
        except TerminusError as exc:
            print_error(str(exc))
            raise typer.Exit(1)


def _wait_and_report(
    workflow: Workflow,
    max_wait: float | None = None,
    success: str | None = None,
    failure: str | None = None,
) -> None:
    try:
        workflow.wait(max_wait=max_wait)
    except WorkflowFailedError:
        workflow_output(workflow, failure=failure)
        raise typer.Exit(1)
    workflow_output(workflow, success=success)


# ─── workflow ───

workflow_app = typer.Typer(name="workflow", help="Inspect and wait on workflows")
app.add_typer(workflow_app)


@workflow_app.command("list")
def workflow_list(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List the workflows of a site."""
    with _sites(ctx) as sites:
        records = [wf.serialize() for wf in sites.get(site).workflows.all()]
    if as_json:
        typer.echo(json.dumps(records, indent=2))
        return
    if not records:
        err_console.print("[yellow]No workflows found.[/yellow]")
        return
    console.print(workflows_table(records, title=f"Workflows for {site}"))


@workflow_app.command("info")
def workflow_info(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    workflow_id: str = typer.Argument(help="Workflow ID"),
    logs: bool = typer.Option(False, "--logs", help="Include per-operation log output"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
) -> None:
    """Show a single workflow and its operations."""
    with _sites(ctx) as sites:
        workflow = sites.get(site).workflows.get(workflow_id, with_logs=logs)
        record = workflow.serialize()
    if as_json:
        typer.echo(json.dumps(record, indent=2))
        return
    console.print(workflows_table([record], title=f"Workflow {workflow_id}"))
    if record["operations"]:
        console.print(operations_table(record["operations"]))
        if logs:
            print_operation_logs(workflow.operations())


@workflow_app.command("wait")
def workflow_wait(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    workflow_id: str = typer.Argument(help="Workflow ID"),
    max_wait: float | None = typer.Option(None, "--max-wait", help="Give up after this many seconds"),
) -> None:
    """Block until a running workflow finishes."""
    with _sites(ctx) as sites:
        workflow = sites.get(site).workflows.get(workflow_id)
        _wait_and_report(workflow, max_wait=max_wait)


# ─── env ───

env_app = typer.Typer(name="env", help="Environment commands")
app.add_typer(env_app)


@env_app.command("deploy")
def env_deploy(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    env: str = typer.Argument(help="Environment to deploy to (test or live)"),
    note: str = typer.Option("Deploy from Terminus", "--note", help="Custom note for the deploy log"),
    cc: bool = typer.Option(False, "--cc", help="Clear caches after deploying"),
    updatedb: bool = typer.Option(False, "--updatedb", help="Run update.php after deploying"),
    sync_content: bool = typer.Option(False, "--sync-content", help="Clone database and files from live (test only)"),
) -> None:
    """Deploy code to the test or live environment."""
    with _sites(ctx) as sites:
        environment = sites.get(site).environment(env)
        workflow = environment.deploy(note, updatedb=updatedb, clear_cache=cc, sync_content=sync_content)
        _wait_and_report(workflow, failure="Deployment failed.")


@env_app.command("clear-cache")
def env_clear_cache(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    env: str = typer.Argument(help="Environment name"),
) -> None:
    """Clear the caches of an environment."""
    with _sites(ctx) as sites:
        workflow = sites.get(site).environment(env).clear_cache()
        _wait_and_report(workflow)


@env_app.command("backup")
def env_backup(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    env: str = typer.Argument(help="Environment name"),
    element: str = typer.Option("all", "--element", help="all, code, database or files"),
    keep_for: int = typer.Option(365, "--keep-for", help="Days to retain the backup"),
) -> None:
    """Create a backup of an environment."""
    with _sites(ctx) as sites:
        workflow = sites.get(site).environment(env).create_backup(element=element, keep_for=keep_for)
        _wait_and_report(workflow)


# ─── site ───

site_app = typer.Typer(name="site", help="Site commands")
app.add_typer(site_app)


@site_app.command("import")
def site_import(
    ctx: typer.Context,
    site: str = typer.Argument(help="Site name or UUID"),
    url: str = typer.Argument(help="URL at which the import archive exists"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Import a site archive onto the dev environment."""
    with _sites(ctx) as sites:
        target = sites.get(site)
        if not yes:
            typer.confirm(
                f"Are you sure you want to import this archive? The dev environment of {target.name} will be overwritten.",
                abort=True,
            )
        workflow = target.environment("dev").import_site(url)
        _wait_and_report(workflow, success="Imported site onto Pantheon")


# ─── config ───

config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .terminus.yaml"),
) -> None:
    """Validate configuration file."""
    from urllib.parse import urlparse

    import yaml

    from terminus_client.config.loader import load_config

    errors: list[str] = []
    warnings: list[str] = []
    try:
        config = load_config(path=path)
        console.print("[green]✓[/green] YAML parses correctly")
        console.print("[green]✓[/green] Pydantic validation passes")
    except FileNotFoundError as exc:
        console.print(f"[red]✗ {escape(str(exc))}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as exc:
        console.print(f"[red]✗ YAML parsing failed: {escape(str(exc))}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print("[green]✓[/green] YAML parses correctly")
        console.print(f"[red]✗ Pydantic validation failed: {escape(str(exc))}[/red]")
        raise typer.Exit(1)

    parsed = urlparse(config.api.base_url)
    if config.api.protocol not in ("http", "https") or not parsed.netloc:
        errors.append(f"API base URL '{config.api.base_url}' is invalid")
    else:
        console.print(f"[green]✓[/green] API base URL {config.api.base_url} is valid")

    if not config.auth.session_token:
        warnings.append("No session token configured; requests will be unauthenticated")
    if not config.auth.user_id:
        warnings.append("No user id configured; organization workflows cannot be addressed")
    if config.workflows.max_wait is not None and config.workflows.max_wait < config.workflows.poll_interval:
        errors.append(
            f"workflows.max_wait ({config.workflows.max_wait}s) is shorter than "
            f"workflows.poll_interval ({config.workflows.poll_interval}s)"
        )

    if not errors:
        for w in warnings:
            console.print(f"[yellow]! {w}[/yellow]")
        console.print("\n[green bold]Configuration is valid.[/green bold]")
    else:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)


@config_app.command("show")
def config_show(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .terminus.yaml"),
) -> None:
    """Print resolved configuration."""
    from terminus_client.config.loader import load_config

    try:
        config = load_config(path=path)
    except (FileNotFoundError, ValueError) as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    token = config.auth.session_token
    masked = f"{token[:4]}…" if len(token) > 4 else ("set" if token else "not set")
    max_wait = f"{config.workflows.max_wait}s" if config.workflows.max_wait else "unbounded"

    console.print(f"[bold]{config.terminus.name}[/bold] v{config.terminus.version}\n")

    console.print("[bold]API:[/bold]")
    console.print(f"  Base URL: {config.api.base_url}")
    console.print(f"  Timeout: {config.api.timeout}s\n")

    console.print("[bold]Session:[/bold]")
    console.print(f"  Token: {masked}")
    console.print(f"  User: {config.auth.user_id or 'not set'}\n")

    console.print("[bold]Workflows:[/bold]")
    console.print(f"  Poll interval: {config.workflows.poll_interval}s")
    console.print(f"  Max wait: {max_wait}")
    console.print(f"  Fetch retries: {config.workflows.fetch_retries}")


def main() -> None:
    app()
