"""Console output: result rendering on stdout, diagnostics and logs on stderr."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from terminus_client.models.operation import WorkflowOperation
from terminus_client.models.workflow import Workflow, WorkflowStatus

console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    WorkflowStatus.RUNNING.value: "yellow",
    WorkflowStatus.SUCCEEDED.value: "green",
    WorkflowStatus.FAILED.value: "red",
}

_LOGGER_NAME = "terminus_client"


def configure_logging(level: str | int) -> None:
    """Send package logs to stderr through rich, replacing any earlier handler."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, show_time=False)
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)


def print_error(message: str) -> None:
    err_console.print(f"[red]{escape(message)}[/red]")


def workflow_output(
    workflow: Workflow,
    success: str | None = None,
    failure: str | None = None,
) -> None:
    """Report a finished workflow's outcome on the diagnostic stream.

    Server-supplied failure detail wins over *failure*, which in turn wins
    over the generic failure message.
    """
    if workflow.is_successful():
        message = success or workflow.get("active_description") or f"{workflow.description or workflow.id} finished"
        err_console.print(f"[green]{escape(str(message))}[/green]")
        return
    print_error(workflow.failure_detail() or failure or workflow.failure_message())


def workflows_table(records: Iterable[dict[str, Any]], title: str = "Workflows") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="bold")
    table.add_column("Env")
    table.add_column("Workflow")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    for record in records:
        style = STATUS_STYLES.get(record["status"], "white")
        table.add_row(
            record["id"],
            escape(str(record["env"] or "—")),
            escape(str(record["workflow"] or "—")),
            escape(record["user"]),
            f"[{style}]{record['status']}[/{style}]",
            record["time"],
        )
    return table


def operations_table(operations: Iterable[dict[str, Any]]) -> Table:
    table = Table(title="Operations")
    table.add_column("Type")
    table.add_column("Description")
    table.add_column("Result")
    table.add_column("Duration", justify="right")
    for op in operations:
        table.add_row(
            escape(str(op["type"] or "—")),
            escape(str(op["description"] or "—")),
            escape(str(op["result"] or "—")),
            op["duration"] or "—",
        )
    return table


def print_operation_logs(operations: Iterable[WorkflowOperation]) -> None:
    for op in operations:
        if not op.has_logs():
            continue
        console.print(f"\n[bold]{escape(str(op.description or op.type))}[/bold]")
        console.print(escape(str(op.log_output)), highlight=False)
