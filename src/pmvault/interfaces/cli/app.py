"""CLI application for pmvault using Rich and Typer."""

import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pmvault.core.config import PMVAULT_DATA_DIR, setup_logging
from pmvault.core.workspace import Workspace
from pmvault.vault import BoardView, Task, ValidationError, VaultError

T = TypeVar("T")

app = typer.Typer(
    name="pmvault",
    help="pmvault CLI - boards and stories in a folder of Markdown files",
    no_args_is_help=True,
)

console = Console()
logger = logging.getLogger(__name__)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a workspace call, printing vault errors and exiting non-zero."""
    try:
        return asyncio.run(coro)
    except ValidationError as e:
        console.print(f"[red]Invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    except VaultError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


def _workspace(ctx: typer.Context) -> Workspace:
    return ctx.obj["workspace"]


def _task_label(task: Task) -> str:
    label = f"[bold]{task.title}[/bold] [dim]({task.id})[/dim]"
    if task.tags:
        label += " " + " ".join(f"[cyan]#{tag}[/cyan]" for tag in task.tags)
    if task.due:
        label += f" [yellow]due {task.due}[/yellow]"
    return label


def print_board(view: BoardView) -> None:
    """Render a board as one table column per board column."""
    table = Table(title=view.board.title, show_header=True, header_style="bold cyan")
    for column in view.columns:
        table.add_column(f"{column.name} ({len(column.tasks)})")

    depth = max((len(column.tasks) for column in view.columns), default=0)
    for row in range(depth):
        table.add_row(
            *[
                _task_label(column.tasks[row]) if row < len(column.tasks) else ""
                for column in view.columns
            ]
        )

    console.print(table)


@app.callback()
def main(
    ctx: typer.Context,
    vault: Optional[Path] = typer.Option(
        None,
        "--vault",
        "-v",
        help="Base directory of the vault (default: PMVAULT_DATA_DIR or ~/.pmvault)",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Open the workspace shared by all commands."""
    setup_logging()
    if verbose:
        logging.getLogger("pmvault").setLevel(logging.DEBUG)
    ctx.obj = {"workspace": Workspace.open(vault or PMVAULT_DATA_DIR)}


@app.command()
def info(ctx: typer.Context) -> None:
    """Show where the vault lives and what it holds."""
    workspace = _workspace(ctx)
    report = _run(workspace.load())
    vault_info = _run(workspace.vault_info())

    lines = [f"[bold]Vault:[/bold] {vault_info.path}"]
    if report.seeded:
        lines.append("[green]Seeded a new vault with sample content.[/green]")
    lines.extend(f"{kind.directory}: {count}" for kind, count in report.counts.items())
    console.print(Panel.fit("\n".join(lines), title="pmvault", border_style="blue"))

    if report.diagnostics:
        table = Table(title="Diagnostics", show_header=True, header_style="bold yellow")
        table.add_column("File")
        table.add_column("Problem")
        for diagnostic in report.diagnostics:
            table.add_row(Path(diagnostic.path).name, diagnostic.message)
        console.print(table)


@app.command()
def boards(ctx: typer.Context) -> None:
    """List boards."""
    items = _run(_workspace(ctx).list_boards())
    table = Table(title="Boards", show_header=True)
    table.add_column("ID", style="green")
    table.add_column("Title")
    table.add_column("Columns", style="dim")
    for board in items:
        table.add_row(board.id, board.title, ", ".join(board.columns))
    console.print(table)


@app.command()
def board(
    ctx: typer.Context,
    board_id: str = typer.Argument("default", help="Board to show"),
) -> None:
    """Show a board with its tasks grouped by column."""
    print_board(_run(_workspace(ctx).get_board_with_tasks(board_id)))


@app.command()
def tasks(
    ctx: typer.Context,
    board_id: Optional[str] = typer.Option(None, "--board", "-b", help="Only this board"),
) -> None:
    """List tasks."""
    items = _run(_workspace(ctx).list_tasks(board_id))
    if not items:
        console.print("[dim]No tasks.[/dim]")
        return
    table = Table(title="Tasks", show_header=True)
    table.add_column("ID", style="green")
    table.add_column("Title")
    table.add_column("Board")
    table.add_column("Column")
    table.add_column("Created", style="dim")
    for task in items:
        table.add_row(task.id, task.title, task.board, task.column, task.created)
    console.print(table)


@app.command()
def projects(ctx: typer.Context) -> None:
    """List projects."""
    items = _run(_workspace(ctx).list_projects())
    table = Table(title="Projects", show_header=True)
    table.add_column("ID", style="green")
    table.add_column("Title")
    table.add_column("Owner")
    for project in items:
        table.add_row(project.id, project.title, project.owner or "")
    console.print(table)


@app.command()
def epics(
    ctx: typer.Context,
    project_id: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
) -> None:
    """List epics."""
    items = _run(_workspace(ctx).list_epics(project_id))
    table = Table(title="Epics", show_header=True)
    table.add_column("ID", style="green")
    table.add_column("Title")
    table.add_column("Project")
    table.add_column("Owner")
    for epic in items:
        table.add_row(epic.id, epic.title, epic.project_id or "", epic.owner or "")
    console.print(table)


@app.command("new-project")
def new_project(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Project title"),
    owner: Optional[str] = typer.Option(None, "--owner"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create a project."""
    project = _run(
        _workspace(ctx).create_project(
            {"title": title, "owner": owner, "description": description}
        )
    )
    console.print(f"[green]Created project: {project.id}[/green]")


@app.command("new-epic")
def new_epic(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Epic title"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
    owner: Optional[str] = typer.Option(None, "--owner"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create an epic, optionally inside a project."""
    epic = _run(
        _workspace(ctx).create_epic(
            {
                "title": title,
                "project_id": project_id,
                "owner": owner,
                "description": description,
            }
        )
    )
    console.print(f"[green]Created epic: {epic.id}[/green]")


@app.command("new-story")
def new_story(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Story title"),
    board_id: Optional[str] = typer.Option(None, "--board", "-b"),
    column: Optional[str] = typer.Option(None, "--column", "-c"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
    epic_id: Optional[str] = typer.Option(None, "--epic", "-e"),
    owner: Optional[str] = typer.Option(None, "--owner"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    as_a: Optional[str] = typer.Option(None, "--as-a"),
    i_want: Optional[str] = typer.Option(None, "--i-want"),
    so_that: Optional[str] = typer.Option(None, "--so-that"),
    criteria: Optional[list[str]] = typer.Option(
        None, "--criterion", help="Acceptance criterion (repeatable)"
    ),
) -> None:
    """Create a story on a board."""
    story = _run(
        _workspace(ctx).create_story(
            {
                "title": title,
                "board": board_id,
                "column": column,
                "project_id": project_id,
                "epic_id": epic_id,
                "owner": owner,
                "description": description,
                "as_a": as_a,
                "i_want": i_want,
                "so_that": so_that,
                "acceptance_criteria": criteria or None,
            }
        )
    )
    console.print(
        f"[green]Created story: {story.id}[/green] [dim]({story.board} / {story.column})[/dim]"
    )


@app.command()
def move(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task to move"),
    column: str = typer.Argument(..., help="Target column"),
) -> None:
    """Move a task to another column of its board."""
    task = _run(
        _workspace(ctx).update_task_column({"task_id": task_id, "column": column})
    )
    console.print(f"[green]Moved {task.id} to {task.column}[/green]")


@app.command()
def suggest(
    ctx: typer.Context,
    description: str = typer.Argument(..., help="What the story is about"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    as_a: Optional[str] = typer.Option(None, "--as-a"),
    i_want: Optional[str] = typer.Option(None, "--i-want"),
    so_that: Optional[str] = typer.Option(None, "--so-that"),
) -> None:
    """Ask Claude to suggest missing story fields (nothing is saved)."""
    draft = {
        "title": title,
        "description": description,
        "as_a": as_a,
        "i_want": i_want,
        "so_that": so_that,
    }
    with console.status("[bold blue]Thinking...[/bold blue]"):
        suggestion = _run(_workspace(ctx).suggest_story(draft))

    table = Table(title="Suggestion", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Title", suggestion.title or "")
    table.add_row("As a", suggestion.as_a or "")
    table.add_row("I want", suggestion.i_want or "")
    table.add_row("So that", suggestion.so_that or "")
    table.add_row(
        "Acceptance criteria", "\n".join(suggestion.acceptance_criteria or [])
    )
    console.print(table)


def run_cli(args: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    app(args=args, prog_name="pmvault cli")


if __name__ == "__main__":
    run_cli()
