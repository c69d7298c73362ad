"""Board projection: a board with its tasks grouped by column."""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from pmvault.vault.errors import NotFoundError
from pmvault.vault.schema import Board, EntityKind, Task, timestamp_sort_key


class BoardColumn(BaseModel):
    """One column of a projected board."""

    name: str
    tasks: list[Task] = Field(default_factory=list)


class BoardView(BaseModel):
    """A board and its columns, in declared order."""

    board: Board
    columns: list[BoardColumn]


def task_order(task: Task) -> tuple:
    """Stable ordering inside a column: created instant, then id."""
    return (timestamp_sort_key(task.created), task.id)


def project_board(
    boards: Mapping[str, Board],
    tasks_by_board: Mapping[str, Iterable[Task]],
    board_id: str,
) -> BoardView:
    """
    Group a board's tasks under its declared columns.

    Tasks whose column the board does not declare are left out.

    Raises:
        NotFoundError: If board_id is unknown
    """
    board = boards.get(board_id)
    if board is None:
        raise NotFoundError(EntityKind.BOARD, board_id)

    by_column: dict[str, list[Task]] = {name: [] for name in board.columns}
    for task in tasks_by_board.get(board_id, ()):
        if task.board == board_id and task.column in by_column:
            by_column[task.column].append(task)

    return BoardView(
        board=board,
        columns=[
            BoardColumn(name=name, tasks=sorted(tasks, key=task_order))
            for name, tasks in by_column.items()
        ],
    )
