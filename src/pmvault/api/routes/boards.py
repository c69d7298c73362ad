"""Board endpoints."""

from fastapi import APIRouter

from pmvault.api.deps import WorkspaceDep
from pmvault.vault import Board, BoardView

router = APIRouter()


@router.get("/boards", response_model=list[Board])
async def list_boards(workspace: WorkspaceDep) -> list[Board]:
    """List boards ordered by title."""
    return await workspace.list_boards()


@router.get("/boards/{board_id}", response_model=BoardView)
async def get_board_with_tasks(board_id: str, workspace: WorkspaceDep) -> BoardView:
    """
    Get a board with its tasks grouped by column.

    Columns keep the board's declared order; tasks in a column are ordered
    by creation time, then id.
    """
    return await workspace.get_board_with_tasks(board_id)
