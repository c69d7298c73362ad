"""Task endpoints."""

from fastapi import APIRouter
from pydantic import Field

from pmvault.api.deps import WorkspaceDep
from pmvault.vault import Task
from pmvault.vault.payloads import Payload

router = APIRouter()


class MoveTaskRequest(Payload):
    """Request to move a task to another column."""

    column: str = Field(..., description="Target column name")


@router.get("/tasks", response_model=list[Task])
async def list_tasks(workspace: WorkspaceDep, board_id: str | None = None) -> list[Task]:
    """List tasks ordered by title, optionally for one board."""
    return await workspace.list_tasks(board_id)


@router.patch("/tasks/{task_id}/column", response_model=Task)
async def update_task_column(
    task_id: str, request: MoveTaskRequest, workspace: WorkspaceDep
) -> Task:
    """
    Move a task to another column of its board.

    Fails with 404 for an unknown task and 422 for a column the board does
    not declare.
    """
    return await workspace.update_task_column(
        {"task_id": task_id, "column": request.column}
    )
