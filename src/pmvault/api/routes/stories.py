"""Story endpoints."""

from fastapi import APIRouter, status

from pmvault.api.deps import WorkspaceDep
from pmvault.vault import Task
from pmvault.vault.payloads import CreateStoryPayload, StoryDraft, StorySuggestion

router = APIRouter()


@router.post("/stories", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_story(request: CreateStoryPayload, workspace: WorkspaceDep) -> Task:
    """
    Create a story on a board.

    The board defaults to "default"; the column defaults to Backlog when the
    board has one, otherwise its first column.
    """
    return await workspace.create_story(request)


@router.post("/stories/suggest", response_model=StorySuggestion)
async def suggest_story(
    request: StoryDraft, workspace: WorkspaceDep
) -> StorySuggestion:
    """
    Suggest missing story fields for a draft.

    Suggestions are validated like user input and are never saved.
    """
    return await workspace.suggest_story(request)
