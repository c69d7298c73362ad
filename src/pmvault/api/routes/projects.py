"""Project and epic endpoints."""

from fastapi import APIRouter, status

from pmvault.api.deps import WorkspaceDep
from pmvault.vault import Epic, Project
from pmvault.vault.payloads import CreateEpicPayload, CreateProjectPayload

router = APIRouter()


@router.get("/projects", response_model=list[Project])
async def list_projects(workspace: WorkspaceDep) -> list[Project]:
    return await workspace.list_projects()


@router.post(
    "/projects", response_model=Project, status_code=status.HTTP_201_CREATED
)
async def create_project(
    request: CreateProjectPayload, workspace: WorkspaceDep
) -> Project:
    """Create a project."""
    return await workspace.create_project(request)


@router.get("/epics", response_model=list[Epic])
async def list_epics(
    workspace: WorkspaceDep, project_id: str | None = None
) -> list[Epic]:
    return await workspace.list_epics(project_id)


@router.post("/epics", response_model=Epic, status_code=status.HTTP_201_CREATED)
async def create_epic(request: CreateEpicPayload, workspace: WorkspaceDep) -> Epic:
    """Create an epic. A given projectId must name an existing project."""
    return await workspace.create_epic(request)
