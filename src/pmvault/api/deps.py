"""FastAPI dependencies for the pmvault API."""

from typing import Annotated

from fastapi import Depends, Request

from pmvault.core.workspace import Workspace


async def get_workspace(request: Request) -> Workspace:
    """
    Get the workspace served by this application.

    Returns:
        Workspace stored on app.state by create_app()
    """
    return request.app.state.workspace


# Type aliases for dependency injection
WorkspaceDep = Annotated[Workspace, Depends(get_workspace)]
