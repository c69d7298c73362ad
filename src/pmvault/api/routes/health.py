"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter

from pmvault.api.deps import WorkspaceDep

router = APIRouter()


@router.get("/health")
async def health_check(workspace: WorkspaceDep) -> dict[str, Any]:
    """
    Check the health of all pmvault components.

    Returns:
        dict with status and component health details
    """
    health_status = workspace.health_check()

    # The vault is critical; suggestions are optional
    vault_healthy = health_status["vault"][0]
    all_healthy = all(status[0] for status in health_status.values())

    if all_healthy:
        overall = "healthy"
    elif vault_healthy:
        overall = "degraded"
    else:
        overall = "unhealthy"

    return {
        "status": overall,
        "components": {
            name: {"healthy": status[0], "message": status[1]}
            for name, status in health_status.items()
        },
    }
