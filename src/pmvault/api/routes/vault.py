"""Vault information and maintenance endpoints."""

from fastapi import APIRouter

from pmvault.api.deps import WorkspaceDep
from pmvault.vault import Diagnostic, LoadReport, VaultInfo

router = APIRouter()


@router.get("/vault", response_model=VaultInfo)
async def vault_info(workspace: WorkspaceDep) -> VaultInfo:
    """Where the vault lives on disk."""
    return await workspace.vault_info()


@router.get("/vault/diagnostics", response_model=list[Diagnostic])
async def vault_diagnostics(workspace: WorkspaceDep) -> list[Diagnostic]:
    """
    Problems found during the last load.

    Lists files that were skipped and tasks hidden from their board.
    """
    return await workspace.diagnostics()


@router.post("/vault/reload", response_model=LoadReport)
async def reload_vault(workspace: WorkspaceDep) -> LoadReport:
    """Re-read every file from disk."""
    return await workspace.reload()
