"""FastAPI application for the pmvault REST API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pmvault.api.middleware import api_key_middleware
from pmvault.api.routes import boards, health, projects, stories, tasks, vault
from pmvault.core.config import PMVAULT_CORS_ORIGINS, PMVAULT_HOST, PMVAULT_PORT
from pmvault.core.workspace import Workspace
from pmvault.providers.llm import SuggestionError
from pmvault.vault import (
    FormatError,
    NotFoundError,
    ValidationError,
    VaultError,
    VaultIOError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler. A vault that cannot load stops startup."""
    logger.info("pmvault API starting up...")
    report = await app.state.workspace.load()
    logger.info(
        f"Vault ready at {app.state.workspace.store.root} "
        f"({len(report.diagnostics)} diagnostics)"
    )
    yield
    logger.info("pmvault API shutting down...")


async def vault_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map vault errors to HTTP responses."""
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})
    if isinstance(exc, ValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": str(exc),
                "missing_fields": exc.missing_fields,
                "invalid_fields": exc.invalid_fields,
            },
        )
    if isinstance(exc, FormatError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})
    if isinstance(exc, VaultIOError):
        logger.error(f"Vault I/O failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})
    logger.error(f"Vault failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


async def suggestion_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Suggestion failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_app(workspace: Workspace | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        workspace: Workspace to serve (defaults to the configured data dir)
    """
    app = FastAPI(
        title="pmvault API",
        description="REST API for pmvault - boards and stories in Markdown files",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.workspace = workspace or Workspace.open()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=PMVAULT_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add API key authentication middleware
    app.middleware("http")(api_key_middleware)

    app.add_exception_handler(SuggestionError, suggestion_error_handler)
    app.add_exception_handler(VaultError, vault_error_handler)

    # Include routers
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(vault.router, prefix="/api/v1", tags=["Vault"])
    app.include_router(boards.router, prefix="/api/v1", tags=["Boards"])
    app.include_router(tasks.router, prefix="/api/v1", tags=["Tasks"])
    app.include_router(projects.router, prefix="/api/v1", tags=["Projects"])
    app.include_router(stories.router, prefix="/api/v1", tags=["Stories"])

    return app


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=host or PMVAULT_HOST,
        port=port or PMVAULT_PORT,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
