"""The Workspace - async entry point used by the API and CLI.

Wraps a VaultStore so that every operation runs off the event loop and
operations execute one at a time. Writes are shielded from cancellation:
once a write starts it completes or fails as a whole.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

from pmvault.core.config import PMVAULT_DATA_DIR, validate_suggest_environment
from pmvault.providers.llm import StorySuggester
from pmvault.vault import (
    Board,
    BoardView,
    Diagnostic,
    Epic,
    LoadReport,
    Project,
    Task,
    VaultInfo,
    VaultStore,
)
from pmvault.vault.payloads import (
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
    StoryDraft,
    StorySuggestion,
    UpdateTaskColumnPayload,
    validate_payload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

PayloadInput = Mapping[str, Any]


def _log_write_failure(task: asyncio.Task) -> None:
    # Retrieves the result so a write that outlives its cancelled caller is
    # still reported.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Vault write failed: {exc}")


class Workspace:
    """Serialised async access to one vault."""

    def __init__(
        self,
        store: VaultStore,
        suggester: StorySuggester | None = None,
    ):
        """
        Initialize workspace.

        Args:
            store: Vault store this workspace owns
            suggester: Story suggestion provider (created lazily if omitted)
        """
        self.store = store
        self._suggester = suggester
        self._lock = asyncio.Lock()

    @classmethod
    def open(cls, path: Path | str | None = None, **kwargs: Any) -> "Workspace":
        """Create a workspace for the vault under path (default: data dir)."""
        return cls(VaultStore(path or PMVAULT_DATA_DIR), **kwargs)

    @property
    def suggester(self) -> StorySuggester:
        if self._suggester is None:
            self._suggester = StorySuggester()
        return self._suggester

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        async with self._lock:
            return await asyncio.to_thread(fn, *args)

    async def _write(self, fn: Callable[..., T], *args: Any) -> T:
        task = asyncio.ensure_future(self._run(fn, *args))
        task.add_done_callback(_log_write_failure)
        return await asyncio.shield(task)

    # Loading

    async def load(self) -> LoadReport:
        return await self._run(self.store.load)

    async def reload(self) -> LoadReport:
        return await self._run(self.store.reload)

    # Queries

    async def vault_info(self) -> VaultInfo:
        return await self._run(self.store.vault_info)

    async def diagnostics(self) -> list[Diagnostic]:
        return await self._run(lambda: self.store.diagnostics)

    async def list_boards(self) -> list[Board]:
        return await self._run(self.store.list_boards)

    async def list_tasks(self, board_id: str | None = None) -> list[Task]:
        return await self._run(self.store.list_tasks, board_id)

    async def get_board_with_tasks(self, board_id: str) -> BoardView:
        return await self._run(self.store.get_board_with_tasks, board_id)

    async def list_projects(self) -> list[Project]:
        return await self._run(self.store.list_projects)

    async def list_epics(self, project_id: str | None = None) -> list[Epic]:
        return await self._run(self.store.list_epics, project_id)

    # Mutations

    async def create_project(
        self, payload: CreateProjectPayload | PayloadInput
    ) -> Project:
        return await self._write(self.store.create_project, payload)

    async def create_epic(self, payload: CreateEpicPayload | PayloadInput) -> Epic:
        return await self._write(self.store.create_epic, payload)

    async def create_story(self, payload: CreateStoryPayload | PayloadInput) -> Task:
        return await self._write(self.store.create_story, payload)

    async def update_task_column(
        self, payload: UpdateTaskColumnPayload | PayloadInput
    ) -> Task:
        data = validate_payload(UpdateTaskColumnPayload, payload)
        return await self._write(
            self.store.update_task_column, data.task_id, data.column
        )

    # Suggestions

    async def suggest_story(
        self, draft: StoryDraft | PayloadInput
    ) -> StorySuggestion:
        """
        Ask for suggested story fields.

        The suggestion is merged over the draft and validated as a story
        payload before it is returned. Nothing is written.

        Raises:
            SuggestionError: If the suggestion service fails
            ValidationError: If the draft or the merged result is invalid
        """
        draft = validate_payload(StoryDraft, draft)
        suggestion = await self.suggester.suggest(draft)
        merged = {
            **draft.model_dump(exclude_none=True),
            **suggestion.model_dump(exclude_none=True),
        }
        validate_payload(CreateStoryPayload, merged)
        return suggestion

    # Health

    def health_check(self) -> dict[str, tuple[bool, str]]:
        """
        Check workspace components.

        Returns:
            Mapping of component name to (healthy, message)
        """
        root = self.store.root
        if root.is_dir() and os.access(root, os.W_OK):
            vault_status = (True, f"OK - {root}")
        elif root.exists():
            vault_status = (False, f"Not writable - {root}")
        else:
            vault_status = (False, f"Missing - {root}")

        suggest_ok, suggest_message = validate_suggest_environment()
        return {
            "vault": vault_status,
            "suggestions": (suggest_ok, suggest_message or "OK"),
        }

    def __repr__(self) -> str:
        return f"Workspace({self.store.root})"
