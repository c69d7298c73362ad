"""Shared test fixtures and configuration."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from pmvault.core.workspace import Workspace
from pmvault.vault import EntityKind, VaultStore
from pmvault.vault.payloads import StorySuggestion


@pytest.fixture
def mock_env(monkeypatch, tmp_path):
    """Set up mock environment variables."""
    env_vars = {
        "ANTHROPIC_API_KEY": "test_anthropic_key",
        "PMVAULT_DATA_DIR": str(tmp_path / "data"),
        "PMVAULT_API_KEY": "test_api_key",
        "LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def store(tmp_path: Path) -> VaultStore:
    """A freshly seeded and loaded store."""
    store = VaultStore(tmp_path)
    store.load()
    return store


@pytest.fixture
def empty_vault(tmp_path: Path) -> VaultStore:
    """A store whose vault root exists but holds no entity files."""
    store = VaultStore(tmp_path)
    store.layout.ensure_directories()
    return store


@pytest.fixture
def write_entity():
    """Write a raw entity file into a store's vault."""

    def _write(store: VaultStore, kind: EntityKind, name: str, content: str) -> Path:
        directory = store.layout.directory_for(kind)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.md"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def board_file():
    """Frontmatter for a board with the given columns."""

    def _board(board_id: str = "b1", columns: list[str] | None = None) -> str:
        columns = columns or ["Todo", "Doing", "Done"]
        lines = "".join(f"  - {name}\n" for name in columns)
        return f"---\nid: {board_id}\ntitle: Board {board_id}\ncolumns:\n{lines}---\n"

    return _board


@pytest.fixture
def task_file():
    """Frontmatter for a task."""

    def _task(
        task_id: str,
        column: str = "Todo",
        board: str = "b1",
        created: str = "2024-01-01T00:00:00+00:00",
        body: str = "",
    ) -> str:
        return (
            f"---\nid: {task_id}\ntitle: Task {task_id}\nboard: {board}\n"
            f"column: {column}\ncreated: '{created}'\n---\n{body}"
        )

    return _task


@pytest.fixture
def mock_suggester():
    """A suggester stub returning a fixed suggestion."""
    suggester = MagicMock()
    suggester.suggest = AsyncMock(
        return_value=StorySuggestion(
            title="Export board",
            as_a="team lead",
            i_want="to export a board",
            so_that="I can share progress",
            acceptance_criteria=["CSV download works"],
        )
    )
    return suggester


@pytest.fixture
def workspace(tmp_path: Path, mock_suggester) -> Workspace:
    """Workspace over a temporary vault with a stubbed suggester."""
    return Workspace.open(tmp_path, suggester=mock_suggester)
