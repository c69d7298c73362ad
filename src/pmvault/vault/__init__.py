"""Vault module - boards, tasks, projects and epics stored as Markdown files.

The vault is pmvault's only durable state: a directory tree of Markdown files
with YAML frontmatter, one file per entity. It is:
- Human-editable outside the app (any editor, Obsidian, git)
- Loaded into an in-memory index with reference checks between entities
- Seeded with a default board and sample content on first run
"""

from pmvault.vault.errors import (
    FormatError,
    NotFoundError,
    ValidationError,
    VaultError,
    VaultIOError,
)
from pmvault.vault.layout import VaultLayout
from pmvault.vault.projection import BoardColumn, BoardView
from pmvault.vault.schema import Board, EntityKind, Epic, Project, Task
from pmvault.vault.store import Diagnostic, LoadReport, VaultInfo, VaultStore

__all__ = [
    "Board",
    "BoardColumn",
    "BoardView",
    "Diagnostic",
    "EntityKind",
    "Epic",
    "FormatError",
    "LoadReport",
    "NotFoundError",
    "Project",
    "Task",
    "ValidationError",
    "VaultError",
    "VaultIOError",
    "VaultInfo",
    "VaultLayout",
    "VaultStore",
]
