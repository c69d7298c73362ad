"""Vault store - in-memory index over the vault's entity files.

The files on disk are the only durable state. The store reads them into an
index, checks references between entities, answers queries from the index,
and applies mutations by validating first, writing exactly one file, then
updating the index.

Column policy: a task's column must be one of its board's declared columns.
Tasks loaded with an undeclared column stay in the task list but are left out
of board projections and reported as diagnostics; creating or moving a task
into an undeclared column fails with ValidationError.

Example:
    store = VaultStore("~/.pmvault")
    store.load()
    view = store.get_board_with_tasks("default")
    store.update_task_column("welcome", "Done")
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from pmvault.vault import frontmatter
from pmvault.vault.errors import (
    FormatError,
    NotFoundError,
    ValidationError,
    VaultIOError,
)
from pmvault.vault.layout import VaultLayout, slugify, write_atomic
from pmvault.vault.payloads import (
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
    validate_payload,
)
from pmvault.vault.projection import BoardView, project_board, task_order
from pmvault.vault.schema import (
    Board,
    EntityKind,
    Epic,
    Project,
    Record,
    Task,
    decode,
    encode,
    now_timestamp,
)
from pmvault.vault.seed import DEFAULT_BOARD_ID, DEFAULT_COLUMN, seed_vault

logger = logging.getLogger(__name__)

STORY_TAG = "story"


class VaultInfo(BaseModel):
    """Where the vault lives."""

    path: str


class Diagnostic(BaseModel):
    """A problem found while loading one file."""

    path: str
    kind: EntityKind
    message: str
    entity_id: str | None = None


class LoadReport(BaseModel):
    """Outcome of a full load."""

    seeded: bool = False
    counts: dict[EntityKind, int]
    diagnostics: list[Diagnostic]


@dataclass
class VaultIndex:
    """Entities by id plus the derived per-board task lists."""

    boards: dict[str, Board] = field(default_factory=dict)
    tasks: dict[str, Task] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)
    epics: dict[str, Epic] = field(default_factory=dict)
    tasks_by_board: dict[str, list[Task]] = field(default_factory=dict)
    paths: dict[tuple[EntityKind, str], Path] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def table(self, kind: EntityKind) -> dict[str, Any]:
        return {
            EntityKind.BOARD: self.boards,
            EntityKind.TASK: self.tasks,
            EntityKind.PROJECT: self.projects,
            EntityKind.EPIC: self.epics,
        }[kind]

    def report(
        self, path: Path, kind: EntityKind, message: str, entity_id: str | None = None
    ) -> None:
        self.diagnostics.append(
            Diagnostic(path=str(path), kind=kind, message=message, entity_id=entity_id)
        )

    def put(self, record: Record, path: Path) -> None:
        """Insert or replace a record and keep tasks_by_board ordered."""
        self.table(record.kind)[record.id] = record
        self.paths[(record.kind, record.id)] = path
        if isinstance(record, Task):
            self.diagnostics = [d for d in self.diagnostics if d.path != str(path)]
            for board_id, tasks in self.tasks_by_board.items():
                self.tasks_by_board[board_id] = [t for t in tasks if t.id != record.id]
            if record.board in self.boards:
                tasks = self.tasks_by_board.setdefault(record.board, [])
                tasks.append(record)
                tasks.sort(key=task_order)


def default_column(board: Board) -> str:
    """Column new tasks land in when none is given."""
    if DEFAULT_COLUMN in board.columns:
        return DEFAULT_COLUMN
    return board.columns[0]


def _check_column(board: Board, column: str) -> None:
    if column not in board.columns:
        raise ValidationError(
            invalid_fields={
                "column": (
                    f"{column!r} is not a column of board {board.id!r} "
                    f"(expected one of: {', '.join(board.columns)})"
                )
            }
        )


def _check_reference(table: Mapping[str, Any], name: str, value: str | None) -> None:
    if value is not None and value not in table:
        raise ValidationError(invalid_fields={name: f"unknown id: {value}"})


class VaultStore:
    """File-backed store for boards, tasks, projects and epics."""

    VAULT_DIRNAME = "vault"

    def __init__(self, path: Path | str):
        """Initialize store with its base directory.

        Args:
            path: Base directory; the vault lives in <path>/vault
        """
        self.base_path = Path(path).expanduser().resolve()
        self.layout = VaultLayout(self.base_path / self.VAULT_DIRNAME)
        self._index: VaultIndex | None = None

    @property
    def root(self) -> Path:
        return self.layout.root

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self._require_index().diagnostics)

    def ensure_vault(self) -> bool:
        """Seed the vault on first access. Returns True if it was seeded."""
        return seed_vault(self.layout)

    def vault_info(self) -> VaultInfo:
        self.ensure_vault()
        return VaultInfo(path=str(self.root))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> LoadReport:
        """Read every entity file and rebuild the index.

        Files that fail to parse or validate are skipped and reported; the
        rest of the vault still loads.

        Raises:
            VaultIOError: If the vault root cannot be created or listed
        """
        seeded = self.ensure_vault()
        if not self.root.is_dir():
            raise VaultIOError(f"Vault root is not a directory: {self.root}")
        index = VaultIndex()

        for kind in EntityKind:
            try:
                paths = self.layout.list_files(kind)
            except OSError as e:
                raise VaultIOError(
                    f"Cannot list {self.layout.directory_for(kind)}: {e}"
                ) from e

            table = index.table(kind)
            for path in paths:
                try:
                    record = self._read(kind, path)
                except (FormatError, ValidationError) as e:
                    logger.warning(f"Skipping {path}: {e}")
                    index.report(path, kind, str(e))
                    continue
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Skipping unreadable {path}: {e}")
                    index.report(path, kind, f"unreadable: {e}")
                    continue

                if record.id in table:
                    first = index.paths[(kind, record.id)]
                    logger.warning(f"Skipping {path}: duplicate id {record.id!r}")
                    index.report(
                        path,
                        kind,
                        f"duplicate id {record.id!r} (already defined in {first.name})",
                        record.id,
                    )
                    continue

                table[record.id] = record
                index.paths[(kind, record.id)] = path

        self._check_integrity(index)
        self._index = index

        counts = {kind: len(index.table(kind)) for kind in EntityKind}
        logger.info(
            f"Vault loaded from {self.root}: "
            + ", ".join(f"{kind.directory}={n}" for kind, n in counts.items())
            + f", diagnostics={len(index.diagnostics)}"
        )
        return LoadReport(
            seeded=seeded, counts=counts, diagnostics=list(index.diagnostics)
        )

    def reload(self) -> LoadReport:
        """Force a fresh load from disk. A failed reload keeps the last snapshot."""
        return self.load()

    def _read(self, kind: EntityKind, path: Path) -> Record:
        document = frontmatter.parse(path.read_text(encoding="utf-8"))
        return decode(kind, document.header, document.body)

    def _check_integrity(self, index: VaultIndex) -> None:
        for task in index.tasks.values():
            path = index.paths[(EntityKind.TASK, task.id)]
            board = index.boards.get(task.board)
            if board is None:
                logger.warning(f"Task {task.id!r} references unknown board {task.board!r}")
                index.report(
                    path,
                    EntityKind.TASK,
                    f"board {task.board!r} not found; task hidden from boards",
                    task.id,
                )
                continue
            if task.column not in board.columns:
                logger.warning(
                    f"Task {task.id!r} is in undeclared column {task.column!r}"
                )
                index.report(
                    path,
                    EntityKind.TASK,
                    f"column {task.column!r} not declared by board {board.id!r}; "
                    "task hidden from board",
                    task.id,
                )
            index.tasks_by_board.setdefault(board.id, []).append(task)

        for tasks in index.tasks_by_board.values():
            tasks.sort(key=task_order)

        for epic in index.epics.values():
            if epic.project_id and epic.project_id not in index.projects:
                index.report(
                    index.paths[(EntityKind.EPIC, epic.id)],
                    EntityKind.EPIC,
                    f"project {epic.project_id!r} not found",
                    epic.id,
                )

    def _require_index(self) -> VaultIndex:
        if self._index is None:
            self.load()
        assert self._index is not None
        return self._index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_boards(self) -> list[Board]:
        boards = self._require_index().boards.values()
        return sorted(boards, key=lambda b: (b.title, b.id))

    def list_tasks(self, board_id: str | None = None) -> list[Task]:
        tasks = self._require_index().tasks.values()
        if board_id is not None:
            tasks = [t for t in tasks if t.board == board_id]
        return sorted(tasks, key=lambda t: (t.title, t.id))

    def list_projects(self) -> list[Project]:
        projects = self._require_index().projects.values()
        return sorted(projects, key=lambda p: (p.title, p.id))

    def list_epics(self, project_id: str | None = None) -> list[Epic]:
        epics = self._require_index().epics.values()
        if project_id is not None:
            epics = [e for e in epics if e.project_id == project_id]
        return sorted(epics, key=lambda e: (e.title, e.id))

    def get_board(self, board_id: str) -> Board:
        board = self._require_index().boards.get(board_id)
        if board is None:
            raise NotFoundError(EntityKind.BOARD, board_id)
        return board

    def get_task(self, task_id: str) -> Task:
        task = self._require_index().tasks.get(task_id)
        if task is None:
            raise NotFoundError(EntityKind.TASK, task_id)
        return task

    def get_board_with_tasks(self, board_id: str) -> BoardView:
        index = self._require_index()
        return project_board(index.boards, index.tasks_by_board, board_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, kind: EntityKind, fields: Mapping[str, Any]) -> Record:
        """
        Create an entity from raw fields.

        All checks run before the single file write, so a failure leaves the
        vault untouched.

        Args:
            kind: Entity kind to create
            fields: Field values; id, created and updated are assigned here

        Returns:
            The created record

        Raises:
            ValidationError: Missing title, invalid field or unknown reference
            VaultIOError: If the file cannot be written
        """
        index = self._require_index()
        header = {k: v for k, v in fields.items() if v is not None}
        for name in ("id", "created", "updated"):
            header.pop(name, None)
        body = header.pop("body", "") or ""

        title = header.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(missing_fields=["title"])

        if kind is EntityKind.EPIC:
            _check_reference(index.projects, "project_id", header.get("project_id"))
        elif kind is EntityKind.TASK:
            board_id = header.get("board") or DEFAULT_BOARD_ID
            board = index.boards.get(board_id)
            if board is None:
                raise ValidationError(
                    invalid_fields={"board": f"unknown board: {board_id}"}
                )
            column = header.get("column") or default_column(board)
            _check_column(board, column)
            _check_reference(index.projects, "project_id", header.get("project_id"))
            _check_reference(index.epics, "epic_id", header.get("epic_id"))
            header["board"] = board_id
            header["column"] = column

        header["id"] = self._unique_id(kind, title)
        header["created"] = now_timestamp()
        record = decode(kind, header, body)

        path = self.layout.path_for(kind, record.id)
        self._write(record, path)
        index.put(record, path)
        logger.info(f"Created {kind} {record.id!r} at {path}")
        return record

    def create_project(
        self, payload: CreateProjectPayload | Mapping[str, Any]
    ) -> Project:
        data = validate_payload(CreateProjectPayload, payload)
        return self.create(EntityKind.PROJECT, data.model_dump(exclude_none=True))

    def create_epic(self, payload: CreateEpicPayload | Mapping[str, Any]) -> Epic:
        data = validate_payload(CreateEpicPayload, payload)
        return self.create(EntityKind.EPIC, data.model_dump(exclude_none=True))

    def create_story(self, payload: CreateStoryPayload | Mapping[str, Any]) -> Task:
        """Create a task tagged 'story'; its body is the description."""
        data = validate_payload(CreateStoryPayload, payload)
        fields = data.model_dump(exclude_none=True)
        fields["tags"] = [STORY_TAG]
        fields["body"] = data.description or ""
        return self.create(EntityKind.TASK, fields)

    def update_task_column(self, task_id: str, column: str) -> Task:
        """
        Move a task to another column of its board.

        Raises:
            NotFoundError: If the task id is unknown
            ValidationError: If the column is not declared by the task's board
            VaultIOError: If the file cannot be written
        """
        index = self._require_index()
        task = index.tasks.get(task_id)
        if task is None:
            raise NotFoundError(EntityKind.TASK, task_id)

        column = column.strip() if isinstance(column, str) else column
        if not column:
            raise ValidationError(missing_fields=["column"])

        board = index.boards.get(task.board)
        if board is None:
            raise ValidationError(
                invalid_fields={"board": f"unknown board: {task.board}"}
            )
        _check_column(board, column)

        header = encode(task)
        header["column"] = column
        header["updated"] = now_timestamp()
        moved = decode(EntityKind.TASK, header, task.body)

        path = index.paths[(EntityKind.TASK, task.id)]
        self._write(moved, path)
        index.put(moved, path)
        logger.info(f"Moved task {task.id!r}: {task.column!r} -> {column!r}")
        return moved

    def _unique_id(self, kind: EntityKind, title: str) -> str:
        table = self._require_index().table(kind)
        base = slugify(title)
        candidate = base
        suffix = 2
        while candidate in table or self.layout.path_for(kind, candidate).exists():
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _write(self, record: Record, path: Path) -> None:
        body = record.body if isinstance(record, Task) else ""
        text = frontmatter.serialize(encode(record), body)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultIOError(f"Cannot create {path.parent}: {e}") from e
        write_atomic(path, text)

    def __repr__(self) -> str:
        return f"VaultStore({self.root})"
