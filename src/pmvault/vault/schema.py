"""Typed entity records and header validation.

Each entity kind is a frozen pydantic model. Field declaration order is the
order keys are written to a file's frontmatter. decode() turns a raw header
mapping into a record or raises ValidationError listing what is missing and
what is invalid; encode() is its inverse.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pmvault.vault.errors import ValidationError, from_pydantic


class EntityKind(StrEnum):
    """Entity kinds stored in the vault."""

    BOARD = "board"
    TASK = "task"
    PROJECT = "project"
    EPIC = "epic"

    @property
    def directory(self) -> str:
        """Directory name under the vault root."""
        return f"{self.value}s"


# --- Dates ---


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO date, ISO datetime or epoch-seconds string to aware UTC.

    Raises:
        ValueError: If the string is not a recognizable date
    """
    text = value.strip()
    if text.isdigit():
        try:
            return datetime.fromtimestamp(int(text), UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError("not a recognizable date") from e
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def timestamp_sort_key(value: str | None) -> datetime:
    """Comparable instant for ordering; missing dates sort first."""
    if not value:
        return datetime.min.replace(tzinfo=UTC)
    try:
        return parse_timestamp(value)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)


def now_timestamp() -> str:
    """Current time in the format the store writes."""
    return datetime.now(UTC).isoformat(timespec="seconds")


def _normalize_date(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, int) and not isinstance(value, bool):
        text = str(value)
        parse_timestamp(text)
        return text
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parse_timestamp(text)
        return text
    raise ValueError("not a recognizable date")


def _optional_text(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# --- Records ---


class Entity(BaseModel):
    """Fields shared by every entity kind."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: ClassVar[EntityKind]

    id: str
    title: str

    @field_validator("id", "title", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @classmethod
    def header_fields(cls) -> list[str]:
        """Frontmatter keys in declared order."""
        return [name for name in cls.model_fields if name != "body"]

    @classmethod
    def required_fields(cls) -> list[str]:
        return [
            name
            for name, info in cls.model_fields.items()
            if info.is_required() and name != "body"
        ]


class Board(Entity):
    """An ordered set of named columns that tasks are grouped into."""

    kind: ClassVar[EntityKind] = EntityKind.BOARD

    columns: list[str]

    @field_validator("columns")
    @classmethod
    def _columns(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("columns must not be empty")
        names = [name.strip() for name in value]
        if any(not name for name in names):
            raise ValueError("column names must not be empty")
        if len(set(names)) != len(names):
            raise ValueError("column names must be distinct")
        return names


class Task(Entity):
    """A card on a board. Stories are tasks tagged 'story'."""

    kind: ClassVar[EntityKind] = EntityKind.TASK

    board: str
    column: str
    tags: list[str] = Field(default_factory=list)
    due: str | None = None
    created: str
    updated: str | None = None
    project_id: str | None = None
    epic_id: str | None = None
    owner: str | None = None
    description: str | None = None
    as_a: str | None = None
    i_want: str | None = None
    so_that: str | None = None
    acceptance_criteria: list[str] | None = None
    body: str = ""

    @field_validator("board", "column", mode="before")
    @classmethod
    def _reference(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("due", "created", "updated", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> str | None:
        return _normalize_date(value)

    @field_validator(
        "project_id",
        "epic_id",
        "owner",
        "description",
        "as_a",
        "i_want",
        "so_that",
        mode="before",
    )
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _optional_text(value)

    @property
    def is_story(self) -> bool:
        return "story" in self.tags


class Project(Entity):
    """A top-level grouping for epics and stories."""

    kind: ClassVar[EntityKind] = EntityKind.PROJECT

    owner: str | None = None
    description: str | None = None
    created: str | None = None
    updated: str | None = None

    @field_validator("owner", "description", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _optional_text(value)

    @field_validator("created", "updated", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> str | None:
        return _normalize_date(value)


class Epic(Entity):
    """A body of work, optionally belonging to a project."""

    kind: ClassVar[EntityKind] = EntityKind.EPIC

    project_id: str | None = None
    owner: str | None = None
    description: str | None = None
    created: str | None = None
    updated: str | None = None

    @field_validator("project_id", "owner", "description", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _optional_text(value)

    @field_validator("created", "updated", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> str | None:
        return _normalize_date(value)


Record = Board | Task | Project | Epic

MODELS: dict[EntityKind, type[Entity]] = {
    EntityKind.BOARD: Board,
    EntityKind.TASK: Task,
    EntityKind.PROJECT: Project,
    EntityKind.EPIC: Epic,
}


def decode(kind: EntityKind, header: Mapping[str, Any], body: str = "") -> Record:
    """
    Decode a frontmatter header into a typed record.

    Unknown keys are ignored. Blank required values count as missing.

    Args:
        kind: Entity kind the header belongs to
        header: Parsed frontmatter mapping
        body: File body (kept on tasks only)

    Raises:
        ValidationError: With missing_fields and invalid_fields populated
    """
    model = MODELS[kind]
    if not isinstance(header, Mapping):
        raise ValidationError(invalid_fields={"header": "must be a mapping"})

    data = {name: header[name] for name in model.header_fields() if name in header}
    missing = [name for name in model.required_fields() if _is_blank(data.get(name))]
    for name in missing:
        data.pop(name, None)
    if kind is EntityKind.TASK:
        data["body"] = body

    try:
        record = model.model_validate(data)
    except PydanticValidationError as e:
        raise from_pydantic(e, model, missing) from e

    return record


def encode(record: Record) -> dict[str, Any]:
    """Map a record back to a frontmatter header, omitting unset optionals."""
    header: dict[str, Any] = {}
    fields = type(record).model_fields
    for name in type(record).header_fields():
        value = getattr(record, name)
        if value is None and not fields[name].is_required():
            continue
        header[name] = list(value) if isinstance(value, list) else value
    return header
