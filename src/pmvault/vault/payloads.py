"""Request payloads for vault mutations and story suggestions.

Payloads accept camelCase (as sent by the desktop UI) or snake_case keys.
User-entered fields and suggestion output both pass through these models.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from pmvault.vault.errors import from_pydantic

MAX_TITLE_LENGTH = 200
MAX_CRITERIA = 20

P = TypeVar("P", bound=BaseModel)


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class Payload(BaseModel):
    """Base payload: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class TitledPayload(Payload):
    title: str = Field(max_length=MAX_TITLE_LENGTH)
    owner: str | None = None
    description: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Any:
        value = _clean(value)
        if value is None:
            raise PydanticCustomError("missing", "Title is required")
        return value

    @field_validator("owner", "description", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _clean(value)


class CreateProjectPayload(TitledPayload):
    """Fields for a new project."""

    pass


class CreateEpicPayload(TitledPayload):
    """Fields for a new epic."""

    project_id: str | None = None

    @field_validator("project_id", mode="before")
    @classmethod
    def _project(cls, value: Any) -> Any:
        return _clean(value)


class StoryFields(Payload):
    """User-story fields that suggestions may fill in."""

    as_a: str | None = None
    i_want: str | None = None
    so_that: str | None = None
    acceptance_criteria: list[str] | None = Field(default=None, max_length=MAX_CRITERIA)

    @field_validator("as_a", "i_want", "so_that", mode="before")
    @classmethod
    def _optional(cls, value: Any) -> Any:
        return _clean(value)

    @field_validator("acceptance_criteria", mode="before")
    @classmethod
    def _criteria(cls, value: Any) -> Any:
        if isinstance(value, list):
            items = [_clean(item) for item in value]
            return [item for item in items if item is not None] or None
        return value


class CreateStoryPayload(TitledPayload, StoryFields):
    """Fields for a new story (a task tagged 'story')."""

    board: str | None = None
    column: str | None = None
    project_id: str | None = None
    epic_id: str | None = None
    due: str | None = None

    @field_validator("board", "column", "project_id", "epic_id", "due", mode="before")
    @classmethod
    def _references(cls, value: Any) -> Any:
        return _clean(value)


class UpdateTaskColumnPayload(Payload):
    """Move a task to another column."""

    task_id: str
    column: str

    @field_validator("task_id", "column", mode="before")
    @classmethod
    def _required(cls, value: Any) -> Any:
        value = _clean(value)
        if value is None:
            raise PydanticCustomError("missing", "Field is required")
        return value


class StoryDraft(StoryFields):
    """A partial story sent for suggestions."""

    title: str | None = None
    description: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Any:
        return _clean(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> Any:
        return "" if value is None else value


class StorySuggestion(StoryFields):
    """Suggested story fields; null means no suggestion."""

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Any:
        return _clean(value)


def validate_payload(model: type[P], data: P | Mapping[str, Any]) -> P:
    """
    Validate raw input against a payload model.

    Raises:
        ValidationError: If the input does not satisfy the model
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_none=True)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise from_pydantic(e, model) from e
