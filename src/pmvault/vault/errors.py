"""Error kinds raised by the vault."""

from collections.abc import Iterable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError


class VaultError(Exception):
    """Base class for every vault failure."""

    pass


class FormatError(VaultError):
    """Raised when a file's frontmatter delimiters or YAML header are unusable."""

    pass


class ValidationError(VaultError):
    """Raised when fields are missing, invalid, or reference unknown entities.

    Attributes:
        missing_fields: Required fields that were absent or empty
        invalid_fields: Mapping of field name to the reason it was rejected
    """

    def __init__(
        self,
        message: str = "",
        missing_fields: Iterable[str] = (),
        invalid_fields: dict[str, str] | None = None,
    ):
        self.missing_fields = list(missing_fields)
        self.invalid_fields = dict(invalid_fields or {})
        if not message:
            parts = []
            if self.missing_fields:
                parts.append(f"missing fields: {', '.join(self.missing_fields)}")
            for name, reason in self.invalid_fields.items():
                parts.append(f"{name}: {reason}")
            message = "; ".join(parts) or "validation failed"
        super().__init__(message)


class NotFoundError(VaultError):
    """Raised when an id does not resolve to an entity."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class VaultIOError(VaultError):
    """Raised when the filesystem is unavailable or access is denied."""

    pass


def from_pydantic(
    error: PydanticValidationError,
    model: type[BaseModel] | None = None,
    missing: Iterable[str] = (),
) -> ValidationError:
    """
    Convert a pydantic validation error into a structured ValidationError.

    Args:
        error: The pydantic error
        model: Model that raised it, used to map aliases back to field names
        missing: Fields already known to be missing

    Returns:
        ValidationError with missing_fields and invalid_fields filled in
    """
    names = {}
    if model is not None:
        names = {
            info.alias: name
            for name, info in model.model_fields.items()
            if info.alias is not None
        }

    missing_fields = list(missing)
    invalid: dict[str, str] = {}
    for item in error.errors():
        loc = str(item["loc"][0]) if item["loc"] else "payload"
        name = names.get(loc, loc)
        if item["type"] == "missing":
            if name not in missing_fields:
                missing_fields.append(name)
        else:
            invalid.setdefault(name, item["msg"])
    return ValidationError(missing_fields=missing_fields, invalid_fields=invalid)
