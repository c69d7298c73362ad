"""YAML frontmatter parsing and writing for vault files.

Every entity file looks like::

    ---
    id: default
    title: Default Board
    ---
    free text body

The header is a YAML mapping; everything after the closing delimiter line is
the body, returned verbatim.
"""

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from pmvault.vault.errors import FormatError

DELIMITER = "---"

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


@dataclass
class Document:
    """A parsed vault file: header mapping plus body text."""

    header: dict[str, Any] = field(default_factory=dict)
    body: str = ""


def parse(raw: str) -> Document:
    """
    Parse YAML frontmatter from file content.

    Args:
        raw: Full file content including frontmatter

    Returns:
        Document with the decoded header and the remaining body text

    Raises:
        FormatError: If delimiters are missing or the header is not a mapping
    """
    raw = raw.removeprefix("\ufeff")

    match = _FRONTMATTER_RE.match(raw)
    if match is None:
        if not raw.startswith(DELIMITER):
            raise FormatError("missing opening '---' delimiter")
        raise FormatError("missing closing '---' delimiter")

    try:
        header = yaml.safe_load(match.group("header"))
    except yaml.YAMLError as e:
        raise FormatError(f"invalid YAML header: {e}") from e

    if header is None:
        header = {}
    if not isinstance(header, dict):
        raise FormatError(f"header must be a mapping, got {type(header).__name__}")

    return Document(header=header, body=raw[match.end() :])


def serialize(header: dict[str, Any], body: str = "") -> str:
    """
    Write a header mapping and body to file content.

    Keys keep the mapping's insertion order, so callers control ordering
    (entity headers come from schema.encode in declared field order).

    Raises:
        FormatError: If the header holds values YAML cannot represent
    """
    try:
        dumped = yaml.safe_dump(
            header,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=float("inf"),
        )
    except yaml.YAMLError as e:
        raise FormatError(f"cannot serialize header: {e}") from e

    return f"{DELIMITER}\n{dumped}{DELIMITER}\n{body}"
