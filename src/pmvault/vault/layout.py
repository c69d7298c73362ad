"""Vault layout and path helpers.

This module maps entity kinds to directories and ids to filenames:

    <root>/boards/<slug>.md
    <root>/tasks/<slug>.md
    <root>/projects/<slug>.md
    <root>/epics/<slug>.md
"""

import logging
import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile

from pmvault.vault.errors import VaultIOError
from pmvault.vault.schema import EntityKind

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".md"

_UNSAFE_RE = re.compile(r"[^a-z0-9_-]+")


def slugify(text: str) -> str:
    """
    Turn an id or title into a filesystem-safe slug.

    Args:
        text: Arbitrary text

    Returns:
        Lowercase slug of [a-z0-9_-], never empty
    """
    slug = _UNSAFE_RE.sub("-", text.strip().lower()).strip("-")
    return slug or "item"


def write_atomic(path: Path, text: str) -> None:
    """
    Write a file so readers never observe partial content.

    Writes to a temporary file in the same directory, then renames it over
    the target.

    Raises:
        VaultIOError: If the write or rename fails (no partial file remains)
    """
    tmp_name: str | None = None
    try:
        with NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=str(path.parent),
            prefix=f".{path.stem}.",
            suffix=".tmp",
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise VaultIOError(f"Failed to write {path}: {e}") from e
    logger.debug(f"Wrote {path}")


class VaultLayout:
    """Directory structure of a vault rooted at a single path."""

    def __init__(self, root: Path | str):
        """
        Initialize layout.

        Args:
            root: Vault root directory (the directory holding boards/, tasks/, ...)
        """
        self.root = Path(root).expanduser()

    def directory_for(self, kind: EntityKind) -> Path:
        """Get the directory holding files of one entity kind."""
        return self.root / kind.directory

    @staticmethod
    def filename_for(entity_id: str) -> str:
        """Get the filename for an entity id."""
        return f"{slugify(entity_id)}{FILE_SUFFIX}"

    def path_for(self, kind: EntityKind, entity_id: str) -> Path:
        """Get the canonical path for an entity."""
        return self.directory_for(kind) / self.filename_for(entity_id)

    def list_files(self, kind: EntityKind) -> list[Path]:
        """
        List entity files of one kind.

        Hidden entries, subdirectories and non-markdown files are skipped.

        Returns:
            Sorted list of file paths (empty if the directory is missing)
        """
        directory = self.directory_for(kind)
        if not directory.is_dir():
            return []
        return sorted(
            entry
            for entry in directory.iterdir()
            if entry.suffix == FILE_SUFFIX
            and not entry.name.startswith(".")
            and entry.is_file()
        )

    def ensure_directories(self) -> None:
        """Create the root and every kind directory."""
        for kind in EntityKind:
            self.directory_for(kind).mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"VaultLayout({self.root})"
