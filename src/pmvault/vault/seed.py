"""First-run bootstrap for a fresh vault.

Seeding happens only when the vault root does not exist. An existing root,
even an empty or partially populated one, is left untouched so user edits
are never overwritten.
"""

import logging

from pmvault.vault import frontmatter
from pmvault.vault.errors import VaultIOError
from pmvault.vault.layout import VaultLayout, write_atomic
from pmvault.vault.schema import Board, Epic, Project, Record, Task, encode, now_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BOARD_ID = "default"
DEFAULT_COLUMNS = ["Inbox", "Backlog", "Ready", "In Progress", "Review", "Done"]
DEFAULT_COLUMN = "Backlog"


def default_entities(created: str) -> list[Record]:
    """Entities written into a brand new vault."""
    return [
        Board(id=DEFAULT_BOARD_ID, title="Default Board", columns=DEFAULT_COLUMNS),
        Project(
            id="getting-started",
            title="Getting Started",
            description="A sample project. Edit or replace it.",
            created=created,
        ),
        Epic(
            id="first-steps",
            title="First Steps",
            project_id="getting-started",
            description="Learn how the vault works.",
            created=created,
        ),
        Task(
            id="welcome",
            title="Welcome to your vault",
            board=DEFAULT_BOARD_ID,
            column=DEFAULT_COLUMN,
            tags=["sample"],
            created=created,
            project_id="getting-started",
            epic_id="first-steps",
            body=(
                "Every board, task, project and epic is a Markdown file with a\n"
                "YAML header. Edit them with any text editor.\n"
            ),
        ),
        Task(
            id="move-a-task",
            title="Move a task to another column",
            board=DEFAULT_BOARD_ID,
            column=DEFAULT_COLUMN,
            tags=["sample"],
            created=created,
            project_id="getting-started",
            epic_id="first-steps",
            body="Drag this card to In Progress, then to Done.\n",
        ),
    ]


def seed_vault(layout: VaultLayout) -> bool:
    """
    Create and populate the vault if its root does not exist yet.

    Args:
        layout: Layout of the vault to seed

    Returns:
        True if the vault was seeded, False if the root already existed

    Raises:
        VaultIOError: If the vault cannot be created (fatal, not retried)
    """
    if layout.root.exists():
        logger.debug(f"Vault root exists, skipping seed: {layout.root}")
        return False

    logger.info(f"Seeding new vault at {layout.root}")
    try:
        layout.ensure_directories()
    except OSError as e:
        raise VaultIOError(f"Cannot create vault at {layout.root}: {e}") from e

    created = now_timestamp()
    for record in default_entities(created):
        body = record.body if isinstance(record, Task) else ""
        path = layout.path_for(record.kind, record.id)
        write_atomic(path, frontmatter.serialize(encode(record), body))

    return True
