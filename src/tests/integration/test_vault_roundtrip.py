"""Integration tests: a vault edited by the app and by hand."""

from pathlib import Path

import pytest

from pmvault.core.workspace import Workspace
from pmvault.vault import EntityKind, VaultStore, frontmatter


@pytest.mark.asyncio
async def test_full_workflow(tmp_path: Path, mock_suggester):
    """Seed, plan a story, move it across the board, and read it back."""
    workspace = Workspace.open(tmp_path, suggester=mock_suggester)
    report = await workspace.load()
    assert report.seeded is True

    project = await workspace.create_project(
        {"title": "Reporting", "owner": "ana", "description": "Exports and charts"}
    )
    epic = await workspace.create_epic({"title": "Exports", "projectId": project.id})

    suggestion = await workspace.suggest_story({"description": "Export boards as CSV"})
    story = await workspace.create_story(
        {
            **suggestion.model_dump(by_alias=True, exclude_none=True),
            "description": "Export boards as CSV",
            "projectId": project.id,
            "epicId": epic.id,
        }
    )

    for column in ("Ready", "In Progress", "Review", "Done"):
        await workspace.update_task_column({"taskId": story.id, "column": column})

    fresh = VaultStore(tmp_path)
    fresh.load()
    saved = fresh.get_task(story.id)

    assert saved.column == "Done"
    assert saved.project_id == "reporting"
    assert saved.epic_id == "exports"
    assert saved.as_a == "team lead"
    assert saved.acceptance_criteria == ["CSV download works"]
    assert saved.body == "Export boards as CSV"
    assert saved.updated is not None
    assert fresh.diagnostics == []

    done = fresh.get_board_with_tasks("default").columns[-1]
    assert [t.id for t in done.tasks] == [story.id]


def test_hand_edited_files(tmp_path: Path):
    """Files written by people (comments, unquoted dates, extra keys) load."""
    store = VaultStore(tmp_path)
    store.load()
    tasks_dir = store.layout.directory_for(EntityKind.TASK)

    (tasks_dir / "handmade.md").write_text(
        "---\n"
        "# written in an editor\n"
        "id: handmade\n"
        "title: Handmade task\n"
        "board: default\n"
        "column: Inbox\n"
        "tags: [ops, urgent]\n"
        "due: 2024-07-01\n"
        "created: 2024-06-01\n"
        "priority: high\n"
        "---\n"
        "# Notes\n\nSome **markdown**.\n",
        encoding="utf-8",
    )
    (tasks_dir / "README.txt").write_text("ignored")
    (tasks_dir / "broken.md").write_text("---\nid: [unclosed\n---\n")

    report = store.reload()

    task = store.get_task("handmade")
    assert task.tags == ["ops", "urgent"]
    assert task.due == "2024-07-01"
    assert task.body == "# Notes\n\nSome **markdown**.\n"
    assert [d.path for d in report.diagnostics] == [str(tasks_dir / "broken.md")]

    inbox = store.get_board_with_tasks("default").columns[0]
    assert [t.id for t in inbox.tasks] == ["handmade"]

    store.update_task_column("handmade", "Done")
    doc = frontmatter.parse((tasks_dir / "handmade.md").read_text(encoding="utf-8"))
    assert doc.header["column"] == "Done"
    assert doc.header["due"] == "2024-07-01"
    assert doc.body == "# Notes\n\nSome **markdown**.\n"

    store.reload()
    assert store.get_task("handmade").column == "Done"


def test_new_board_by_hand(tmp_path: Path):
    """A board added on disk is usable after reload."""
    store = VaultStore(tmp_path)
    store.load()
    boards_dir = store.layout.directory_for(EntityKind.BOARD)
    (boards_dir / "ops.md").write_text(
        "---\nid: ops\ntitle: Ops\ncolumns:\n  - Todo\n  - Done\n---\n"
    )

    store.reload()
    story = store.create_story({"title": "Rotate keys", "board": "ops"})

    assert story.column == "Todo"
    assert [b.id for b in store.list_boards()] == ["default", "ops"]
    view = store.get_board_with_tasks("ops")
    assert [t.id for t in view.columns[0].tasks] == ["rotate-keys"]
