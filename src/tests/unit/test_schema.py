"""Unit tests for entity records, decode() and encode()."""

from datetime import UTC, datetime

import pytest

from pmvault.vault.errors import ValidationError
from pmvault.vault.schema import (
    Board,
    EntityKind,
    Epic,
    Project,
    Task,
    decode,
    encode,
    now_timestamp,
    parse_timestamp,
    timestamp_sort_key,
)


class TestEntityKind:
    """Tests for EntityKind."""

    @pytest.mark.parametrize(
        "kind,directory",
        [
            (EntityKind.BOARD, "boards"),
            (EntityKind.TASK, "tasks"),
            (EntityKind.PROJECT, "projects"),
            (EntityKind.EPIC, "epics"),
        ],
    )
    def test_directory(self, kind, directory):
        assert kind.directory == directory


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_parse_date(self):
        assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=UTC)

    def test_parse_naive_datetime_is_utc(self):
        assert parse_timestamp("2024-03-01T12:30:00") == datetime(
            2024, 3, 1, 12, 30, tzinfo=UTC
        )

    def test_parse_offset_datetime_converts_to_utc(self):
        assert parse_timestamp("2024-03-01T12:00:00+02:00") == datetime(
            2024, 3, 1, 10, 0, tzinfo=UTC
        )

    def test_parse_epoch_seconds(self):
        assert parse_timestamp("0") == datetime(1970, 1, 1, tzinfo=UTC)

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_parse_rejects_out_of_range_epoch(self):
        with pytest.raises(ValueError, match="not a recognizable date"):
            parse_timestamp("100000000000000000000")

    def test_sort_key_puts_missing_first(self):
        """Missing or unreadable dates sort before real ones."""
        real = timestamp_sort_key("2024-01-01")
        assert timestamp_sort_key(None) < real
        assert timestamp_sort_key("nonsense") < real
        assert timestamp_sort_key("100000000000000000000") < real

    def test_sort_key_compares_instants(self):
        """Different formats of the same instant compare equal."""
        assert timestamp_sort_key("2024-01-01T00:00:00Z") == timestamp_sort_key(
            "2024-01-01"
        )

    def test_now_timestamp_is_parseable(self):
        value = now_timestamp()
        assert parse_timestamp(value).tzinfo is not None
        assert "." not in value


class TestDecodeTask:
    """Tests for decode() with task headers."""

    def _header(self, **overrides):
        header = {
            "id": "t1",
            "title": "Write docs",
            "board": "default",
            "column": "Backlog",
            "created": "2024-01-01T00:00:00+00:00",
        }
        header.update(overrides)
        return header

    def test_decode_minimal_task(self):
        task = decode(EntityKind.TASK, self._header(), "body text")

        assert isinstance(task, Task)
        assert task.id == "t1"
        assert task.tags == []
        assert task.due is None
        assert task.body == "body text"

    def test_missing_fields_are_listed(self):
        """All absent required fields are reported together."""
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.TASK, {"id": "t1", "title": "x"})

        assert set(exc_info.value.missing_fields) == {"board", "column", "created"}

    def test_blank_required_field_counts_as_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.TASK, self._header(title="   "))

        assert exc_info.value.missing_fields == ["title"]

    def test_invalid_date_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.TASK, self._header(due="someday"))

        assert "due" in exc_info.value.invalid_fields
        assert exc_info.value.missing_fields == []

    def test_invalid_tags_type(self):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.TASK, self._header(tags="not-a-list"))

        assert "tags" in exc_info.value.invalid_fields

    def test_null_tags_become_empty(self):
        task = decode(EntityKind.TASK, self._header(tags=None))
        assert task.tags == []

    def test_yaml_native_dates_are_accepted(self):
        """Unquoted YAML dates and epoch integers are normalized to strings."""
        task = decode(
            EntityKind.TASK,
            self._header(created=1704067200, due=datetime(2024, 2, 1).date()),
        )

        assert task.created == "1704067200"
        assert task.due == "2024-02-01"

    @pytest.mark.parametrize(
        "created", ["100000000000000000000", 100000000000000000000]
    )
    def test_out_of_range_epoch_is_reported(self, created):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.TASK, self._header(created=created))

        assert "created" in exc_info.value.invalid_fields

    def test_numeric_id_becomes_string(self):
        task = decode(EntityKind.TASK, self._header(id=42))
        assert task.id == "42"

    def test_unknown_keys_are_ignored(self):
        task = decode(EntityKind.TASK, self._header(color="red"))
        assert not hasattr(task, "color")

    def test_story_fields(self):
        task = decode(
            EntityKind.TASK,
            self._header(
                tags=["story"],
                as_a="user",
                i_want="search",
                so_that="I find things",
                acceptance_criteria=["fast", "accurate"],
            ),
        )

        assert task.is_story
        assert task.acceptance_criteria == ["fast", "accurate"]

    def test_records_are_immutable(self):
        task = decode(EntityKind.TASK, self._header())
        with pytest.raises(Exception):
            task.column = "Done"


class TestDecodeOtherKinds:
    """Tests for decode() with board, project and epic headers."""

    def test_decode_board(self):
        board = decode(
            EntityKind.BOARD, {"id": "b", "title": "B", "columns": ["Todo", "Done"]}
        )

        assert isinstance(board, Board)
        assert board.columns == ["Todo", "Done"]

    def test_board_requires_columns(self):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.BOARD, {"id": "b", "title": "B"})

        assert exc_info.value.missing_fields == ["columns"]

    @pytest.mark.parametrize(
        "columns", [[], ["Todo", ""], ["Todo", "Todo"]], ids=["empty", "blank", "dup"]
    )
    def test_board_rejects_bad_columns(self, columns):
        with pytest.raises(ValidationError) as exc_info:
            decode(EntityKind.BOARD, {"id": "b", "title": "B", "columns": columns})

        assert "columns" in exc_info.value.invalid_fields

    def test_decode_project_without_dates(self):
        project = decode(EntityKind.PROJECT, {"id": "p", "title": "P"})

        assert isinstance(project, Project)
        assert project.created is None

    def test_decode_epic(self):
        epic = decode(
            EntityKind.EPIC, {"id": "e", "title": "E", "project_id": "p", "owner": ""}
        )

        assert isinstance(epic, Epic)
        assert epic.project_id == "p"
        assert epic.owner is None

    def test_decode_rejects_non_mapping(self):
        with pytest.raises(ValidationError):
            decode(EntityKind.PROJECT, ["id", "title"])


class TestEncode:
    """Tests for encode()."""

    def test_encode_omits_unset_optionals(self):
        task = Task(
            id="t1",
            title="T",
            board="default",
            column="Backlog",
            created="2024-01-01",
        )

        header = encode(task)

        assert header == {
            "id": "t1",
            "title": "T",
            "board": "default",
            "column": "Backlog",
            "tags": [],
            "created": "2024-01-01",
        }

    def test_encode_never_writes_body(self):
        task = Task(
            id="t1", title="T", board="b", column="c", created="2024-01-01", body="x"
        )
        assert "body" not in encode(task)

    def test_encode_keeps_declared_order(self):
        epic = Epic(id="e", title="E", project_id="p", created="2024-01-01")
        assert list(encode(epic)) == ["id", "title", "project_id", "created"]

    def test_decode_encode_round_trip(self):
        header = {
            "id": "t1",
            "title": "T",
            "board": "default",
            "column": "Review",
            "tags": ["story", "ux"],
            "due": "2024-02-01",
            "created": "2024-01-01T00:00:00+00:00",
            "updated": "2024-01-02T00:00:00+00:00",
            "owner": "sam",
            "acceptance_criteria": ["works"],
        }

        assert encode(decode(EntityKind.TASK, header)) == header
