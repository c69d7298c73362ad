"""Tests for the Claude story suggester."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from claude_agent_sdk import CLINotFoundError
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from pmvault.providers.llm import (
    StorySuggester,
    SuggestionError,
    build_prompt,
    parse_suggestion,
)
from pmvault.providers.llm.claude import SUGGESTION_SCHEMA
from pmvault.vault.errors import ValidationError, VaultError
from pmvault.vault.payloads import StoryDraft


def _result(**overrides) -> ResultMessage:
    fields = dict(
        subtype="success",
        result="",
        session_id="sess_1",
        duration_ms=100,
        duration_api_ms=50,
        is_error=False,
        num_turns=1,
        total_cost_usd=0.01,
    )
    fields.update(overrides)
    return ResultMessage(**fields)


def _client(*messages):
    """Build an SDK client stub that replays messages."""
    client = MagicMock()
    client.query = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)

    async def receive():
        for message in messages:
            yield message

    client.receive_response = receive
    return client


@pytest.fixture
def draft() -> StoryDraft:
    return StoryDraft(description="Users want to export boards as CSV", as_a="team lead")


class TestBuildPrompt:
    """Tests for build_prompt()."""

    def test_includes_draft_fields(self, draft):
        prompt = build_prompt(draft)

        assert "Description: Users want to export boards as CSV" in prompt
        assert "Existing asA: team lead" in prompt
        assert "Existing title: \n" in prompt

    def test_joins_existing_criteria(self):
        prompt = build_prompt(StoryDraft(acceptance_criteria=["a", "b"]))
        assert prompt.endswith("Existing acceptanceCriteria: a; b")


class TestParseSuggestion:
    """Tests for parse_suggestion()."""

    def test_parses_json_text(self):
        suggestion = parse_suggestion('{"title": "Export", "asA": "user"}')

        assert suggestion.title == "Export"
        assert suggestion.as_a == "user"

    def test_strips_code_fence(self):
        suggestion = parse_suggestion('```json\n{"iWant": "csv"}\n```')
        assert suggestion.i_want == "csv"

    def test_accepts_structured_dict(self):
        suggestion = parse_suggestion({"acceptanceCriteria": ["one", "two"]})
        assert suggestion.acceptance_criteria == ["one", "two"]

    def test_invalid_json(self):
        with pytest.raises(SuggestionError, match="not valid JSON"):
            parse_suggestion("Sure! Here is a story")

    def test_non_object(self):
        with pytest.raises(SuggestionError, match="JSON object"):
            parse_suggestion("[1, 2]")

    def test_untrusted_fields_are_validated(self):
        """Output failing story validation raises ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            parse_suggestion({"title": "x" * 500})

        assert "title" in exc_info.value.invalid_fields


class TestStorySuggester:
    """Tests for StorySuggester.suggest()."""

    def test_options(self):
        suggester = StorySuggester(model="sonnet", fallback_model="haiku", max_turns=2)
        options = suggester._build_options()

        assert options.model == "sonnet"
        assert options.fallback_model == "haiku"
        assert options.max_turns == 2
        assert options.allowed_tools == []
        assert options.output_format == {"type": "json_schema", "schema": SUGGESTION_SCHEMA}

    def test_same_fallback_is_dropped(self):
        suggester = StorySuggester(model="haiku", fallback_model="haiku")
        assert suggester._build_options().fallback_model is None

    @pytest.mark.asyncio
    async def test_structured_output(self, draft):
        client = _client(
            _result(structured_output={"title": "Export CSV", "soThat": "I can share"})
        )
        suggester = StorySuggester(client_factory=lambda **_: client)

        suggestion = await suggester.suggest(draft)

        assert suggestion.title == "Export CSV"
        assert suggestion.so_that == "I can share"
        client.query.assert_awaited_once()
        assert "export boards" in client.query.await_args.args[0]

    @pytest.mark.asyncio
    async def test_text_reply(self, draft):
        client = _client(
            AssistantMessage(content=[TextBlock(text='{"iWant": "a CSV"}')], model="m"),
            _result(result=""),
        )
        suggester = StorySuggester(client_factory=lambda **_: client)

        suggestion = await suggester.suggest(draft)

        assert suggestion.i_want == "a CSV"

    @pytest.mark.asyncio
    async def test_result_text_wins_over_streamed_text(self, draft):
        client = _client(
            AssistantMessage(content=[TextBlock(text="thinking...")], model="m"),
            _result(result='{"title": "Final"}'),
        )
        suggester = StorySuggester(client_factory=lambda **_: client)

        suggestion = await suggester.suggest(draft)

        assert suggestion.title == "Final"

    @pytest.mark.asyncio
    async def test_error_result(self, draft):
        client = _client(_result(is_error=True, result="overloaded"))
        suggester = StorySuggester(client_factory=lambda **_: client)

        with pytest.raises(SuggestionError, match="overloaded"):
            await suggester.suggest(draft)

    @pytest.mark.asyncio
    async def test_empty_reply(self, draft):
        client = _client(_result(result=""))
        suggester = StorySuggester(client_factory=lambda **_: client)

        with pytest.raises(SuggestionError, match="empty"):
            await suggester.suggest(draft)

    @pytest.mark.asyncio
    async def test_cli_not_found(self, draft):
        def factory(**_):
            raise CLINotFoundError("claude not found")

        suggester = StorySuggester(client_factory=factory)

        with pytest.raises(SuggestionError, match="CLI not found"):
            await suggester.suggest(draft)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, draft):
        client = _client()
        client.query = AsyncMock(side_effect=RuntimeError("boom"))
        suggester = StorySuggester(client_factory=lambda **_: client)

        with pytest.raises(SuggestionError, match="boom"):
            await suggester.suggest(draft)


def test_suggestion_error_is_a_vault_error():
    """Callers that handle VaultError also handle suggestion failures."""
    assert issubclass(SuggestionError, VaultError)
