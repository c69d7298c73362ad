"""Claude SDK wrapper for story field suggestions.

The model's reply is untrusted input: it is parsed as JSON and validated
through the same payload models as user-entered story fields before it is
returned to the caller. Suggestions never write to the vault.
"""

import json
import logging
import os
import re
from collections.abc import Callable
from typing import Any

from claude_agent_sdk import (
    ClaudeAgentOptions,
    ClaudeSDKClient,
    CLIConnectionError,
    CLINotFoundError,
    ProcessError,
)
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from pmvault.core.config import SUGGEST_FALLBACK_MODEL, SUGGEST_MAX_TURNS, SUGGEST_MODEL
from pmvault.vault.errors import VaultError
from pmvault.vault.payloads import StoryDraft, StorySuggestion, validate_payload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a product manager writing user stories. Only return JSON, no "
    "markdown. Keep answers concise. Use null for fields you cannot infer."
)

SUGGESTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": ["string", "null"]},
        "asA": {"type": ["string", "null"]},
        "iWant": {"type": ["string", "null"]},
        "soThat": {"type": ["string", "null"]},
        "acceptanceCriteria": {
            "type": ["array", "null"],
            "items": {"type": "string"},
        },
    },
    "required": ["title", "asA", "iWant", "soThat", "acceptanceCriteria"],
    "additionalProperties": False,
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class SuggestionError(VaultError):
    """Raised when the suggestion service cannot produce an answer."""

    pass


def build_prompt(draft: StoryDraft) -> str:
    """Render the user prompt for a partial story."""
    return (
        "Generate missing story fields. Return JSON only with keys: title, asA, "
        "iWant, soThat, acceptanceCriteria (array of strings).\n\n"
        f"Description: {draft.description}\n"
        f"Existing title: {draft.title or ''}\n"
        f"Existing asA: {draft.as_a or ''}\n"
        f"Existing iWant: {draft.i_want or ''}\n"
        f"Existing soThat: {draft.so_that or ''}\n"
        f"Existing acceptanceCriteria: {'; '.join(draft.acceptance_criteria or [])}"
    )


def parse_suggestion(raw: Any) -> StorySuggestion:
    """
    Validate model output as a StorySuggestion.

    Args:
        raw: Structured output (dict) or reply text containing a JSON object

    Raises:
        SuggestionError: If the reply is not a JSON object
        ValidationError: If fields fail story validation
    """
    if isinstance(raw, str):
        text = raw.strip()
        match = _FENCE_RE.match(text)
        if match:
            text = match.group(1)
        try:
            raw = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise SuggestionError(f"Suggestion is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise SuggestionError(
            f"Suggestion must be a JSON object, got {type(raw).__name__}"
        )
    return validate_payload(StorySuggestion, raw)


class StorySuggester:
    """Asks Claude to fill in missing user-story fields."""

    def __init__(
        self,
        model: str | None = None,
        fallback_model: str | None = None,
        max_turns: int | None = None,
        client_factory: Callable[..., ClaudeSDKClient] = ClaudeSDKClient,
    ):
        """
        Initialize suggester.

        Args:
            model: Claude model (defaults to SUGGEST_MODEL)
            fallback_model: Model used when the primary is unavailable
            max_turns: Turn limit per request
            client_factory: SDK client constructor (replaceable in tests)
        """
        self.model = model or SUGGEST_MODEL
        self.fallback_model = fallback_model or SUGGEST_FALLBACK_MODEL
        self.max_turns = max_turns or SUGGEST_MAX_TURNS
        self._client_factory = client_factory
        logger.debug(
            f"StorySuggester initialized: model={self.model}, "
            f"fallback_model={self.fallback_model}, "
            f"ANTHROPIC_API_KEY={'set' if os.environ.get('ANTHROPIC_API_KEY') else 'not set'}"
        )

    def _build_options(self) -> ClaudeAgentOptions:
        fallback = self.fallback_model if self.fallback_model != self.model else None
        return ClaudeAgentOptions(
            system_prompt=SYSTEM_PROMPT,
            model=self.model,
            fallback_model=fallback,
            max_turns=self.max_turns,
            allowed_tools=[],
            output_format={"type": "json_schema", "schema": SUGGESTION_SCHEMA},
        )

    async def suggest(self, draft: StoryDraft) -> StorySuggestion:
        """
        Suggest values for the draft's missing fields.

        Raises:
            SuggestionError: If the SDK call fails or returns no usable reply
            ValidationError: If the suggested fields fail validation
        """
        prompt = build_prompt(draft)
        options = self._build_options()
        logger.debug(f"Suggestion query starting: model={self.model}")

        result_text = ""
        structured: Any = None
        try:
            async with self._client_factory(options=options) as client:
                await client.query(prompt)
                async for message in client.receive_response():
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if isinstance(block, TextBlock):
                                result_text += block.text
                    elif isinstance(message, ResultMessage):
                        if message.is_error:
                            raise SuggestionError(
                                f"Claude returned an error: {message.result or 'unknown'}"
                            )
                        if message.structured_output is not None:
                            structured = message.structured_output
                        elif message.result:
                            result_text = message.result
        except CLINotFoundError as e:
            raise SuggestionError(
                "Claude CLI not found. Please install claude-code."
            ) from e
        except CLIConnectionError as e:
            raise SuggestionError(f"Failed to connect to Claude CLI: {e}") from e
        except ProcessError as e:
            raise SuggestionError(
                f"Claude process failed (exit {e.exit_code}): {e}"
            ) from e
        except SuggestionError:
            raise
        except Exception as e:
            logger.debug(f"Suggestion query failed: {e}")
            raise SuggestionError(f"Error calling Claude: {e}") from e

        if structured is None and not result_text.strip():
            raise SuggestionError("Claude returned an empty suggestion")

        suggestion = parse_suggestion(structured if structured is not None else result_text)
        logger.debug(f"Suggestion received: {suggestion.model_dump(exclude_none=True)}")
        return suggestion
