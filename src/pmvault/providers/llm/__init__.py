"""LLM provider - Claude SDK wrapper for story suggestions."""

from pmvault.providers.llm.claude import (
    StorySuggester,
    SuggestionError,
    build_prompt,
    parse_suggestion,
)

__all__ = [
    "StorySuggester",
    "SuggestionError",
    "build_prompt",
    "parse_suggestion",
]
