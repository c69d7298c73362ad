"""External service providers for pmvault."""

from pmvault.providers.llm import StorySuggester, SuggestionError

__all__ = [
    "StorySuggester",
    "SuggestionError",
]
