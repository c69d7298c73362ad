"""Configuration management for pmvault."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key}={value!r}, using {default}")
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key, "").lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    return default


# API key for story suggestions (Claude)
ANTHROPIC_API_KEY = get_env("ANTHROPIC_API_KEY")

# Data directory; the vault itself lives in <data dir>/vault
PMVAULT_DATA_DIR = Path(
    get_env("PMVAULT_DATA_DIR", os.path.expanduser("~/.pmvault"))
    or os.path.expanduser("~/.pmvault")
).expanduser()

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "INFO") or "INFO"

# Story suggestions
SUGGEST_MODEL = get_env("SUGGEST_MODEL", "sonnet")
SUGGEST_FALLBACK_MODEL = get_env("SUGGEST_FALLBACK_MODEL", "haiku")
SUGGEST_MAX_TURNS = get_env_int("SUGGEST_MAX_TURNS", 1)

# API Server settings
PMVAULT_API_KEY = get_env("PMVAULT_API_KEY")
PMVAULT_HOST = get_env("PMVAULT_HOST", "127.0.0.1") or "127.0.0.1"
PMVAULT_PORT = get_env_int("PMVAULT_PORT", 8430)
PMVAULT_ALLOW_NO_AUTH = get_env_bool("PMVAULT_ALLOW_NO_AUTH", False)
PMVAULT_CORS_ORIGINS = [
    origin.strip()
    for origin in (
        get_env("PMVAULT_CORS_ORIGINS", "http://localhost:1420")
        or "http://localhost:1420"
    ).split(",")
    if origin.strip()
]


def setup_logging() -> logging.Logger:
    """Configure and return logger."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    )
    return logging.getLogger(__name__)


def validate_suggest_environment() -> tuple[bool, str]:
    """
    Validate environment variables for story suggestions.

    Returns:
        (is_valid, message) - If not valid, message explains what's missing.
    """
    if not (ANTHROPIC_API_KEY or os.environ.get("CLAUDE_CODE_OAUTH_TOKEN")):
        return (
            False,
            "Missing ANTHROPIC_API_KEY - required for story suggestions",
        )

    return True, ""
