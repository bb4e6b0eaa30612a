"""Configuration constants and helpers for Validus."""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    """Return *name* from the environment as a float, or *default* if unset or invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    """Return *name* from the environment as an int, or *default* if unset or invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Recognition ---

LOCALE: str = os.environ.get("VALIDUS_LOCALE", "en-US")

# Seconds a recognition session may stay open before it is treated as an
# error. 0 = no watchdog.
MAX_LISTEN_SECONDS: float = _env_float("VALIDUS_MAX_LISTEN_SECONDS", 0.0)


# --- Matching ---

MAX_QUERY_LENGTH: int = _env_int("VALIDUS_MAX_QUERY_LENGTH", 100)
MATCH_THRESHOLD: float = _env_float("VALIDUS_MATCH_THRESHOLD", 0.3)  # lower = stricter
MATCH_DISTANCE: int = _env_int("VALIDUS_MATCH_DISTANCE", 50)


# --- Response table ---

STATIC_RESPONSES: dict[str, str] = {
    "hello": "Hi there! How can I assist you?",
    "how are you": "I'm just a voice assistant, but I'm doing great! How can I help you today?",
    "what is your name": "I'm Validus Echo, your virtual assistant.",
    "tell me a joke": "Why don't scientists trust atoms? Because they make up everything!",
}


def get_responses_file() -> Path | None:
    """Return the custom response table path from VALIDUS_RESPONSES_FILE, or None."""
    raw = os.environ.get("VALIDUS_RESPONSES_FILE", "").strip()
    if not raw:
        return None
    return Path(raw).expanduser()


# --- Fixed replies ---

EMPTY_QUERY_REPLY: str = "I didn't hear anything. Can you repeat that?"
NO_MATCH_REPLY: str = "Sorry, I didn't catch that."
RECOGNITION_ERROR_REPLY: str = "Sorry, I couldn't understand that."


# --- Console speech ---

SPEECH_RATE: float = _env_float("VALIDUS_SPEECH_RATE", 0.0)  # words/sec, 0 = instant
