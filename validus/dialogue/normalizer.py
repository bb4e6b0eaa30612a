"""Turns raw recognizer text into a query the response index can match."""

import re

from validus.config import MAX_QUERY_LENGTH

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9 ]")


def normalize(raw: str | None, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Lower-case *raw*, keep only ``[a-z0-9 ]`` and cap it at *max_length*.

    Runs of whitespace collapse to one space and the result is trimmed, so
    input made only of punctuation or whitespace comes back as ``""``.
    Never raises.
    """
    if not raw:
        return ""
    text = _WHITESPACE_RE.sub(" ", str(raw).lower())
    text = _DISALLOWED_RE.sub("", text).strip()
    # Removing punctuation can leave doubled spaces ("a - b").
    text = _WHITESPACE_RE.sub(" ", text)
    return text[:max_length].rstrip()
