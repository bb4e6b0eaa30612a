"""Immutable table of canned replies with approximate trigger lookup.

A query is scored against each trigger by aligning it with the best-fitting
substring of the trigger (approximate substring matching on
rapidfuzz Levenshtein distances):

    score = edits / len(query) + start_offset / max_edit_distance

0.0 is a perfect match; anything above the configured threshold is dropped.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from pydantic import TypeAdapter, ValidationError
from rapidfuzz.distance import Levenshtein

from validus.config import MATCH_DISTANCE, MATCH_THRESHOLD, STATIC_RESPONSES, get_responses_file
from validus.dialogue.types import MatchConfig, ResponseEntry, SearchHit

logger = logging.getLogger(__name__)

_TABLE_ADAPTER = TypeAdapter(dict[str, str])


class ResponseTableError(ValueError):
    """A response table file could not be read or is not a trigger -> reply object."""


class ResponseIndex:
    """Ordered, read-only collection of ResponseEntry with fuzzy search."""

    def __init__(
        self,
        entries: Iterable[ResponseEntry] = (),
        config: MatchConfig | None = None,
    ) -> None:
        self._entries: tuple[ResponseEntry, ...] = tuple(entries)
        self._config = config or MatchConfig()

    @classmethod
    def from_mapping(
        cls, responses: Mapping[str, str], config: MatchConfig | None = None
    ) -> "ResponseIndex":
        """Build an index from trigger -> reply, keeping the mapping's order."""
        return cls(
            (ResponseEntry(trigger=trigger, reply=reply) for trigger, reply in responses.items()),
            config,
        )

    @property
    def entries(self) -> tuple[ResponseEntry, ...]:
        return self._entries

    @property
    def config(self) -> MatchConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ResponseEntry]:
        return iter(self._entries)

    def search(self, query: str) -> list[SearchHit]:
        """Return entries whose trigger is close to *query*, best first.

        Equal scores keep registration order. An empty query or an empty
        index gives an empty list.
        """
        if not query or not self._entries:
            return []

        threshold = self._config.similarity_threshold
        hits: list[tuple[float, int, ResponseEntry]] = []
        for position, entry in enumerate(self._entries):
            score = min(
                _approximate_score(query, getattr(entry, field), self._config.max_edit_distance)
                for field in self._config.match_fields
            )
            if score <= threshold:
                hits.append((score, position, entry))

        hits.sort(key=lambda hit: (hit[0], hit[1]))
        return [SearchHit(entry=entry, score=score) for score, _, entry in hits]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _approximate_score(pattern: str, text: str, distance: int) -> float:
    """Score *pattern* against its best-aligned substring of *text*.

    Every window ``text[start:end]`` is a candidate alignment; its score is
    the Levenshtein distance to *pattern* scaled by ``len(pattern)``, plus a
    penalty for starting ``start`` characters into the trigger.
    """
    if pattern == text:
        return 0.0
    m = len(pattern)
    n = len(text)
    if m == 0:
        return 1.0

    best_score = 1.0
    for start in range(n + 1):
        proximity = _proximity(start, distance)
        if proximity >= best_score:
            continue
        # Edits that could still beat the current best from this start.
        budget = int((best_score - proximity) * m)
        for end in range(start, n + 1):
            edits = Levenshtein.distance(pattern, text[start:end], score_cutoff=budget)
            if edits > budget:
                continue
            score = edits / m + proximity
            if score < best_score:
                best_score = score
                budget = int((best_score - proximity) * m)
    return best_score


def _proximity(offset: int, distance: int) -> float:
    if distance == 0:
        return 0.0 if offset == 0 else 1.0
    return offset / distance


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def load_responses(path: Path) -> dict[str, str]:
    """Read a JSON object of trigger -> reply from *path*."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise ResponseTableError(f"cannot read response table {path}: {exc}") from exc
    try:
        return _TABLE_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise ResponseTableError(f"invalid response table {path}: {exc}") from exc


def default_index(
    responses: Mapping[str, str] | None = None,
    config: MatchConfig | None = None,
) -> ResponseIndex:
    """Build the process-wide index from config.

    Uses *responses* if given, else the file named by VALIDUS_RESPONSES_FILE,
    else the built-in table.
    """
    if responses is None:
        path = get_responses_file()
        if path is not None:
            responses = load_responses(path)
            logger.info("Loaded %d responses from %s", len(responses), path)
        else:
            responses = STATIC_RESPONSES
    if config is None:
        config = MatchConfig(similarity_threshold=MATCH_THRESHOLD, max_edit_distance=MATCH_DISTANCE)
    return ResponseIndex.from_mapping(responses, config)
