"""Resolves a normalized query to a reply from the response index."""

from __future__ import annotations

import logging

from validus.dialogue.response_index import ResponseIndex
from validus.dialogue.types import Matched, MatchResult, NoMatch, NoMatchReason

logger = logging.getLogger(__name__)


class FuzzyMatcher:
    """Maps a normalized query to the best reply in a ResponseIndex.

    Resolution order (first applicable wins):
    1. Empty query: NoMatch(EMPTY_QUERY), the index is not consulted
    2. Top hit of ``index.search(query)``: Matched
    3. Nothing within threshold: NoMatch(NO_CONFIDENT_MATCH)

    Holds no state, so the same query against the same index always
    resolves the same way.
    """

    def resolve(self, query: str, index: ResponseIndex) -> MatchResult:
        if not query:
            return NoMatch(reason=NoMatchReason.EMPTY_QUERY)

        hits = index.search(query)
        logger.debug("Search for %r returned %d hit(s)", query, len(hits))
        if not hits:
            return NoMatch(reason=NoMatchReason.NO_CONFIDENT_MATCH)

        best = hits[0]
        return Matched(reply=best.entry.reply, score=best.score, trigger=best.entry.trigger)


def resolve(query: str, index: ResponseIndex) -> MatchResult:
    """Module-level shortcut for ``FuzzyMatcher().resolve``."""
    return FuzzyMatcher().resolve(query, index)
