"""Dialogue core: normalizer, response index, fuzzy matcher and state machine."""

from validus.dialogue.controller import DialogueController, InvalidTransitionError
from validus.dialogue.matcher import FuzzyMatcher, resolve
from validus.dialogue.normalizer import normalize
from validus.dialogue.response_index import (
    ResponseIndex,
    ResponseTableError,
    default_index,
    load_responses,
)
from validus.dialogue.session import Session, SessionConsumedError
from validus.dialogue.types import (
    TRANSITIONS,
    DialogueEvent,
    DialogueEventType,
    DialogueState,
    MatchConfig,
    Matched,
    MatchResult,
    NoMatch,
    NoMatchReason,
    RecognitionOutcome,
    ResponseEntry,
    SearchHit,
    SpeechOutcome,
    Utterance,
)

__all__ = [
    "DialogueController",
    "DialogueEvent",
    "DialogueEventType",
    "DialogueState",
    "FuzzyMatcher",
    "InvalidTransitionError",
    "MatchConfig",
    "MatchResult",
    "Matched",
    "NoMatch",
    "NoMatchReason",
    "RecognitionOutcome",
    "ResponseEntry",
    "ResponseIndex",
    "ResponseTableError",
    "SearchHit",
    "Session",
    "SessionConsumedError",
    "SpeechOutcome",
    "TRANSITIONS",
    "Utterance",
    "default_index",
    "load_responses",
    "normalize",
    "resolve",
]
