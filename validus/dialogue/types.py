"""Pydantic models and enums for the dialogue subsystem."""

import time
from enum import Enum
from typing import NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DialogueState(str, Enum):
    """Phase of the voice interaction. Exactly one is current at a time."""

    IDLE = "idle"
    LISTENING = "listening"
    MATCHING = "matching"
    SPEAKING = "speaking"


# Every legal edge of the state machine. Anything not listed is rejected.
TRANSITIONS: dict[DialogueState, frozenset[DialogueState]] = {
    DialogueState.IDLE: frozenset({DialogueState.LISTENING}),
    DialogueState.LISTENING: frozenset({DialogueState.MATCHING, DialogueState.IDLE}),
    DialogueState.MATCHING: frozenset({DialogueState.SPEAKING, DialogueState.IDLE}),
    DialogueState.SPEAKING: frozenset({DialogueState.IDLE}),
}


def can_transition(source: DialogueState, target: DialogueState) -> bool:
    """Return True if *source* -> *target* is an edge of the state machine."""
    return target in TRANSITIONS[source]


# ---------------------------------------------------------------------------
# Response table
# ---------------------------------------------------------------------------


class ResponseEntry(BaseModel):
    """A trigger phrase and the canned reply it maps to."""

    model_config = ConfigDict(frozen=True)

    trigger: str
    reply: str


class MatchConfig(BaseModel):
    """Tuning for ResponseIndex.search.

    ``similarity_threshold`` is the highest score a hit may have (0 = exact
    only, 1 = anything). ``max_edit_distance`` is how far into a trigger a
    match may start before its score is fully penalized.
    """

    model_config = ConfigDict(frozen=True)

    similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    max_edit_distance: int = Field(default=50, ge=0)
    match_fields: tuple[str, ...] = ("trigger",)

    @field_validator("match_fields")
    @classmethod
    def _only_known_fields(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("match_fields must name at least one field")
        unknown = [name for name in value if name != "trigger"]
        if unknown:
            raise ValueError(f"unsupported match field(s): {', '.join(unknown)}")
        return value


class SearchHit(NamedTuple):
    """One ranked search result. Lower score is better."""

    entry: ResponseEntry
    score: float


# ---------------------------------------------------------------------------
# Match results
# ---------------------------------------------------------------------------


class NoMatchReason(str, Enum):
    """Why a query produced no reply from the index."""

    EMPTY_QUERY = "empty_query"
    NO_CONFIDENT_MATCH = "no_confident_match"


class Matched(BaseModel):
    """The index had a confident answer for the query."""

    model_config = ConfigDict(frozen=True)

    reply: str
    score: float
    trigger: str


class NoMatch(BaseModel):
    """The index had nothing to say, or there was nothing to search for."""

    model_config = ConfigDict(frozen=True)

    reason: NoMatchReason


MatchResult = Union[Matched, NoMatch]


# ---------------------------------------------------------------------------
# Collaborator outcomes
# ---------------------------------------------------------------------------


class RecognitionOutcome(BaseModel):
    """Terminal event of a recognition session: either text or an error."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "RecognitionOutcome":
        if (self.text is None) == (self.error is None):
            raise ValueError("exactly one of text or error must be set")
        return self


class SpeechOutcome(str, Enum):
    """How a synthesis session ended."""

    DONE = "done"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Per-turn and published values
# ---------------------------------------------------------------------------


class Utterance(BaseModel):
    """One recognized speech event and what the controller made of it."""

    raw_text: str = ""
    query: str = ""
    match: Matched | NoMatch | None = None
    error: str | None = None
    reply: str | None = None

    @property
    def score(self) -> float | None:
        if isinstance(self.match, Matched):
            return self.match.score
        return None


class DialogueEventType(str, Enum):
    """Kinds of event the controller publishes."""

    STATE_CHANGED = "state_changed"
    REPLY = "reply"


class DialogueEvent(BaseModel):
    """A single controller event.

    ``state_changed`` carries ``previous_state`` and ``state``;
    ``reply`` carries the ``text`` about to be spoken.
    """

    type: DialogueEventType
    state: DialogueState
    previous_state: DialogueState | None = None
    text: str | None = None
    timestamp: float = Field(default_factory=time.time)
