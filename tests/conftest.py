"""Shared fixtures for Validus tests."""

import asyncio

import pytest

from validus.dialogue.controller import DialogueController
from validus.dialogue.response_index import ResponseIndex
from validus.dialogue.session import Session
from validus.dialogue.types import DialogueEvent, RecognitionOutcome, SpeechOutcome
from validus.events.event_bus import EventBus
from validus.speech.recognizer import Recognizer
from validus.speech.synthesizer import Synthesizer


class FakeRecognizer(Recognizer):
    """Recognizer whose sessions the test resolves by hand.

    Set ``start_error`` / ``stop_error`` to make those calls raise, or
    ``gate`` to an asyncio.Event to hold ``start()`` open until it is set.
    """

    def __init__(self) -> None:
        self.locales: list[str] = []
        self.stop_calls: int = 0
        self.session: Session[RecognitionOutcome] | None = None
        self.start_error: Exception | None = None
        self.stop_error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def start(self, locale: str) -> Session[RecognitionOutcome]:
        self.locales.append(locale)
        if self.gate is not None:
            await self.gate.wait()
        if self.start_error is not None:
            raise self.start_error
        self.session = Session("recognition")
        return self.session

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error

    def emit_result(self, text: str) -> bool:
        return self.session.resolve(RecognitionOutcome(text=text))

    def emit_error(self, reason: str) -> bool:
        return self.session.resolve(RecognitionOutcome(error=reason))


class FakeSynthesizer(Synthesizer):
    """Synthesizer that records what it was asked to say."""

    def __init__(self) -> None:
        self.spoken: list[str] = []
        self.sessions: list[Session[SpeechOutcome]] = []
        self.stop_calls: int = 0
        self.speak_error: Exception | None = None
        self.stop_error: Exception | None = None

    def speak(self, text: str) -> Session[SpeechOutcome]:
        if self.speak_error is not None:
            raise self.speak_error
        self.spoken.append(text)
        session: Session[SpeechOutcome] = Session("speech")
        self.sessions.append(session)
        return session

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        if self.sessions:
            self.sessions[-1].resolve(SpeechOutcome.CANCELLED)

    def finish(self) -> bool:
        return self.sessions[-1].resolve(SpeechOutcome.DONE)


@pytest.fixture
def responses() -> dict[str, str]:
    return {
        "hello": "Hi there!",
        "how are you": "Doing great.",
        "what is your name": "I'm Validus Echo.",
    }


@pytest.fixture
def index(responses: dict[str, str]) -> ResponseIndex:
    return ResponseIndex.from_mapping(responses)


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def event_bus() -> EventBus[DialogueEvent]:
    """Return a fresh EventBus with a small queue for testing."""
    return EventBus(maxsize=64)


@pytest.fixture
async def controller(index, recognizer, synthesizer, event_bus):
    """A DialogueController wired to fakes; closed after the test."""
    ctrl = DialogueController(
        index,
        recognizer,
        synthesizer,
        event_bus=event_bus,
        locale="en-US",
        max_listen_seconds=0.0,
    )
    yield ctrl
    await ctrl.close()


@pytest.fixture
def settle():
    """Return a coroutine that lets pending watcher tasks run."""

    async def _settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle
