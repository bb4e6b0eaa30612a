"""Dialogue state machine: listen, match, speak, back to idle.

The DialogueController owns the single DialogueState and is the only code
that changes it. It opens recognizer sessions, runs the normalizer and
matcher on whatever comes back, and hands the reply to the synthesizer.
Recognizer and synthesizer outcomes arrive as Session values, each awaited
by one watcher task owned by the controller.

Every entry point checks its guard and moves the state before its first
``await``, so two coroutines interleaving on the event loop can never both
pass the same guard. Collaborator failures are logged and push the state
back toward IDLE; nothing raises out of a public method.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from validus.config import (
    EMPTY_QUERY_REPLY,
    LOCALE,
    MAX_LISTEN_SECONDS,
    NO_MATCH_REPLY,
    RECOGNITION_ERROR_REPLY,
)
from validus.dialogue.matcher import FuzzyMatcher
from validus.dialogue.normalizer import normalize
from validus.dialogue.response_index import ResponseIndex
from validus.dialogue.session import Session
from validus.dialogue.types import (
    DialogueEvent,
    DialogueEventType,
    DialogueState,
    Matched,
    MatchResult,
    NoMatch,
    NoMatchReason,
    RecognitionOutcome,
    SpeechOutcome,
    Utterance,
    can_transition,
)
from validus.events.event_bus import EventBus

if TYPE_CHECKING:
    from validus.speech.recognizer import Recognizer
    from validus.speech.synthesizer import Synthesizer

logger = logging.getLogger(__name__)

LISTEN_TIMEOUT = "timeout"


class InvalidTransitionError(RuntimeError):
    """Raised by the transition function for an edge not in TRANSITIONS."""

    def __init__(self, source: DialogueState, target: DialogueState) -> None:
        super().__init__(f"illegal transition {source.value} -> {target.value}")
        self.source = source
        self.target = target


class DialogueController:
    """Sequences one listen -> match -> speak turn at a time."""

    def __init__(
        self,
        index: ResponseIndex,
        recognizer: Recognizer,
        synthesizer: Synthesizer,
        *,
        matcher: FuzzyMatcher | None = None,
        event_bus: EventBus[DialogueEvent] | None = None,
        locale: str = LOCALE,
        max_listen_seconds: float = MAX_LISTEN_SECONDS,
    ) -> None:
        self._index = index
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._matcher = matcher or FuzzyMatcher()
        self._event_bus = event_bus
        self._locale = locale
        self._max_listen_seconds = max_listen_seconds

        self._state: DialogueState = DialogueState.IDLE
        self._utterance: Utterance | None = None
        self._turn: int = 0
        self._closed: bool = False

        self._recognition: Session[RecognitionOutcome] | None = None
        self._speech: Session[SpeechOutcome] | None = None
        self._listen_task: asyncio.Task | None = None
        self._speech_task: asyncio.Task | None = None

        self._idle = asyncio.Event()
        self._idle.set()

    async def __aenter__(self) -> "DialogueController":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> DialogueState:
        return self._state

    @property
    def utterance(self) -> Utterance | None:
        """The current turn's utterance; cleared by the next activate()."""
        return self._utterance

    @property
    def index(self) -> ResponseIndex:
        return self._index

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, target: DialogueState) -> None:
        """Move to *target*, or raise InvalidTransitionError if the edge is illegal."""
        source = self._state
        if not can_transition(source, target):
            raise InvalidTransitionError(source, target)

        self._state = target
        if target == DialogueState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()

        logger.info("Dialogue state %s -> %s", source.value, target.value)
        self._publish(
            DialogueEvent(
                type=DialogueEventType.STATE_CHANGED,
                state=target,
                previous_state=source,
            )
        )

    def _force_idle(self) -> None:
        """Error edge: any state back to IDLE."""
        if self._state != DialogueState.IDLE:
            self._transition(DialogueState.IDLE)

    def _publish(self, event: DialogueEvent) -> None:
        if self._event_bus is None:
            return
        try:
            self._event_bus.publish(event)
        except Exception:
            logger.warning("Failed to publish %s", event.type.value, exc_info=True)

    # ------------------------------------------------------------------
    # Listening
    # ------------------------------------------------------------------

    async def activate(self) -> bool:
        """Open a recognition session. Only valid from IDLE.

        Returns True if the recognizer is now listening.
        """
        if self._closed:
            logger.debug("activate() ignored, controller closed")
            return False
        if self._state != DialogueState.IDLE:
            logger.debug("activate() ignored in state %s", self._state.value)
            return False

        self._turn += 1
        turn = self._turn
        self._utterance = None
        self._transition(DialogueState.LISTENING)

        try:
            session = await self._recognizer.start(self._locale)
        except Exception:
            logger.warning("Recognizer failed to start", exc_info=True)
            if turn == self._turn and self._state == DialogueState.LISTENING:
                self._transition(DialogueState.IDLE)
            return False

        if turn != self._turn or self._state != DialogueState.LISTENING:
            # deactivate(), close() or a result arrived while start() was pending.
            logger.debug("Recognition session opened after its turn ended, stopping it")
            if turn == self._turn:
                await self._stop_recognizer()
            return False

        self._recognition = session
        self._listen_task = asyncio.create_task(self._watch_recognition(session))
        return True

    async def deactivate(self) -> bool:
        """Stop listening and return to IDLE. No-op unless LISTENING."""
        if self._state != DialogueState.LISTENING:
            logger.debug("deactivate() ignored in state %s", self._state.value)
            return False

        self._recognition = None
        self._drop_listen_task()
        self._transition(DialogueState.IDLE)
        await self._stop_recognizer()
        return True

    async def _watch_recognition(self, session: Session[RecognitionOutcome]) -> None:
        try:
            if self._max_listen_seconds > 0:
                outcome = await asyncio.wait_for(session.wait(), self._max_listen_seconds)
            else:
                outcome = await session.wait()
        except asyncio.TimeoutError:
            logger.warning(
                "No recognition result after %.1fs, giving up", self._max_listen_seconds
            )
            outcome = RecognitionOutcome(error=LISTEN_TIMEOUT)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Recognition session failed", exc_info=True)
            outcome = RecognitionOutcome(error="recognizer failure")

        if session is not self._recognition:
            return
        self._listen_task = None

        if outcome.error is not None:
            await self.on_recognition_error(outcome.error)
        else:
            await self.on_recognition_result(outcome.text or "")

    def _drop_listen_task(self) -> None:
        task = self._listen_task
        self._listen_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    async def on_recognition_result(self, raw_text: str) -> Utterance | None:
        """Handle recognized text: normalize, match, speak the reply.

        Only valid while LISTENING; returns the resulting Utterance, or None
        if the call was ignored.
        """
        if self._state != DialogueState.LISTENING:
            logger.debug("Recognition result ignored in state %s", self._state.value)
            return None

        self._transition(DialogueState.MATCHING)
        self._recognition = None
        self._drop_listen_task()

        logger.debug("Raw recognition: %r", raw_text)
        query = normalize(raw_text)
        result = self._resolve(query)
        reply = self._reply_for(result)
        utterance = Utterance(raw_text=raw_text or "", query=query, match=result, reply=reply)
        self._utterance = utterance

        if isinstance(result, Matched):
            logger.info(
                "Matched %r -> trigger %r (score=%.3f)", query, result.trigger, result.score
            )
        else:
            logger.info("No match for %r (%s)", query, result.reason.value)

        await self.speak(reply)
        return utterance

    async def on_recognition_error(self, reason: str) -> Utterance | None:
        """Handle a failed recognition: apologize and close the recognizer."""
        if self._state != DialogueState.LISTENING:
            logger.debug("Recognition error ignored in state %s", self._state.value)
            return None

        self._transition(DialogueState.MATCHING)
        self._recognition = None
        self._drop_listen_task()

        logger.warning("Speech recognition error: %s", reason)
        utterance = Utterance(error=str(reason), reply=RECOGNITION_ERROR_REPLY)
        self._utterance = utterance

        await asyncio.gather(self.speak(RECOGNITION_ERROR_REPLY), self._stop_recognizer())
        return utterance

    def _resolve(self, query: str) -> MatchResult:
        try:
            return self._matcher.resolve(query, self._index)
        except Exception:
            logger.warning("Matcher failed for %r", query, exc_info=True)
            return NoMatch(reason=NoMatchReason.NO_CONFIDENT_MATCH)

    @staticmethod
    def _reply_for(result: MatchResult) -> str:
        if isinstance(result, Matched):
            return result.reply
        if result.reason == NoMatchReason.EMPTY_QUERY:
            return EMPTY_QUERY_REPLY
        return NO_MATCH_REPLY

    # ------------------------------------------------------------------
    # Speaking
    # ------------------------------------------------------------------

    async def speak(self, reply: str) -> bool:
        """Speak *reply*. Only valid from MATCHING.

        A call made while already SPEAKING is dropped, not queued. Returns
        True if synthesis started.
        """
        if self._state == DialogueState.SPEAKING:
            logger.debug("speak() dropped, already speaking")
            return False
        if self._state != DialogueState.MATCHING:
            logger.debug("speak() ignored in state %s", self._state.value)
            return False

        turn = self._turn
        self._transition(DialogueState.SPEAKING)
        self._publish(
            DialogueEvent(type=DialogueEventType.REPLY, state=self._state, text=reply)
        )

        # Stop before start: nothing earlier may still be playing.
        self._speech = None
        self._drop_speech_task()
        await self._stop_synthesizer()
        if self._closed or turn != self._turn or self._state != DialogueState.SPEAKING:
            logger.debug("speak() abandoned, controller closed or turn ended")
            return False

        try:
            session = self._synthesizer.speak(reply)
        except Exception:
            logger.warning("Synthesizer failed to speak", exc_info=True)
            self._force_idle()
            return False

        self._speech = session
        self._speech_task = asyncio.create_task(self._watch_speech(session))
        logger.info("Speaking: %s", reply[:80])
        return True

    async def _watch_speech(self, session: Session[SpeechOutcome]) -> None:
        try:
            outcome = await session.wait()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Speech session failed", exc_info=True)
            outcome = SpeechOutcome.CANCELLED

        if session is not self._speech:
            return
        self._speech = None
        self._speech_task = None

        logger.debug("Speech finished (%s)", outcome.value)
        if self._state == DialogueState.SPEAKING:
            self._transition(DialogueState.IDLE)

    def _drop_speech_task(self) -> None:
        task = self._speech_task
        self._speech_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel everything in flight and return to IDLE. Safe from any state, any number of times."""
        self._closed = True
        self._turn += 1
        self._recognition = None
        self._speech = None

        tasks = [
            task
            for task in (self._listen_task, self._speech_task)
            if task is not None and task is not asyncio.current_task()
        ]
        self._listen_task = None
        self._speech_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._stop_recognizer()
        await self._stop_synthesizer()
        self._force_idle()
        logger.info("Dialogue controller closed")

    async def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Wait for the controller to be IDLE. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _stop_recognizer(self) -> None:
        try:
            await self._recognizer.stop()
        except Exception:
            logger.warning("Recognizer failed to stop", exc_info=True)

    async def _stop_synthesizer(self) -> None:
        try:
            await self._synthesizer.stop()
        except Exception:
            logger.warning("Synthesizer failed to stop", exc_info=True)
