"""Terminal stand-ins for the speech engines, used by ``validus chat``.

ConsoleRecognizer "hears" one line typed on stdin per session;
ConsoleSynthesizer "speaks" by echoing the reply and, optionally, holding
the session open for as long as reading it aloud would take.
"""

import asyncio
import logging
import sys
import threading
from collections.abc import Callable

import click

from validus.config import SPEECH_RATE
from validus.dialogue.session import Session
from validus.dialogue.types import RecognitionOutcome, SpeechOutcome
from validus.speech.recognizer import Recognizer
from validus.speech.synthesizer import Synthesizer

logger = logging.getLogger(__name__)

STOPPED = "stopped"


def _read_stdin_line() -> str:
    return sys.stdin.readline()


class ConsoleRecognizer(Recognizer):
    """Recognizes whatever the user types, one line per session.

    The blocking read runs on a daemon thread so an abandoned read never
    holds up interpreter exit. At most one read is in flight: a line that
    arrives after its session was stopped goes to the next session. End of
    input does not resolve the session; it sets ``at_eof`` and the owner is
    expected to deactivate.
    """

    def __init__(
        self,
        read_line: Callable[[], str] | None = None,
        prompt: str = "You: ",
    ) -> None:
        self._read_line = read_line or _read_stdin_line
        self._prompt = prompt
        self._session: Session[RecognitionOutcome] | None = None
        self._task: asyncio.Task | None = None
        self._eof = asyncio.Event()
        self._pending_read: asyncio.Future[str] | None = None

    @property
    def at_eof(self) -> bool:
        return self._eof.is_set()

    async def wait_for_eof(self) -> None:
        await self._eof.wait()

    async def start(self, locale: str) -> Session[RecognitionOutcome]:
        await self.stop()
        if self.at_eof:
            raise EOFError("console input is closed")
        logger.debug("Console recognition started (locale=%s)", locale)
        session: Session[RecognitionOutcome] = Session("recognition")
        self._session = session
        self._task = asyncio.create_task(self._listen(session))
        return session

    async def stop(self) -> None:
        session, task = self._session, self._task
        self._session = None
        self._task = None
        if session is not None:
            session.resolve(RecognitionOutcome(error=STOPPED))
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _listen(self, session: Session[RecognitionOutcome]) -> None:
        if self._prompt:
            click.echo(self._prompt, nl=False)
        if self._pending_read is None:
            self._pending_read = self._read_in_thread()
        read = self._pending_read
        try:
            # Shielded: a stopped session leaves the read in flight for the next one.
            line = await asyncio.shield(read)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._pending_read = None
            logger.warning("Console read failed", exc_info=True)
            session.resolve(RecognitionOutcome(error=str(exc) or type(exc).__name__))
            return
        self._pending_read = None

        if not line:
            logger.debug("Console input closed")
            self._eof.set()
            return
        session.resolve(RecognitionOutcome(text=line.rstrip("\r\n")))

    def _read_in_thread(self) -> asyncio.Future[str]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def deliver(line: str | None, exc: BaseException | None) -> None:
            if future.done():
                return
            if exc is not None:
                future.set_exception(exc)
            else:
                future.set_result(line or "")

        def reader() -> None:
            try:
                line, exc = self._read_line(), None
            except Exception as err:
                line, exc = None, err
            try:
                loop.call_soon_threadsafe(deliver, line, exc)
            except RuntimeError:
                pass  # loop already closed

        threading.Thread(target=reader, name="console-recognizer", daemon=True).start()
        return future


class ConsoleSynthesizer(Synthesizer):
    """Speaks by printing ``<name>: <text>``.

    With *words_per_second* > 0 the session stays open for the time the
    reply would take to say, so a second reply can cut it short.
    """

    def __init__(
        self,
        name: str = "Validus",
        words_per_second: float = SPEECH_RATE,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self._name = name
        self._words_per_second = words_per_second
        self._echo = echo or click.echo
        self._session: Session[SpeechOutcome] | None = None
        self._task: asyncio.Task | None = None

    def speak(self, text: str) -> Session[SpeechOutcome]:
        # Last request wins: cut off whatever is still playing.
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._session is not None:
            self._session.resolve(SpeechOutcome.CANCELLED)

        session: Session[SpeechOutcome] = Session("speech")
        self._session = session
        self._task = asyncio.create_task(self._play(session, text))
        return session

    async def stop(self) -> None:
        session, task = self._session, self._task
        self._session = None
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if session is not None:
            session.resolve(SpeechOutcome.CANCELLED)

    async def _play(self, session: Session[SpeechOutcome], text: str) -> None:
        self._echo(f"{self._name}: {text}")
        if self._words_per_second > 0:
            await asyncio.sleep(len(text.split()) / self._words_per_second)
        session.resolve(SpeechOutcome.DONE)
        if self._session is session:
            self._session = None
            self._task = None
