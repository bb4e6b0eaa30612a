"""Abstract base class for speech synthesizers."""

from abc import ABC, abstractmethod

from validus.dialogue.session import Session
from validus.dialogue.types import SpeechOutcome


class Synthesizer(ABC):
    """Text-to-speech engine seen from the controller.

    Each ``speak()`` returns a session resolved exactly once, with DONE when
    playback finishes or CANCELLED when ``stop()`` cuts it short.
    """

    @abstractmethod
    def speak(self, text: str) -> Session[SpeechOutcome]:
        """Begin speaking *text* and return its session. Does not block."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop any in-flight speech. Idempotent."""
