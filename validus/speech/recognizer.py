"""Abstract base class for speech recognizers.

The dialogue controller drives a recognizer without knowing which engine is
behind it. An engine opens one session per ``start()`` and resolves that
session exactly once with a RecognitionOutcome.
"""

from abc import ABC, abstractmethod

from validus.dialogue.session import Session
from validus.dialogue.types import RecognitionOutcome


class Recognizer(ABC):
    """Speech-to-text engine seen from the controller."""

    @abstractmethod
    async def start(self, locale: str) -> Session[RecognitionOutcome]:
        """Open a recognition session for *locale* and return it.

        Raises if the engine cannot start; the controller logs that and
        stays idle.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Close the open session, if any. Idempotent."""
