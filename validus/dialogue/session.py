"""Single-fire completion value for one recognizer or synthesizer session.

A collaborator hands the controller a Session when it opens a session and
resolves it once with the terminal outcome. Later resolutions are ignored,
and only one consumer may wait on it, so the "exactly one terminal event per
session" rule lives in the type rather than in callback bookkeeping.
"""

import asyncio
import itertools
import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ids = itertools.count(1)


class SessionConsumedError(RuntimeError):
    """Raised when a second consumer tries to wait on the same Session."""


class Session(Generic[T]):
    """An outcome that arrives later, exactly once, for exactly one waiter."""

    def __init__(self, kind: str = "session") -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._consumed: bool = False
        self.kind = kind
        self.id = next(_ids)

    def __repr__(self) -> str:
        status = "done" if self.done else "open"
        return f"<Session {self.kind}#{self.id} {status}>"

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, outcome: T) -> bool:
        """Deliver the terminal outcome. Returns False if one was already delivered."""
        if self._future.done():
            logger.debug("Ignoring extra outcome for %r: %r", self, outcome)
            return False
        self._future.set_result(outcome)
        return True

    def result(self) -> T:
        """Return the outcome of a resolved session (raises if still open)."""
        return self._future.result()

    async def wait(self) -> T:
        """Wait for the outcome. May be called once per session.

        Cancelling the waiter does not cancel the session itself, so a
        collaborator that resolves late still finds it open and is ignored
        cleanly.
        """
        if self._consumed:
            raise SessionConsumedError(f"{self!r} already has a consumer")
        self._consumed = True
        return await asyncio.shield(self._future)
