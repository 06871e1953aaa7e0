"""Backend dispatchers that turn submitted input into session output.

The real assistant backend is not wired in yet; ``echo_responder`` stands in
for it. Dispatchers decide *where* the responder runs:

- ``InlineDispatcher`` runs it synchronously on the caller's thread.
- ``ThreadedDispatcher`` runs it on a worker pool and reports back through a
  completion callback, which the TUI turns into a message for its event loop.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Protocol

from .session import PROCESSING_NOTICE, Session, SessionStatus, canned_response

logger = logging.getLogger(__name__)

# (session_id, text) -> output lines. May raise to signal a backend failure.
Responder = Callable[[str, str], list[str]]


def echo_responder(session_id: str, text: str) -> list[str]:
    """Simulated backend: echo the input back as a canned reply."""
    return [canned_response(text)]


@dataclass
class BackendResult:
    """Outcome of one submission, applied to the session on the event loop."""

    session_id: str
    lines: list[str] = field(default_factory=list)
    status: SessionStatus | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def apply_result(session: Session, result: BackendResult) -> None:
    """Write a backend result into its session's transcript and status."""
    if result.failed:
        session.set_status(SessionStatus.ERROR)
        session.append_output(f"Error: {result.error}")
        return
    session.append_lines(result.lines)
    if result.status is not None:
        session.set_status(result.status)


class Dispatcher(Protocol):
    def submit(self, session: Session, text: str) -> None: ...

    def cancel(self, session_id: str) -> bool: ...

    def shutdown(self) -> None: ...


class InlineDispatcher:
    """Runs submissions synchronously via ``Session.submit``."""

    def submit(self, session: Session, text: str) -> None:
        session.submit(text)

    def cancel(self, session_id: str) -> bool:
        return False

    def shutdown(self) -> None:
        pass


class ThreadedDispatcher:
    """Runs the responder on a thread pool and reports results via callback.

    The callback is invoked on the worker thread; it must only hand the
    result over to the event loop (e.g. ``App.post_message``), never touch
    UI state directly.
    """

    def __init__(
        self,
        on_complete: Callable[[BackendResult], None],
        responder: Responder = echo_responder,
        response_delay: float = 0.0,
        max_workers: int = 2,
    ) -> None:
        self._on_complete = on_complete
        self._responder = responder
        self._response_delay = response_delay
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        # session_id -> {ticket: future}; a run whose ticket is gone was cancelled
        self._pending: dict[str, dict[object, Future]] = {}
        self._lock = threading.Lock()

    def submit(self, session: Session, text: str) -> None:
        """Append the processing notice now and queue the responder call."""
        session.append_output(PROCESSING_NOTICE)
        ticket = object()
        with self._lock:
            future = self._executor.submit(self._run, session.id, ticket, text)
            self._pending.setdefault(session.id, {})[ticket] = future

    def cancel(self, session_id: str) -> bool:
        """Cancel pending work for a session and drop any late results.

        Returns True if there was pending work.
        """
        with self._lock:
            futures = list(self._pending.pop(session_id, {}).values())
        for future in futures:
            future.cancel()
        if futures:
            logger.debug(f"Cancelled {len(futures)} submission(s) for {session_id}")
        return bool(futures)

    def shutdown(self) -> None:
        """Shutdown the executor, cancelling pending tasks."""
        with self._lock:
            self._pending.clear()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def pending_count(self, session_id: str | None = None) -> int:
        """Number of unfinished submissions for one session, or for all."""
        with self._lock:
            if session_id is None:
                return sum(len(tickets) for tickets in self._pending.values())
            return len(self._pending.get(session_id, {}))

    def _finish(self, session_id: str, ticket: object) -> bool:
        """Retire a ticket; False if the submission was cancelled meanwhile."""
        with self._lock:
            tickets = self._pending.get(session_id)
            if tickets is None or ticket not in tickets:
                return False
            del tickets[ticket]
            if not tickets:
                del self._pending[session_id]
            return True

    def _run(self, session_id: str, ticket: object, text: str) -> None:
        try:
            if self._response_delay > 0:
                time.sleep(self._response_delay)
            lines = self._responder(session_id, text)
            result = BackendResult(session_id=session_id, lines=list(lines))
        except Exception as e:
            logger.warning(f"Backend error for session {session_id}: {e}")
            result = BackendResult(session_id=session_id, error=f"{type(e).__name__}: {e}")

        if not self._finish(session_id, ticket):
            logger.debug(f"Dropping result for cancelled session {session_id}")
            return
        self._on_complete(result)
