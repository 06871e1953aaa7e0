"""Sessions and the thread-safe session manager."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)

PROCESSING_NOTICE = "🤖 Processing your request..."


class SessionStatus(Enum):
    """Lifecycle status of a session. Any transition is allowed."""
    IDLE = "idle"
    RUNNING = "running"
    CONNECTING = "connecting"
    ERROR = "error"
    STOPPED = "stopped"


def generate_session_id() -> str:
    """Return a collision-resistant session identifier."""
    return uuid.uuid4().hex


def canned_response(text: str) -> str:
    """Simulated assistant reply for a submitted input."""
    flattened = text.strip().replace("\n", " ")
    return f"Claude response to: {flattened}"


@dataclass(frozen=True)
class SessionSnapshot:
    """Consistent read-only view of a session, taken under its lock."""

    id: str
    name: str
    status: SessionStatus
    output: tuple[str, ...]
    last_message: str
    created_at: datetime
    updated_at: datetime


@dataclass
class Session:
    """A single conversation: identity, status and transcript.

    Mutable fields are only touched while holding ``_lock``; use the
    accessor methods rather than the attributes from other threads.
    """

    name: str
    id: str = field(default_factory=generate_session_id)
    status: SessionStatus = SessionStatus.IDLE
    output: list[str] = field(default_factory=list)
    last_message: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def create(cls, name: str) -> "Session":
        return cls(name=name)

    def _append_locked(self, line: str) -> None:
        self.output.append(line)
        self.last_message = line
        self.updated_at = datetime.now()

    def append_output(self, line: str) -> None:
        """Append a line to the transcript."""
        with self._lock:
            self._append_locked(line)

    def append_lines(self, lines: list[str]) -> None:
        """Append several lines atomically."""
        with self._lock:
            for line in lines:
                self._append_locked(line)

    def read_output(self) -> list[str]:
        """Return a copy of the transcript."""
        with self._lock:
            return list(self.output)

    def output_length(self) -> int:
        with self._lock:
            return len(self.output)

    def set_status(self, status: SessionStatus) -> None:
        with self._lock:
            self.status = status
            self.updated_at = datetime.now()

    def get_status(self) -> SessionStatus:
        with self._lock:
            return self.status

    def get_last_message(self) -> str:
        with self._lock:
            return self.last_message

    def get_updated_at(self) -> datetime:
        with self._lock:
            return self.updated_at

    def submit(self, text: str) -> None:
        """Simulate backend processing of ``text`` in one critical section."""
        with self._lock:
            self._append_locked(PROCESSING_NOTICE)
            self._append_locked(canned_response(text))
            self.updated_at = datetime.now()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                id=self.id,
                name=self.name,
                status=self.status,
                output=tuple(self.output),
                last_message=self.last_message,
                created_at=self.created_at,
                updated_at=self.updated_at,
            )


class SessionManager:
    """Thread-safe, insertion-ordered store of sessions."""

    def __init__(self) -> None:
        self._sessions: list[Session] = []
        self._lock = threading.Lock()

    def create_session(self, name: str) -> Session:
        """Create a session and append it to the end of the list."""
        session = Session.create(name)
        with self._lock:
            self._sessions.append(session)
        logger.debug(f"Created session {session.id} ({name})")
        return session

    def get_sessions(self) -> list[Session]:
        """Get all sessions in creation order (a copy, safe to iterate)."""
        with self._lock:
            return list(self._sessions)

    def get_session(self, session_id: str) -> Session | None:
        """Look up a session by ID. Returns None if not found."""
        with self._lock:
            for session in self._sessions:
                if session.id == session_id:
                    return session
            return None

    def remove_session(self, session_id: str) -> bool:
        """Remove a session.

        Args:
            session_id: ID of the session to remove

        Returns:
            True if a session was removed, False if not found
        """
        with self._lock:
            for i, session in enumerate(self._sessions):
                if session.id == session_id:
                    del self._sessions[i]
                    break
            else:
                return False
        logger.debug(f"Removed session {session_id}")
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)


def seed_demo_sessions(manager: SessionManager) -> None:
    """Populate the manager with the three start-up demo sessions."""
    main = manager.create_session("Main Session")
    main.set_status(SessionStatus.RUNNING)
    main.append_lines([
        "Welcome to ClaudePilot!",
        "This is your main Claude session.",
        "Type your commands in the input pane below.",
    ])

    analysis = manager.create_session("Analysis Session")
    analysis.set_status(SessionStatus.IDLE)
    analysis.append_output("Analysis session ready for data processing.")

    debug = manager.create_session("Debug Session")
    debug.set_status(SessionStatus.ERROR)
    debug.append_lines([
        "Error: Connection failed to Claude API",
        "Retrying connection...",
    ])
