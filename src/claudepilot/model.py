"""Dashboard state machine: focus, selection, scrolling, input and help.

The model is driven one event at a time by the TUI event loop. It owns
all UI state and never renders; the widget in ``tui_textual`` reads it back
after every event.
"""

import logging

from .backend import BackendResult, Dispatcher, InlineDispatcher, apply_result
from .layout import Pane, PaneLayout, compute_layout
from .session import Session, SessionManager, SessionStatus

logger = logging.getLogger(__name__)

# Rows of the output pane taken by its border and title.
OUTPUT_CHROME_ROWS = 3
# Rows taken by each entry in the session list (name + preview).
LIST_ITEM_HEIGHT = 2
# Rows between the top of the list pane and its first entry (border + title).
LIST_HEADER_ROWS = 2

QUIT_KEYS = ("ctrl+c",)
HELP_KEYS = ("question_mark", "?")
HELP_DISMISS_KEYS = HELP_KEYS + ("escape", "q")
DOWN_KEYS = ("down", "j")
UP_KEYS = ("up", "k")
TOP_KEYS = ("g", "home")
BOTTOM_KEYS = ("G", "end")
NEW_SESSION_KEYS = ("n",)
DELETE_KEYS = ("d", "x")
TOGGLE_RUN_KEYS = ("s",)
NEWLINE_KEYS = ("enter",)
SUBMIT_KEYS = ("ctrl+enter", "ctrl+j", "ctrl+s")
BACKSPACE_KEYS = ("backspace", "ctrl+h")
WORD_BACKSPACE_KEYS = ("ctrl+backspace", "ctrl+w")


def format_input_lines(text: str) -> list[str]:
    """Format submitted input for the transcript, one line per source line."""
    lines = []
    for i, line in enumerate(text.split("\n")):
        prefix = "> " if i == 0 else "  "
        lines.append(prefix + line)
    return lines


def delete_word_backward(text: str) -> str:
    """Remove the trailing word and the spaces before it."""
    stripped = text.rstrip()
    cut = len(stripped)
    while cut > 0 and not stripped[cut - 1].isspace():
        cut -= 1
    return stripped[:cut].rstrip(" ")


class DashboardModel:
    """UI state for the three-pane session dashboard."""

    def __init__(self, manager: SessionManager, dispatcher: Dispatcher | None = None) -> None:
        self.manager = manager
        self.dispatcher: Dispatcher = dispatcher or InlineDispatcher()

        self.width = 0
        self.height = 0
        self.layout: PaneLayout | None = None

        self.focused_pane = Pane.SESSION_LIST
        self.show_help = False
        self.quitting = False

        sessions = manager.get_sessions()
        self.session_cursor = 0
        self.selected_session_id: str | None = sessions[0].id if sessions else None

        self.input_value = ""
        self.input_history: list[str] = []
        self.history_index = -1

        self.output_scroll = 0

    # -- derived state ---------------------------------------------------

    @property
    def selected_session(self) -> Session | None:
        """Resolve the selection through the store; None if it is gone."""
        if self.selected_session_id is None:
            return None
        return self.manager.get_session(self.selected_session_id)

    @property
    def too_small(self) -> bool:
        return self.layout is None

    def output_visible_rows(self) -> int:
        if self.layout is None:
            return 0
        return max(0, self.layout.output.height - OUTPUT_CHROME_ROWS)

    def max_scroll(self) -> int:
        session = self.selected_session
        if session is None:
            return 0
        return max(0, session.output_length() - self.output_visible_rows())

    def visible_output(self) -> list[str]:
        """Transcript lines currently inside the output viewport."""
        session = self.selected_session
        if session is None:
            return []
        output = session.read_output()
        start = min(self.output_scroll, len(output))
        return output[start:start + self.output_visible_rows()]

    # -- event entry points ----------------------------------------------

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.layout = compute_layout(width, height)
        self._clamp_scroll()

    def handle_key(self, key: str, character: str | None = None) -> None:
        """Process one key press.

        Args:
            key: Textual key name (e.g. ``"tab"``, ``"ctrl+c"``, ``"a"``)
            character: Printable character for the key, if any
        """
        if character is None and len(key) == 1:
            character = key

        if key in QUIT_KEYS:
            self.quitting = True
            return

        if self.show_help:
            if key in HELP_DISMISS_KEYS or character == "?":
                self.show_help = False
            return

        if key in HELP_KEYS or character == "?":
            self.show_help = True
            return
        if key == "tab":
            self.focused_pane = self.focused_pane.next()
            return
        if key == "shift+tab":
            self.focused_pane = self.focused_pane.previous()
            return

        if self.focused_pane == Pane.SESSION_LIST:
            self._handle_session_list_key(key)
        elif self.focused_pane == Pane.OUTPUT:
            self._handle_output_key(key)
        else:
            self._handle_input_key(key, character)

    def handle_click(self, x: int, y: int) -> None:
        """Left click: focus the pane under the pointer."""
        if self.show_help or self.layout is None:
            return
        pane = self.layout.pane_at(x, y)
        if pane is None:
            return
        self.focused_pane = pane
        if pane == Pane.SESSION_LIST:
            self._handle_session_list_click(y)

    def handle_wheel(self, x: int, y: int, delta: int) -> None:
        """Mouse wheel: only acts on the pane that is focused and hovered."""
        if self.show_help or self.layout is None:
            return
        if not self.layout.rect_for(self.focused_pane).contains(x, y):
            return
        if self.focused_pane == Pane.OUTPUT:
            self._scroll_output(delta)
        elif self.focused_pane == Pane.SESSION_LIST:
            self._move_cursor(delta)

    def handle_backend_result(self, result: BackendResult) -> None:
        """Apply a completed submission. Results for deleted sessions are dropped."""
        session = self.manager.get_session(result.session_id)
        if session is None:
            logger.debug(f"Result for unknown session {result.session_id} dropped")
            return
        follow = (
            result.session_id == self.selected_session_id
            and self.output_scroll >= self.max_scroll()
        )
        apply_result(session, result)
        if follow:
            self.output_scroll = self.max_scroll()

    def shutdown(self) -> None:
        self.dispatcher.shutdown()

    # -- session list ----------------------------------------------------

    def _select_index(self, index: int) -> None:
        sessions = self.manager.get_sessions()
        if not sessions:
            self.session_cursor = 0
            self.selected_session_id = None
        else:
            self.session_cursor = max(0, min(index, len(sessions) - 1))
            self.selected_session_id = sessions[self.session_cursor].id
        self.output_scroll = 0

    def _move_cursor(self, delta: int) -> None:
        count = self.manager.count()
        target = self.session_cursor + delta
        if 0 <= target < count:
            self._select_index(target)

    def _handle_session_list_key(self, key: str) -> None:
        if key in DOWN_KEYS:
            self._move_cursor(1)
        elif key in UP_KEYS:
            self._move_cursor(-1)
        elif key in NEW_SESSION_KEYS:
            self._create_session()
        elif key in DELETE_KEYS:
            self._delete_selected()
        elif key in TOGGLE_RUN_KEYS:
            self._toggle_run()

    def _create_session(self) -> None:
        name = f"Session {self.manager.count() + 1}"
        session = self.manager.create_session(name)
        session.append_output(f"New session '{name}' created")
        sessions = self.manager.get_sessions()
        self.session_cursor = len(sessions) - 1
        self.selected_session_id = session.id
        self.output_scroll = 0

    def _delete_selected(self) -> None:
        session_id = self.selected_session_id
        if session_id is None:
            return
        self.dispatcher.cancel(session_id)
        self.manager.remove_session(session_id)
        self._select_index(self.session_cursor)

    def _toggle_run(self) -> None:
        session = self.selected_session
        if session is None:
            return
        if session.get_status() == SessionStatus.RUNNING:
            session.set_status(SessionStatus.STOPPED)
            session.append_output("Session stopped by user")
        else:
            session.set_status(SessionStatus.RUNNING)
            session.append_output("Session started")

    def _handle_session_list_click(self, y: int) -> None:
        relative_y = y - self.layout.session_list.y - LIST_HEADER_ROWS
        if relative_y < 0:
            return
        index = relative_y // LIST_ITEM_HEIGHT
        if index < self.manager.count():
            self._select_index(index)

    # -- output ----------------------------------------------------------

    def _clamp_scroll(self) -> None:
        self.output_scroll = max(0, min(self.output_scroll, self.max_scroll()))

    def _scroll_output(self, delta: int) -> None:
        if self.selected_session is None:
            return
        self.output_scroll += delta
        self._clamp_scroll()

    def _handle_output_key(self, key: str) -> None:
        if self.selected_session is None:
            return
        if key in DOWN_KEYS:
            self._scroll_output(1)
        elif key in UP_KEYS:
            self._scroll_output(-1)
        elif key in TOP_KEYS:
            self.output_scroll = 0
        elif key in BOTTOM_KEYS:
            self.output_scroll = self.max_scroll()

    # -- input -----------------------------------------------------------

    def _handle_input_key(self, key: str, character: str | None) -> None:
        if key in SUBMIT_KEYS:
            self._submit_input()
        elif key in NEWLINE_KEYS:
            self.input_value += "\n"
        elif key == "up":
            self._history_previous()
        elif key == "down":
            self._history_next()
        elif key in BACKSPACE_KEYS:
            self.input_value = self.input_value[:-1]
        elif key in WORD_BACKSPACE_KEYS:
            if self.input_value:
                self.input_value = delete_word_backward(self.input_value)
        elif character is not None and len(character) == 1 and character.isprintable():
            self.input_value += character

    def _submit_input(self) -> None:
        session = self.selected_session
        if not self.input_value.strip() or session is None:
            return

        text = self.input_value
        self.input_history.append(text)
        self.history_index = -1

        session.append_lines(format_input_lines(text))
        self.dispatcher.submit(session, text)

        self.input_value = ""
        self.output_scroll = self.max_scroll()

    def _history_previous(self) -> None:
        if not self.input_history or "\n" in self.input_value:
            return
        if self.history_index == -1:
            self.history_index = len(self.input_history) - 1
        elif self.history_index > 0:
            self.history_index -= 1
        self.input_value = self.input_history[self.history_index]

    def _history_next(self) -> None:
        if self.history_index == -1 or "\n" in self.input_value:
            return
        if self.history_index < len(self.input_history) - 1:
            self.history_index += 1
            self.input_value = self.input_history[self.history_index]
        else:
            self.history_index = -1
            self.input_value = ""
