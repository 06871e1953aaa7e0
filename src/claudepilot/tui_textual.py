"""Textual TUI for ClaudePilot."""

from __future__ import annotations

from rich import box
from rich.console import Group as RichGroup
from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text as RichText
from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widget import Widget

from .backend import BackendResult, Dispatcher, InlineDispatcher, ThreadedDispatcher
from .config import Config
from .layout import MIN_HEIGHT, MIN_WIDTH, Pane
from .model import DashboardModel
from .session import SessionManager, SessionSnapshot, SessionStatus

PRIMARY = "#7C3AED"
SECONDARY = "#06B6D4"
MUTED = "#6B7280"

STATUS_INDICATORS: dict[SessionStatus, tuple[str, str]] = {
    SessionStatus.RUNNING: ("●", "#10B981"),
    SessionStatus.IDLE: ("○", MUTED),
    SessionStatus.CONNECTING: ("◐", "#F59E0B"),
    SessionStatus.ERROR: ("✗", "#EF4444"),
    SessionStatus.STOPPED: ("■", MUTED),
}

PREVIEW_LIMIT = 20
INPUT_PROMPT = "➤ "
CURSOR = "█"

FOOTER_KEYS = {
    Pane.SESSION_LIST: ["n: New", "d: Delete", "s: Start/Stop", "Click: Select session"],
    Pane.OUTPUT: ["j/k: Scroll", "g/G: Top/Bottom", "Wheel: Scroll"],
    Pane.INPUT: ["Enter: New line", "Ctrl+J/Ctrl+S: Send", "↑/↓: History"],
}

HELP_SECTIONS = [
    ("Global Keys:", [
        "Tab / Shift+Tab    Switch between panes",
        "?                  Show/hide this help",
        "Ctrl+C             Quit application",
    ]),
    ("Mouse Controls:", [
        "Click              Focus panel and select items",
        "Scroll Wheel       Navigate lists and scroll output",
        "Click sessions     Select different sessions",
    ]),
    ("Session List (Left Pane):", [
        "j / ↓              Move cursor down",
        "k / ↑              Move cursor up",
        "n                  Create new session",
        "d / x              Delete selected session",
        "s                  Start/stop selected session",
    ]),
    ("Output Pane (Top Right):", [
        "j / ↓              Scroll down",
        "k / ↑              Scroll up",
        "g / Home           Go to top",
        "G / End            Go to bottom",
    ]),
    ("Input Pane (Bottom Right):", [
        "Enter              Create new line",
        "Ctrl+J / Ctrl+S    Send message to Claude",
        "↑ / ↓              Navigate command history",
        "Backspace          Delete character",
        "Ctrl+W             Delete word backward",
    ]),
]


def _line(text: str, style: str = "") -> RichText:
    """Single-row text: never wraps, so one transcript line is one screen row."""
    return RichText(text, style=style, no_wrap=True, overflow="ellipsis")


def _pane_panel(title: str, body: RenderableType, focused: bool, width: int, height: int) -> Panel:
    if focused:
        title = f"● {title}"
    return Panel(
        RichGroup(_line(title, f"bold {PRIMARY}"), body),
        box=box.ROUNDED,
        border_style=PRIMARY if focused else MUTED,
        width=width,
        height=height,
        padding=(0, 0),
    )


def session_preview(last_message: str) -> str:
    """Shortened last message for the list, empty when short enough to skip."""
    if len(last_message) > PREVIEW_LIMIT:
        return last_message[:PREVIEW_LIMIT - 3] + "..."
    return ""


def render_session_item(snapshot: SessionSnapshot, highlighted: bool) -> RichGroup:
    """Two rows per session: status + name, then a preview (possibly blank)."""
    symbol, color = STATUS_INDICATORS[snapshot.status]
    name_line = RichText(no_wrap=True, overflow="ellipsis")
    name_line.append(f"{symbol} ", style=color)
    name_line.append(snapshot.name, style=f"bold reverse {PRIMARY}" if highlighted else "")
    preview = session_preview(snapshot.last_message)
    return RichGroup(name_line, _line(f"  {preview}" if preview else "", f"dim {MUTED}"))


def render_session_list(model: DashboardModel) -> Panel:
    rect = model.layout.session_list
    focused = model.focused_pane == Pane.SESSION_LIST
    items: list[RenderableType] = []
    for i, session in enumerate(model.manager.get_sessions()):
        highlighted = i == model.session_cursor and focused
        items.append(render_session_item(session.snapshot(), highlighted))
    if not items:
        items.append(_line("No sessions. Press 'n' to create one.", MUTED))
    return _pane_panel("Sessions", RichGroup(*items), focused, rect.width, rect.height)


def render_output(model: DashboardModel) -> Panel:
    rect = model.layout.output
    if model.selected_session is None:
        body: RenderableType = _line("Select a session to view output", MUTED)
    else:
        lines = model.visible_output()
        if lines:
            body = RichGroup(*(_line(line) for line in lines))
        else:
            body = _line("No output yet...", MUTED)
    focused = model.focused_pane == Pane.OUTPUT
    return _pane_panel("Output", body, focused, rect.width, rect.height)


def render_input(model: DashboardModel) -> Panel:
    rect = model.layout.input
    focused = model.focused_pane == Pane.INPUT
    text = model.input_value + (CURSOR if focused else "")
    indent = " " * len(INPUT_PROMPT)

    rows = []
    for i, line in enumerate(text.split("\n")):
        row = RichText(no_wrap=True, overflow="ellipsis")
        row.append(INPUT_PROMPT if i == 0 else indent, style=SECONDARY)
        row.append(line)
        rows.append(row)

    available = max(1, rect.height - 3)
    if len(rows) > available:
        rows = rows[-available:]
    return _pane_panel("Input", RichGroup(*rows), focused, rect.width, rect.height)


def render_footer(model: DashboardModel) -> RichText:
    keys = ["Tab: Switch panes", "Mouse: Click panels/scroll", "?: Help", "Ctrl+C: Quit"]
    keys.extend(FOOTER_KEYS[model.focused_pane])
    return _line("  |  ".join(keys), MUTED)


def render_help(model: DashboardModel) -> Panel:
    lines: list[RenderableType] = [RichText("ClaudePilot Help", style=f"bold {PRIMARY}"), RichText("")]
    for heading, entries in HELP_SECTIONS:
        lines.append(RichText(heading, style=f"bold {SECONDARY}"))
        lines.extend(RichText(f"  {entry}") for entry in entries)
        lines.append(RichText(""))
    lines.append(RichText("Press '?' or 'Esc' to close this help", style=MUTED))
    return Panel(
        RichGroup(*lines),
        box=box.ROUNDED,
        border_style=MUTED,
        width=max(MIN_WIDTH, model.width - 4) if model.width else None,
        padding=(1, 2),
    )


def render_dashboard(model: DashboardModel) -> RenderableType:
    """Build the full screen from model state. Pure: never mutates the model."""
    if model.quitting:
        return RichText("Thanks for using ClaudePilot! 👋", style=SECONDARY)
    if model.show_help:
        return render_help(model)
    if model.too_small:
        return RichText(
            f"Terminal too small. Please resize to at least {MIN_WIDTH}x{MIN_HEIGHT}.",
            style="bold #EF4444",
        )

    layout = model.layout
    grid = Table.grid(padding=0)
    grid.add_column(width=layout.session_list.width)
    grid.add_column(width=layout.output.x - layout.session_list.width)
    grid.add_column(width=layout.output.width)
    grid.add_row(
        render_session_list(model),
        "",
        RichGroup(render_output(model), render_input(model)),
    )

    title = _line("ClaudePilot - Claude Session Manager", f"bold {PRIMARY}")
    return RichGroup(title, RichText(""), grid, render_footer(model))


class DashboardView(Widget, can_focus=True):
    """Full-screen widget: forwards input to the model and renders it."""

    DEFAULT_CSS = """
    DashboardView {
        width: 1fr;
        height: 1fr;
    }
    """

    def __init__(self, model: DashboardModel, **kwargs) -> None:
        super().__init__(**kwargs)
        self.model = model

    def render(self) -> RenderableType:
        return render_dashboard(self.model)

    def on_mount(self) -> None:
        self.call_after_refresh(self._sync_size)

    def _sync_size(self) -> None:
        width, height = self.size
        if (width, height) != (self.model.width, self.model.height):
            self.model.resize(width, height)
            self.refresh()

    def on_resize(self, event: events.Resize) -> None:
        self.model.resize(event.size.width, event.size.height)
        self.refresh()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.model.handle_key(event.key, event.character)
        self._after_event()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button != 1:
            return
        event.stop()
        self.model.handle_click(event.x, event.y)
        self._after_event()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        self.model.handle_wheel(event.x, event.y, 1)
        self._after_event()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        self.model.handle_wheel(event.x, event.y, -1)
        self._after_event()

    def _after_event(self) -> None:
        if self.model.quitting:
            self.app.exit()
            return
        self.refresh()


class ClaudePilotApp(App):
    """Textual TUI for ClaudePilot."""

    TITLE = "ClaudePilot"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+c", "quit_dashboard", "Quit", show=False, priority=True),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    # Custom messages for thread-safe updates
    class BackendCompleted(Message):
        """Message posted when a backend submission finishes."""
        def __init__(self, result: BackendResult) -> None:
            super().__init__()
            self.result = result

    def __init__(
        self,
        manager: SessionManager,
        config: Config | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        super().__init__()
        self.config = config or Config()
        if dispatcher is None:
            dispatcher = self._make_dispatcher()
        self.model = DashboardModel(manager, dispatcher)

    def _make_dispatcher(self) -> Dispatcher:
        backend = self.config.backend
        if not backend.async_backend:
            return InlineDispatcher()
        return ThreadedDispatcher(
            on_complete=self._on_backend_complete,
            response_delay=backend.response_delay,
            max_workers=backend.max_workers,
        )

    def compose(self) -> ComposeResult:
        yield DashboardView(self.model, id="dashboard")

    def on_mount(self) -> None:
        self.query_one("#dashboard", DashboardView).focus()

    def _on_backend_complete(self, result: BackendResult) -> None:
        """Called from a worker thread - post message for thread safety."""
        self.post_message(self.BackendCompleted(result))

    @on(BackendCompleted)
    def handle_backend_completed(self, message: BackendCompleted) -> None:
        """Apply a backend result on the event loop."""
        self.model.handle_backend_result(message.result)
        self.query_one("#dashboard", DashboardView).refresh()

    def action_quit_dashboard(self) -> None:
        self.model.handle_key("ctrl+c")
        self.exit()
