"""Pane geometry and mouse hit-testing for the dashboard."""

from dataclasses import dataclass
from enum import Enum

MIN_WIDTH = 60
MIN_HEIGHT = 15

# Rows above the panes (title line + spacer) and below them (footer).
TITLE_ROWS = 2
FOOTER_ROWS = 2
# Columns between the session list and the right-hand column.
COLUMN_GAP = 2


class Pane(Enum):
    """The three focusable regions, in focus-cycle order."""
    SESSION_LIST = 0
    OUTPUT = 1
    INPUT = 2

    def next(self) -> "Pane":
        return Pane((self.value + 1) % len(Pane))

    def previous(self) -> "Pane":
        return Pane((self.value - 1) % len(Pane))


@dataclass(frozen=True)
class Rect:
    """Screen rectangle; ``contains`` uses half-open intervals."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


@dataclass(frozen=True)
class PaneLayout:
    """Rectangles of the three panes for one terminal size."""

    session_list: Rect
    output: Rect
    input: Rect

    def rect_for(self, pane: Pane) -> Rect:
        return {
            Pane.SESSION_LIST: self.session_list,
            Pane.OUTPUT: self.output,
            Pane.INPUT: self.input,
        }[pane]

    def pane_at(self, x: int, y: int) -> Pane | None:
        """First pane (list, output, input order) containing the point."""
        for pane in Pane:
            if self.rect_for(pane).contains(x, y):
                return pane
        return None


def is_too_small(width: int, height: int) -> bool:
    return width < MIN_WIDTH or height < MIN_HEIGHT


def compute_layout(width: int, height: int) -> PaneLayout | None:
    """Compute pane rectangles, or None when the terminal is too small."""
    if is_too_small(width, height):
        return None

    left_width = width // 3
    right_width = width - left_width - COLUMN_GAP
    right_x = left_width + COLUMN_GAP
    output_height = height // 2 - TITLE_ROWS

    return PaneLayout(
        session_list=Rect(0, TITLE_ROWS, left_width, height - TITLE_ROWS - FOOTER_ROWS),
        output=Rect(right_x, TITLE_ROWS, right_width, output_height),
        input=Rect(
            right_x,
            TITLE_ROWS + output_height,
            right_width,
            height - height // 2 - TITLE_ROWS - FOOTER_ROWS,
        ),
    )
