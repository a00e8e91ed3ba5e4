"""prompt_toolkit widgets for the table pages.

Each widget keeps its state in plain attributes and renders it through a
FormattedTextControl callback, so a redraw always reflects the latest
state and the rendering can be checked without a running application.
"""

import shutil
from typing import Callable, List, Optional, Tuple

from prompt_toolkit.data_structures import Point
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.utils import get_cwidth
from prompt_toolkit.widgets import Frame

from issue_table import style as styles
from issue_table.data import TableData
from issue_table.selection import SelectionTracker

Fragments = List[Tuple[str, str]]

ELLIPSIS = "…"


def pad(text: str, n: int) -> str:
    """Surround text with n spaces on each side."""
    return " " * n + text + " " * n


def fit(text: str, width: int) -> str:
    """Cut or space-fill text to exactly width terminal cells."""
    if width <= 0:
        return ""
    if get_cwidth(text) <= width:
        return text + " " * (width - get_cwidth(text))
    out = []
    used = 0
    for ch in text:
        w = get_cwidth(ch)
        if used + w > width - 1:
            break
        out.append(ch)
        used += w
    return "".join(out) + ELLIPSIS + " " * (width - 1 - used)


class TableView:
    """The grid on the primary page.

    The header row stays on top while the body scrolls vertically to keep
    the selected row in view. The first fixed_columns columns never scroll;
    the rest scroll horizontally to keep the selected column in view.
    """

    def __init__(
        self,
        selection: SelectionTracker,
        fixed_columns: int = 0,
        col_pad: int = 1,
        max_col_width: int = 80,
        get_width: Optional[Callable[[], int]] = None,
    ):
        self._selection = selection
        self._fixed = fixed_columns
        self._col_pad = col_pad
        self._max_col_width = max_col_width
        self._get_width = get_width or (lambda: shutil.get_terminal_size().columns)
        self._data = TableData([])
        self._widths: List[int] = []
        self._col_offset = fixed_columns

        self.header_control = FormattedTextControl(self.header_fragments)
        self.body_control = FormattedTextControl(
            self.body_fragments,
            focusable=True,
            show_cursor=False,
            get_cursor_position=self._cursor_position,
        )
        self.container = HSplit([
            Window(self.header_control, height=1, dont_extend_height=True),
            Window(self.body_control, wrap_lines=False),
        ])

    @property
    def data(self) -> TableData:
        return self._data

    def set_data(self, data: TableData) -> None:
        self._data = data
        self._col_offset = min(self._fixed, data.column_count)
        self._widths = self._measure()

    def _measure(self) -> List[int]:
        widths = [0] * self._data.column_count
        for row in self._data:
            for c, cell in enumerate(row):
                w = get_cwidth(pad(cell, self._col_pad))
                if w > widths[c]:
                    widths[c] = w
        return [min(w, self._max_col_width) for w in widths]

    @property
    def column_widths(self) -> List[int]:
        return list(self._widths)

    def visible_columns(self) -> List[int]:
        """Columns to draw, fixed ones first, scrolled to the cursor column."""
        count = self._data.column_count
        fixed = list(range(min(self._fixed, count)))
        width = self._get_width()
        room = width - sum(self._widths[c] for c in fixed)

        col = self._selection.col
        if col >= len(fixed):
            if col < self._col_offset:
                self._col_offset = col
            while self._col_offset < col and sum(self._widths[self._col_offset:col + 1]) > room:
                self._col_offset += 1

        scrolled = []
        used = 0
        for c in range(max(self._col_offset, len(fixed)), count):
            if scrolled and used + self._widths[c] > room:
                break
            scrolled.append(c)
            used += self._widths[c]
        return fixed + scrolled

    def _render_row(self, row: int, columns: List[int], cell_style: str) -> Fragments:
        fragments: Fragments = []
        for c in columns:
            text = fit(pad(self._data.get(row, c), self._col_pad), self._widths[c])
            style = cell_style
            if row == self._selection.row and c == self._selection.col:
                style = f"{cell_style} {styles.SELECTED_CELL}"
            fragments.append((style, text))
        return fragments

    def header_fragments(self) -> Fragments:
        if not self._data.column_count:
            return []
        return self._render_row(0, self.visible_columns(), styles.HEADER)

    def body_fragments(self) -> Fragments:
        columns = self.visible_columns() if self._data.column_count else []
        fragments: Fragments = []
        for r in range(1, len(self._data)):
            style = styles.SELECTED if r == self._selection.row else styles.CELL
            fragments.extend(self._render_row(r, columns, style))
            fragments.append(("", "\n"))
        if fragments:
            fragments.pop()
        return fragments

    def _cursor_position(self) -> Point:
        return Point(x=0, y=max(self._selection.row - 1, 0))


class InfoModal:
    """Framed block of read-only text (the help page)."""

    def __init__(self, title: str = "", text: str = ""):
        self.title = title
        self.text = text
        self.control = FormattedTextControl(self.fragments, focusable=True)
        self.container = Frame(
            Window(self.control, wrap_lines=True),
            title=lambda: self.title,
            style=styles.MODAL,
            width=Dimension(preferred=70),
        )

    def fragments(self) -> Fragments:
        return [(styles.MODAL_TEXT, self.text)]


class ActionModal:
    """Text, a row of option buttons and a status footer.

    on_done is called with (index, label) of the focused button when the
    user confirms. Buttons are cycled with focus_next/focus_prev.
    """

    def __init__(self):
        self.text = ""
        self.buttons: List[str] = []
        self.focus_index = 0
        self.footer_text = ""
        self.footer_style = styles.INFO
        self.on_done: Optional[Callable[[int, str], None]] = None
        self.control = FormattedTextControl(self.fragments, focusable=True)
        self.container = Frame(
            Window(self.control, wrap_lines=True),
            style=styles.MODAL,
            width=Dimension(preferred=70),
        )

    def clear_buttons(self) -> "ActionModal":
        self.buttons = []
        self.focus_index = 0
        return self

    def add_buttons(self, labels: List[str]) -> "ActionModal":
        self.buttons.extend(labels)
        return self

    def set_focus(self, index: int) -> "ActionModal":
        if 0 <= index < len(self.buttons):
            self.focus_index = index
        return self

    def set_text(self, text: str) -> "ActionModal":
        self.text = text
        return self

    def set_footer(self, text: str, style: str = styles.INFO) -> "ActionModal":
        self.footer_text = text
        self.footer_style = style
        return self

    def focus_next(self) -> None:
        if self.buttons:
            self.focus_index = (self.focus_index + 1) % len(self.buttons)

    def focus_prev(self) -> None:
        if self.buttons:
            self.focus_index = (self.focus_index - 1) % len(self.buttons)

    @property
    def focused_label(self) -> Optional[str]:
        if not self.buttons:
            return None
        return self.buttons[self.focus_index]

    def press(self) -> None:
        """Confirm the focused button."""
        label = self.focused_label
        if label is not None and self.on_done:
            self.on_done(self.focus_index, label)

    def fragments(self) -> Fragments:
        fragments: Fragments = [(styles.MODAL_TEXT, self.text), ("", "\n\n")]
        for i, label in enumerate(self.buttons):
            style = styles.BUTTON_FOCUSED if i == self.focus_index else styles.BUTTON
            fragments.append((style, f" {label} "))
            fragments.append(("", " "))
        fragments.append(("", "\n\n"))
        fragments.append((self.footer_style, self.footer_text))
        return fragments


class WaitModal(InfoModal):
    """Shown while a background task prepares the next page."""

    def __init__(self):
        super().__init__(title="", text="Please wait...")
