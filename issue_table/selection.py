"""Row/column cursor for the table and its narration."""

import logging
from typing import Callable, List, Optional, Tuple

from issue_table.announcer import Announcer
from issue_table.data import NO_SELECTION, TableData

logger = logging.getLogger(__name__)

# Called with (row, col) after every cursor change
SelectionListener = Callable[[int, int], None]

STATUS_COLUMN = "STATUS"
SUMMARY_COLUMN = "SUMMARY"


def describe_row(data: TableData, row: int) -> str:
    """Compose the narration for a selected row.

    Format: "<row> of <total>: <first column>[, <status>][, <summary>]".
    STATUS and SUMMARY are looked up by name and simply omitted when the
    table has no such column. Returns "" for the header or an out of range
    row.
    """
    if row < 1 or row >= len(data) or not data[row]:
        return ""
    cells = data[row]
    text = f"{row} of {data.data_row_count}: {cells[0]}"

    status_col = data.get_index(STATUS_COLUMN)
    if 0 <= status_col < len(cells):
        text += f", {cells[status_col]}"

    summary_col = data.get_index(SUMMARY_COLUMN)
    if 0 <= summary_col < len(cells):
        text += f", {cells[summary_col]}"

    return text


def describe_cell(data: TableData, row: int, col: int) -> str:
    """Compose "Row R, Column C (Header): Value" for the cell under the cursor."""
    if not (0 <= row < len(data) and 0 <= col < data.column_count):
        return ""
    return f"Row {row}, Column {col} ({data.header[col]}): {data.get(row, col)}"


class SelectionTracker:
    """Holds the current (row, col) cursor.

    The header row is never selectable. With no data rows the cursor stays
    at the (-1, -1) sentinel. Every change of position notifies listeners
    and narrates the newly selected row.
    """

    def __init__(self, announcer: Announcer):
        self._announcer = announcer
        self._data = TableData([])
        self._row = NO_SELECTION
        self._col = NO_SELECTION
        self._listeners: List[SelectionListener] = []

    @property
    def row(self) -> int:
        return self._row

    @property
    def col(self) -> int:
        return self._col

    @property
    def position(self) -> Tuple[int, int]:
        return self._row, self._col

    @property
    def has_selection(self) -> bool:
        return self._row != NO_SELECTION

    def add_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def reset(self, data: TableData) -> None:
        """Attach new data and put the cursor on the first data row.

        Does not narrate; the first narration after a paint is scheduled by
        the table so that it follows the footer announcement.
        """
        self._data = data
        if data.data_row_count > 0 and data.column_count > 0:
            self._row, self._col = 1, 0
        else:
            self._row, self._col = NO_SELECTION, NO_SELECTION

    def select(self, row: int, col: Optional[int] = None) -> bool:
        """Move the cursor, clamped to the selectable area.

        Returns:
            True if the position changed.
        """
        if not self.has_selection:
            return False
        if col is None:
            col = self._col
        row = min(max(row, 1), len(self._data) - 1)
        col = min(max(col, 0), self._data.column_count - 1)
        if (row, col) == (self._row, self._col):
            return False
        self._row, self._col = row, col
        self._notify()
        return True

    def move_rows(self, delta: int) -> bool:
        return self.select(self._row + delta)

    def move_cols(self, delta: int) -> bool:
        return self.select(self._row, self._col + delta)

    def first(self) -> bool:
        return self.select(1)

    def last(self) -> bool:
        return self.select(len(self._data) - 1)

    def announce_current(self) -> None:
        """Narrate the row under the cursor, if any."""
        if self._row >= 1:
            self._announcer.announce(describe_row(self._data, self._row))

    def _notify(self) -> None:
        logger.debug(f"Selection changed to ({self._row}, {self._col})")
        for listener in self._listeners:
            listener(self._row, self._col)
        self.announce_current()
