"""Table data store.

The first row of a TableData is always the header row (column names).
Rows keep insertion order; the store is never sorted.

Index -1 is the "no selection" sentinel: reads return an empty string and
writes are ignored instead of raising.
"""

from typing import Iterator, List, Sequence

# Sentinel index meaning "nothing selected"
NO_SELECTION = -1


class NoDataError(ValueError):
    """Raised when a table is painted without any rows."""

    def __init__(self, message: str = "no data"):
        super().__init__(message)


class TableData:
    """Rectangular grid of string cells, row 0 being the header."""

    def __init__(self, rows: Sequence[Sequence[str]]):
        self._rows: List[List[str]] = [list(row) for row in rows]
        if self._rows:
            width = len(self._rows[0])
            for i, row in enumerate(self._rows):
                if len(row) != width:
                    raise ValueError(
                        f"Row {i} has {len(row)} cells, header has {width}"
                    )

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> List[str]:
        return self._rows[index]

    @property
    def rows(self) -> List[List[str]]:
        return self._rows

    @property
    def header(self) -> List[str]:
        """Column names, or an empty list for an empty table."""
        return self._rows[0] if self._rows else []

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def data_row_count(self) -> int:
        """Number of rows below the header."""
        return max(len(self._rows) - 1, 0)

    def get(self, row: int, col: int) -> str:
        """Return the cell at (row, col), or "" for a sentinel index."""
        if row != NO_SELECTION and col != NO_SELECTION:
            return self._rows[row][col]
        return ""

    def get_index(self, name: str) -> int:
        """Return the index of the named column, -1 if absent.

        Matching is case-insensitive and returns the first match.
        """
        if not self._rows:
            return -1
        wanted = name.casefold()
        for i, column in enumerate(self._rows[0]):
            if column.casefold() == wanted:
                return i
        return -1

    def update(self, row: int, col: int, value: str) -> None:
        """Replace the cell at (row, col) in place; ignores sentinels."""
        if row != NO_SELECTION and col != NO_SELECTION:
            self._rows[row][col] = value
