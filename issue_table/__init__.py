"""Accessible interactive table for issue trackers.

A full-screen, keyboard-driven table with a help page, a detail view, a
guided "move to state" modal, and optional screen reader narration.
"""

from issue_table.config import TableConfig
from issue_table.data import NO_SELECTION, NoDataError, TableData
from issue_table.detail import DetailRenderError
from issue_table.table import Table, TableCallbacks
from issue_table.transition import TransitionError, TransitionRequest, TransitionState

__version__ = "0.1.0"

__all__ = [
    "NO_SELECTION",
    "DetailRenderError",
    "NoDataError",
    "Table",
    "TableCallbacks",
    "TableConfig",
    "TableData",
    "TransitionError",
    "TransitionRequest",
    "TransitionState",
]
