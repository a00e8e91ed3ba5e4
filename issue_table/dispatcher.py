"""Key dispatcher for the primary page.

Key bindings translate key presses into Actions; the dispatcher performs
the Action. It runs on the render thread, one Action at a time, and never
blocks: slow work goes to a background task.
"""

import enum
import logging
from typing import TYPE_CHECKING, Callable, Dict

from issue_table.keybindings import accessibility_help_text
from issue_table.selection import describe_cell

if TYPE_CHECKING:
    from issue_table.table import Table

logger = logging.getLogger(__name__)

HELP_PAGE = "help"

HELP_OPENED_TEXT = "Help screen opened. Press q or Escape to close."
COPIED_TEXT = "Copied to clipboard"


class Action(enum.Enum):
    QUIT = "quit"
    REFRESH = "refresh"
    COPY = "copy"
    COPY_KEY = "copy_key"
    HELP = "help"
    VIEW = "view"
    MOVE = "move"
    SPEAK_CELL = "speak_cell"
    SPEAK_HELP = "speak_help"


class KeyDispatcher:
    """Routes Actions to their handlers.

    dispatch() returns True when the event was consumed and False when it
    was passed through, e.g. when the callback for the action is not set
    or an accessibility action arrives with accessibility mode off.
    """

    def __init__(self, table: "Table"):
        self._table = table
        self._handlers: Dict[Action, Callable[[], bool]] = {
            Action.QUIT: self._quit,
            Action.REFRESH: self._refresh,
            Action.COPY: self._copy,
            Action.COPY_KEY: self._copy_key,
            Action.HELP: self._help,
            Action.VIEW: self._view,
            Action.MOVE: self._move,
            Action.SPEAK_CELL: self._speak_cell,
            Action.SPEAK_HELP: self._speak_help,
        }

    def available(self, action: Action) -> bool:
        """Whether dispatch(action) would consume the event.

        The key bindings use this as their filter, so an unavailable
        action's key is not matched at all.
        """
        callbacks = self._table.callbacks
        if action == Action.REFRESH:
            return callbacks.refresh_func is not None
        if action == Action.COPY:
            return callbacks.copy_func is not None
        if action == Action.COPY_KEY:
            return callbacks.copy_key_func is not None
        if action == Action.VIEW:
            return callbacks.view_mode_func is not None
        if action == Action.MOVE:
            return callbacks.move_func is not None
        if action in (Action.SPEAK_CELL, Action.SPEAK_HELP):
            return self._table.announcer.enabled
        return True

    def dispatch(self, action: Action) -> bool:
        if not self.available(action):
            logger.debug(f"Pass through {action.value}")
            return False
        logger.debug(f"Dispatch {action.value}")
        return self._handlers[action]()

    def _quit(self) -> bool:
        self._table.request_exit()
        return True

    def _refresh(self) -> bool:
        if self._table.callbacks.refresh_func is None:
            return False
        self._table.request_refresh()
        return True

    def _copy(self) -> bool:
        copy_func = self._table.callbacks.copy_func
        if copy_func is None:
            return False
        row, col = self._table.selection.position
        copy_func(row, col, self._table.data)
        self._table.announcer.announce(COPIED_TEXT)
        return True

    def _copy_key(self) -> bool:
        copy_key_func = self._table.callbacks.copy_key_func
        if copy_key_func is None:
            return False
        row, col = self._table.selection.position
        copy_key_func(row, col, self._table.data)
        return True

    def _help(self) -> bool:
        self._table.surface.show_page(HELP_PAGE)
        self._table.announcer.announce(HELP_OPENED_TEXT)
        self._table.surface.draw()
        return True

    def _view(self) -> bool:
        view_mode_func = self._table.callbacks.view_mode_func
        if view_mode_func is None:
            return False
        row, col = self._table.selection.position
        data = self._table.data
        item = data.get(row, 0) if 0 <= row < len(data) and data.column_count else ""
        self._table.announcer.announce(f"Viewing details for {item}")
        self._table.detail.open(view_mode_func, row, col, data)
        return True

    def _move(self) -> bool:
        move_func = self._table.callbacks.move_func
        if move_func is None:
            return False
        row, col = self._table.selection.position
        if not self._table.transition.begin(move_func, row, col):
            logger.debug("Transition already in progress, ignoring move")
        return True

    def _speak_cell(self) -> bool:
        if not self._table.announcer.enabled:
            return False
        row, col = self._table.selection.position
        text = describe_cell(self._table.data, row, col)
        if text:
            self._table.announcer.announce(text)
        return True

    def _speak_help(self) -> bool:
        if not self._table.announcer.enabled:
            return False
        self._table.announcer.announce(accessibility_help_text(self._table.config.keybindings))
        return True
