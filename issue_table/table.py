"""Interactive table component.

Usage:
    table = Table(
        config=TableConfig.from_env(footer_text="Showing 3 issues"),
        callbacks=TableCallbacks(copy_func=copy_row, move_func=load_transitions),
    )
    table.paint([
        ["KEY", "STATUS", "SUMMARY"],
        ["PROJ-1", "Open", "Fix login"],
    ])

paint() blocks until the user quits. The first row is the header.

Pages:
    primary    the grid and its footer
    help       key reference ("?")
    secondary  "Please wait..." while a background task prepares a view
    action     the transition modal ("m")
"""

import logging
import shutil
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from issue_table import style as styles
from issue_table.announcer import Announcer
from issue_table.config import TableConfig
from issue_table.data import NoDataError, TableData
from issue_table.detail import DetailFlow, ViewModeFunc
from issue_table.dispatcher import HELP_PAGE, Action, KeyDispatcher
from issue_table.screen import PRIMARY_PAGE, Screen, TerminalSurface
from issue_table.selection import SelectionTracker
from issue_table.style import build_style
from issue_table.tasks import TaskRunner, ThreadTaskRunner
from issue_table.transition import (
    ACTION_PAGE,
    SECONDARY_PAGE,
    MoveFunc,
    TransitionFlow,
    TransitionState,
)
from issue_table.widgets import ActionModal, InfoModal, TableView, WaitModal, pad

logger = logging.getLogger(__name__)

# Fired when a user presses enter on a row
SelectedFunc = Callable[[int, int, TableData], None]
# Fired on refresh; usually reloads the data and paints again
RefreshFunc = Callable[[], None]
CopyFunc = Callable[[int, int, TableData], None]
CopyKeyFunc = Callable[[int, int, TableData], None]


@dataclass
class TableCallbacks:
    """Caller-supplied behavior. Every entry is optional; a missing one
    disables the corresponding key."""
    selected_func: Optional[SelectedFunc] = None
    view_mode_func: Optional[ViewModeFunc] = None
    move_func: Optional[MoveFunc] = None
    refresh_func: Optional[RefreshFunc] = None
    copy_func: Optional[CopyFunc] = None
    copy_key_func: Optional[CopyKeyFunc] = None


class Table:
    """Table layout with keyboard navigation, secondary views and narration."""

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        callbacks: Optional[TableCallbacks] = None,
        surface: Optional[TerminalSurface] = None,
        runner: Optional[TaskRunner] = None,
    ):
        self.config = config or TableConfig()
        self.callbacks = callbacks or TableCallbacks()
        self.surface: TerminalSurface = surface or Screen()
        self._runner: TaskRunner = runner or ThreadTaskRunner(on_error=self.surface.fail)

        self.announcer = Announcer(self.config.accessibility, log_path=self.config.announce_log)
        self.selection = SelectionTracker(self.announcer)

        self.view = TableView(
            self.selection,
            fixed_columns=self.config.fixed_columns,
            col_pad=self.config.col_pad,
            max_col_width=self.config.max_col_width,
        )
        self.footer = Window(
            FormattedTextControl(lambda: [(styles.FOOTER, pad(self.config.footer_text, 1))]),
            height=2,
            wrap_lines=True,
        )
        self.help = InfoModal(title="USAGE", text=self.config.resolved_help_text())
        self.secondary = WaitModal()
        self.action = ActionModal()

        self.dispatcher = KeyDispatcher(self)
        self.transition = TransitionFlow(self, self.surface, self.action, self.announcer, self._runner)
        self.detail = DetailFlow(self.surface, self._runner)

        self._data = TableData([])
        self._render_count = 0
        self._exit_requested = False
        self._refresh_requested = False

        primary = HSplit([
            self.view.container,
            Window(height=1),  # Spacer between grid and footer
            self.footer,
        ])
        self.surface.add_page(PRIMARY_PAGE, primary, True)
        self.surface.add_page(SECONDARY_PAGE, self.secondary.container, False)
        self.surface.add_page(HELP_PAGE, self.help.container, False)
        self.surface.add_page(ACTION_PAGE, self.action.container, False)

    @property
    def data(self) -> TableData:
        return self._data

    @property
    def render_count(self) -> int:
        """How many times the grid was (re)built from the data."""
        return self._render_count

    def paint(self, data: Union[TableData, Sequence[Sequence[str]]]) -> None:
        """Paint the table and run it until the user leaves.

        The first row is treated as the table header.

        Raises:
            NoDataError: data has no rows at all.
            SystemExit: the user quit.
        """
        if not isinstance(data, TableData):
            data = TableData(data)
        if len(data) == 0:
            raise NoDataError()

        self._data = data
        self._exit_requested = False
        self._refresh_requested = False
        self._render(reset_selection=True)
        self._schedule_initial_announcement()

        self.surface.run(self._build_key_bindings(), build_style(self.config.style))
        self._after_run()

    def repaint(self) -> None:
        """Rebuild the grid from the current data. Render thread.

        The cursor stays where it was.
        """
        self._render(reset_selection=False)
        self.surface.draw()

    def _render(self, reset_selection: bool) -> None:
        if reset_selection:
            self.selection.reset(self._data)
        self.view.set_data(self._data)
        self._render_count += 1
        logger.debug(f"Rendered {self._data.data_row_count} rows")

    def _schedule_initial_announcement(self) -> None:
        if not self.announcer.enabled or self._data.data_row_count < 1:
            return

        def announce_initial() -> None:
            if self.config.footer_text:
                self.announcer.announce(self.config.footer_text)
            self.selection.announce_current()

        self.surface.call_later(self.config.initial_announce_delay, announce_initial)

    def request_exit(self) -> None:
        self._exit_requested = True
        self.surface.stop()

    def request_refresh(self) -> None:
        self._refresh_requested = True
        self.surface.stop()

    def _after_run(self) -> None:
        if self._exit_requested:
            sys.exit(0)
        if self._refresh_requested:
            self._refresh_requested = False
            if self.callbacks.refresh_func is not None:
                self.callbacks.refresh_func()

    def select_row(self) -> None:
        """Fire selected_func for the row under the cursor."""
        if self.callbacks.selected_func is None or not self.selection.has_selection:
            return
        row, col = self.selection.position
        self.callbacks.selected_func(row, col, self._data)

    def _page_size(self) -> int:
        # Header, spacer and footer take four lines
        return max(shutil.get_terminal_size().lines - 4, 1)

    def _build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()
        keys = self.config.keybindings
        surface = self.surface

        on_primary = Condition(lambda: surface.front_page() == PRIMARY_PAGE)
        on_help = Condition(lambda: surface.front_page() == HELP_PAGE)
        on_modal = Condition(lambda: surface.front_page() in (ACTION_PAGE, SECONDARY_PAGE))
        on_action = Condition(lambda: surface.front_page() == ACTION_PAGE)
        choosing = Condition(lambda: self.transition.state == TransitionState.AWAITING_CHOICE)

        def bind(action: str, handler: Callable[[], object], filter) -> None:
            @kb.add(*keys.get_key_args(action), filter=filter)
            def _(event) -> None:
                handler()

        def available(action: Action) -> Condition:
            return Condition(lambda: self.dispatcher.available(action))

        # Primary page
        for action in Action:
            bind(action.value, lambda a=action: self.dispatcher.dispatch(a), on_primary & available(action))
        bind("refresh_alt", lambda: self.dispatcher.dispatch(Action.REFRESH), on_primary & available(Action.REFRESH))
        bind("close", self.surface.stop, on_primary)
        bind("select", self.select_row, on_primary)
        bind("nav_up", lambda: self.selection.move_rows(-1), on_primary)
        bind("nav_down", lambda: self.selection.move_rows(1), on_primary)
        bind("nav_left", lambda: self.selection.move_cols(-1), on_primary)
        bind("nav_right", lambda: self.selection.move_cols(1), on_primary)
        bind("page_up", lambda: self.selection.move_rows(-self._page_size()), on_primary)
        bind("page_down", lambda: self.selection.move_rows(self._page_size()), on_primary)
        bind("top", self.selection.first, on_primary)
        bind("bottom", self.selection.last, on_primary)

        # Help page
        def close_help() -> None:
            surface.hide_page(HELP_PAGE)

        bind("close", close_help, on_help)
        bind("quit", close_help, on_help)

        # Transition modal
        bind("close", self.transition.cancel, on_modal)
        bind("quit", self.transition.cancel, on_modal)
        bind("nav_left", self.action.focus_prev, on_action & choosing)
        bind("prev_option", self.action.focus_prev, on_action & choosing)
        bind("nav_right", self.action.focus_next, on_action & choosing)
        bind("next_option", self.action.focus_next, on_action & choosing)
        bind("select", self.action.press, on_action & choosing)

        return kb
