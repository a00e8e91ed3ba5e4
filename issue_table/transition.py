"""Transition ("move") flow.

Lets the user move the selected record to another state through the
action modal::

    IDLE -> OPTIONS_SHOWN -> AWAITING_CHOICE -> PROCESSING -+-> SUCCESS -> IDLE
                                   ^                        |
                                   +-------- FAILED <-------+

Escape or q cancels from OPTIONS_SHOWN or AWAITING_CHOICE. Once the
handler is running the modal ignores input until it returns.

Option loading and the handler call run on background tasks. Every UI change is
posted to the render thread and followed by a redraw request. Each
begin() starts a new generation; results from a cancelled flow are dropped.
"""

import enum
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from issue_table import style as styles
from issue_table.announcer import Announcer
from issue_table.screen import TerminalSurface
from issue_table.tasks import TaskRunner
from issue_table.widgets import ActionModal

if TYPE_CHECKING:
    from issue_table.table import Table

logger = logging.getLogger(__name__)

ACTION_PAGE = "action"
SECONDARY_PAGE = "secondary"

CONTEXT_TEXT = "Use TAB or ← → to navigate, ENTER to select, ESC or q to cancel."
PROCESSING_TEXT = "Processing. Please wait..."

# Applies the new state to the row/column that was transitioned
RefreshTableStateFunc = Callable[[int, int, str], None]


class TransitionError(Exception):
    """Raised by a move handler to report a descriptive failure."""


class TransitionState(enum.Enum):
    IDLE = "idle"
    OPTIONS_SHOWN = "options_shown"
    AWAITING_CHOICE = "awaiting_choice"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class TransitionRequest:
    """Everything needed for one invocation of the move action.

    Attributes:
        key: Identifier of the selected record (e.g. "PROJ-12").
        candidate_states: Target states offered as buttons, in order.
        handler: Performs the transition to the chosen label. Raises on
                 failure; the exception text is shown to the user.
        current_state: State to focus initially.
        on_success: Called with (row, col, label) after a successful
                    transition so the caller can update the table data.
    """
    key: str
    candidate_states: List[str]
    handler: Callable[[str], None]
    current_state: str = ""
    on_success: Optional[RefreshTableStateFunc] = None

    def __post_init__(self) -> None:
        # Buttons are unique by label; keep the first occurrence
        seen = set()
        unique = []
        for label in self.candidate_states:
            if label not in seen:
                seen.add(label)
                unique.append(label)
        self.candidate_states = unique

    def default_index(self) -> int:
        """Index of current_state in candidate_states, 0 if absent."""
        for i, label in enumerate(self.candidate_states):
            if label == self.current_state:
                return i
        return 0


MoveFunc = Callable[[int, int], TransitionRequest]


class TransitionFlow:
    """Drives the action modal for one move at a time."""

    def __init__(
        self,
        table: "Table",
        surface: TerminalSurface,
        modal: ActionModal,
        announcer: Announcer,
        runner: TaskRunner,
    ):
        self._table = table
        self._surface = surface
        self._modal = modal
        self._announcer = announcer
        self._runner = runner
        self._lock = threading.Lock()
        self._state = TransitionState.IDLE
        self._request: Optional[TransitionRequest] = None
        # Bumped by begin() and cancel(); work from an older flow is dropped
        self._generation = 0
        self._target: Tuple[int, int] = (-1, -1)

    @property
    def state(self) -> TransitionState:
        return self._state

    @property
    def request(self) -> Optional[TransitionRequest]:
        return self._request

    @property
    def active(self) -> bool:
        return self._state != TransitionState.IDLE

    def _set_state(self, state: TransitionState) -> None:
        with self._lock:
            self._state = state
        logger.info(f"Transition state -> {state.value}")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _post(self, fn: Callable[[], None]) -> None:
        self._surface.post(fn)
        self._surface.draw()

    def begin(self, move_func: MoveFunc, row: int, col: int) -> bool:
        """Start a flow for the given cell. Called on the render thread.

        Returns:
            False if a flow is already in progress.
        """
        with self._lock:
            if self._state != TransitionState.IDLE:
                return False
            self._state = TransitionState.OPTIONS_SHOWN
            self._generation += 1
            generation = self._generation
        self._runner.spawn("transition", lambda: self._load_options(move_func, row, col, generation))
        return True

    def _load_options(self, move_func: MoveFunc, row: int, col: int, generation: int) -> None:
        """Background: fetch the candidate states and show the modal."""
        if self._is_current(generation):
            # Must be heard before the option list
            self._announcer.announce(CONTEXT_TEXT)

        def show_wait() -> None:
            if not self._is_current(generation):
                return
            self._surface.show_page(SECONDARY_PAGE)
            self._surface.send_to_front(SECONDARY_PAGE)
            self._modal.set_footer(CONTEXT_TEXT, styles.INFO)

        self._post(show_wait)

        try:
            request = move_func(row, col)
        except Exception as e:
            logger.warning(f"Could not load transitions for row {row}: {e}")
            with self._lock:
                current = self._is_current(generation)
                if current:
                    self._state = TransitionState.IDLE
            if not current:
                return
            self._announcer.announce(f"Error: {e}")

            def hide_wait() -> None:
                if self._is_current(generation):
                    self._surface.hide_page(SECONDARY_PAGE)

            self._post(hide_wait)
            return

        with self._lock:
            live = self._is_current(generation) and self._state == TransitionState.OPTIONS_SHOWN
            if live:
                self._request = request
                self._target = (row, col)

        if not live:
            logger.debug(f"Options for {request.key} arrived after cancel, dropping")
            return

        self._announcer.announce(
            f"Transition menu for {request.key}. "
            f"Available options: {', '.join(request.candidate_states)}"
        )

        def show_options() -> None:
            if not self._is_current(generation) or self._state != TransitionState.OPTIONS_SHOWN:
                return
            self._modal.clear_buttons().add_buttons(request.candidate_states)
            self._modal.set_focus(request.default_index())
            self._modal.set_text(f"Select desired state to transition {request.key} to:")
            self._modal.on_done = self.choose
            self._surface.hide_page(SECONDARY_PAGE)
            self._surface.show_page(ACTION_PAGE)
            self._set_state(TransitionState.AWAITING_CHOICE)

        self._post(show_options)

    def cancel(self) -> bool:
        """Close the modal without running the handler. Render thread.

        Returns:
            False if there was nothing to cancel (idle, or processing).
        """
        with self._lock:
            if self._state not in (TransitionState.OPTIONS_SHOWN, TransitionState.AWAITING_CHOICE):
                return False
            self._state = TransitionState.IDLE
            self._request = None
            self._generation += 1
        logger.info("Transition cancelled")
        self._modal.on_done = None
        self._surface.hide_page(ACTION_PAGE)
        self._surface.hide_page(SECONDARY_PAGE)
        self._surface.draw()
        return True

    def choose(self, index: int, label: str) -> None:
        """User confirmed a button. Render thread."""
        with self._lock:
            if self._state != TransitionState.AWAITING_CHOICE or self._request is None:
                return
            self._state = TransitionState.PROCESSING
            request = self._request
            row, col = self._target
            generation = self._generation
        logger.info(f"Transition state -> {TransitionState.PROCESSING.value} ({label})")

        self._modal.set_footer(PROCESSING_TEXT, styles.INFO)
        self._announcer.announce(PROCESSING_TEXT)
        self._surface.force_draw()

        self._runner.spawn(
            "transition-handler",
            lambda: self._process(request, label, row, col, generation),
        )

    def _process(self, request: TransitionRequest, label: str, row: int, col: int, generation: int) -> None:
        """Background: run the handler and apply the outcome."""
        try:
            request.handler(label)
        except Exception as e:
            self._fail(e, generation)
            return
        self._succeed(request, label, row, col, generation)

    def _fail(self, error: Exception, generation: int) -> None:
        self._set_state(TransitionState.FAILED)
        logger.warning(f"Transition handler failed: {error}")
        message = f"Error: {error}"

        def show_error() -> None:
            if not self._is_current(generation):
                return
            self._modal.set_footer(message, styles.ERROR)
            self._set_state(TransitionState.AWAITING_CHOICE)

        self._announcer.announce(message)
        self._post(show_error)

    def _succeed(self, request: TransitionRequest, label: str, row: int, col: int, generation: int) -> None:
        self._set_state(TransitionState.SUCCESS)

        def close() -> None:
            self._modal.on_done = None
            self._surface.hide_page(ACTION_PAGE)
            self._modal.set_footer(CONTEXT_TEXT, styles.INFO)

        self._post(close)
        self._announcer.announce(f"Successfully transitioned {request.key} to {label}")

        if request.on_success is not None:
            request.on_success(row, col, label)

        with self._lock:
            if self._is_current(generation):
                self._request = None
                self._state = TransitionState.IDLE
        logger.info(f"Transition state -> {TransitionState.IDLE.value}")

        self._post(self._table.repaint)
