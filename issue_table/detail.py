"""Detail view: render the selected record and page it.

The caller's view-mode function returns a (fetch, render) pair. Both run
on a background task while the "secondary" page tells the user to wait;
the rendered text is then paged with the terminal suspended.
"""

import logging
from typing import Any, Callable, Tuple

from issue_table.data import TableData
from issue_table.pager import pager_out
from issue_table.screen import TerminalSurface
from issue_table.tasks import TaskRunner

logger = logging.getLogger(__name__)

SECONDARY_PAGE = "secondary"

FetchFunc = Callable[[], Any]
RenderFunc = Callable[[Any], str]
ViewModeFunc = Callable[[int, int, TableData], Tuple[FetchFunc, RenderFunc]]


class DetailRenderError(Exception):
    """Raised by a render function when there is nothing to page."""


class DetailFlow:
    """Runs the view-mode callback and pages its output."""

    def __init__(
        self,
        surface: TerminalSurface,
        runner: TaskRunner,
        pager: Callable[[str], None] = pager_out,
    ):
        self._surface = surface
        self._runner = runner
        self.pager = pager

    def open(self, view_mode_func: ViewModeFunc, row: int, col: int, data: TableData) -> None:
        """Start the flow for the given cell. Called on the render thread."""
        self._runner.spawn("detail", lambda: self._run(view_mode_func, row, col, data))

    def _run(self, view_mode_func: ViewModeFunc, row: int, col: int, data: TableData) -> None:
        self._surface.post(lambda: self._surface.show_page(SECONDARY_PAGE))
        self._surface.draw()
        try:
            fetch, render = view_mode_func(row, col, data)
            try:
                out = render(fetch())
            except DetailRenderError as e:
                logger.warning(f"Nothing to show for row {row}: {e}")
            else:
                self._surface.suspend(lambda: self.pager(out))
        finally:
            self._surface.post(lambda: self._surface.hide_page(SECONDARY_PAGE))
            self._surface.draw()
