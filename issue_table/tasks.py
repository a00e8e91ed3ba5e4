"""Background tasks for work that must not block the render thread."""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TaskRunner(Protocol):
    """Starts a callable off the render thread."""

    def spawn(self, name: str, target: Callable[[], None]) -> None:
        ...


class ThreadTaskRunner:
    """Runs each task on its own daemon thread.

    An exception escaping a task is logged and handed to on_error, which
    the table wires to the surface so the failure reaches the process
    instead of dying silently with the thread.
    """

    def __init__(self, on_error: Optional[Callable[[BaseException], None]] = None):
        self._on_error = on_error

    def set_error_handler(self, on_error: Callable[[BaseException], None]) -> None:
        self._on_error = on_error

    def spawn(self, name: str, target: Callable[[], None]) -> None:
        def run() -> None:
            try:
                target()
            except Exception as e:
                logger.exception(f"Background task '{name}' failed")
                if self._on_error:
                    self._on_error(e)

        thread = threading.Thread(target=run, name=f"issue-table-{name}", daemon=True)
        thread.start()
        logger.debug(f"Started background task '{name}'")
