"""Screen reader announcements.

Announcements are written as plain marker lines to the accessibility
channel (stderr by default, or a log file)::

    [SCREEN_READER_ANNOUNCEMENT] 3 of 12: PROJ-7, In Progress, Fix login

Screen readers and helper scripts watch the channel for the marker.
Writes are serialized so that announcements made from the render thread
and from background tasks come out in the order they were made.
"""

import logging
import sys
import threading
from typing import IO, Optional

logger = logging.getLogger(__name__)

ANNOUNCEMENT_MARKER = "[SCREEN_READER_ANNOUNCEMENT]"


def format_announcement(text: str) -> str:
    """Format one announcement as a single marker line."""
    return f"\n{ANNOUNCEMENT_MARKER} {text}\n"


class Announcer:
    """Emits narration for assistive technology.

    Every call is a no-op unless accessibility mode is enabled. Delivery is
    fire-and-forget: one write and flush per announcement, no acknowledgment.
    """

    def __init__(
        self,
        enabled: bool,
        stream: Optional[IO[str]] = None,
        log_path: Optional[str] = None,
    ):
        """Initialize the announcer.

        Args:
            enabled: Whether accessibility mode is active.
            stream: Stream to write to. Defaults to sys.stderr at write time.
            log_path: If set (and no stream given), announcements are
                      appended to this file instead of stderr.
        """
        self._enabled = enabled
        self._stream = stream
        self._log_path = log_path
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def announce(self, text: str) -> None:
        """Deliver an announcement if accessibility mode is on."""
        if not self._enabled or not text:
            return
        line = format_announcement(text)
        with self._lock:
            if self._stream is None and self._log_path:
                with open(self._log_path, "a", encoding="utf-8") as f:
                    f.write(line)
            else:
                stream = self._stream or sys.stderr
                stream.write(line)
                stream.flush()
        logger.debug(f"Announced: {text}")
