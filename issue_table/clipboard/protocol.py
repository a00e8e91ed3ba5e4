"""Clipboard provider protocol."""

from typing import Protocol


class ClipboardProvider(Protocol):
    """Anything that can put text on the system clipboard."""

    def copy(self, text: str) -> bool:
        """Copy text to clipboard.

        Returns:
            Success hint (OSC 52 cannot confirm delivery).
        """
        ...

    @property
    def name(self) -> str:
        """Human-readable name for status messages."""
        ...
