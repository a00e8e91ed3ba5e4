"""Clipboard support for the copy and copy-key actions."""

from issue_table.clipboard.config import ClipboardConfig, ClipboardMechanism
from issue_table.clipboard.native import NativeProvider
from issue_table.clipboard.osc52 import OSC52Provider
from issue_table.clipboard.protocol import ClipboardProvider


def create_provider(config: ClipboardConfig) -> ClipboardProvider:
    """Factory to create clipboard provider from config."""
    if config.mechanism == ClipboardMechanism.OSC52:
        return OSC52Provider()
    if config.mechanism == ClipboardMechanism.NATIVE:
        return NativeProvider()
    raise ValueError(f"Unknown clipboard mechanism: {config.mechanism}")


__all__ = [
    "ClipboardConfig",
    "ClipboardMechanism",
    "ClipboardProvider",
    "NativeProvider",
    "OSC52Provider",
    "create_provider",
]
