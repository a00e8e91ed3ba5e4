"""Clipboard configuration."""

import logging
import os
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ClipboardMechanism(Enum):
    """Supported clipboard mechanisms."""
    OSC52 = "osc52"
    NATIVE = "native"  # pbcopy/xclip/clip.exe


@dataclass
class ClipboardConfig:
    """How copied rows reach the clipboard.

    field_separator joins the cells of a copied row.
    """
    mechanism: ClipboardMechanism = ClipboardMechanism.OSC52
    field_separator: str = "\t"

    @classmethod
    def from_env(cls) -> "ClipboardConfig":
        """Create config from environment variables.

        Env vars:
            ISSUE_TABLE_COPY_MECHANISM: osc52 (default) or native
        """
        mechanism_str = os.environ.get("ISSUE_TABLE_COPY_MECHANISM", "osc52").lower()
        try:
            mechanism = ClipboardMechanism(mechanism_str)
        except ValueError:
            logger.warning(f"Unknown clipboard mechanism '{mechanism_str}', using osc52")
            mechanism = ClipboardMechanism.OSC52
        return cls(mechanism=mechanism)
