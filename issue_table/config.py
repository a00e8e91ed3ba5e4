"""Table configuration.

The accessibility switch and the announcement channel are read from the
environment once, here, and passed down explicitly. Keybinding files and
overrides are loaded through issue_table.keybindings.

Env vars:
    ISSUE_TABLE_ACCESSIBILITY_MODE: 1/true/yes/on enables narration
    JIRA_ACCESSIBILITY_MODE: legacy switch, enables narration when set
    ISSUE_TABLE_ANNOUNCE_LOG: write announcements to this file, not stderr
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from issue_table.keybindings import KeybindingConfig, generate_help_text, load_keybindings
from issue_table.style import TableStyle

DEFAULT_COL_PAD = 1
DEFAULT_COL_WIDTH = 80

# Delay before the first announcement after a paint, so the surface has
# settled on its initial selection first.
INITIAL_ANNOUNCE_DELAY = 0.1

_TRUTHY = ("1", "true", "yes", "on")


def accessibility_from_env() -> bool:
    """Read the accessibility switch from the environment."""
    if os.environ.get("ISSUE_TABLE_ACCESSIBILITY_MODE", "").lower() in _TRUTHY:
        return True
    return "JIRA_ACCESSIBILITY_MODE" in os.environ


@dataclass
class TableConfig:
    """Static configuration for one Table."""
    accessibility: bool = False
    announce_log: Optional[str] = None
    footer_text: str = ""
    help_text: Optional[str] = None  # None = generated from keybindings
    fixed_columns: int = 0
    col_pad: int = DEFAULT_COL_PAD
    max_col_width: int = DEFAULT_COL_WIDTH
    style: TableStyle = field(default_factory=TableStyle)
    keybindings: KeybindingConfig = field(default_factory=KeybindingConfig)
    initial_announce_delay: float = INITIAL_ANNOUNCE_DELAY

    @classmethod
    def from_env(cls, accessibility: Optional[bool] = None, **overrides) -> "TableConfig":
        """Create config from environment variables and config files.

        Args:
            accessibility: Explicit override (e.g. from a CLI flag). When
                           None, the environment decides.
            **overrides: Any other TableConfig field.
        """
        if accessibility is None:
            accessibility = accessibility_from_env()
        overrides.setdefault("keybindings", load_keybindings())
        return cls(
            accessibility=accessibility,
            announce_log=os.environ.get("ISSUE_TABLE_ANNOUNCE_LOG") or None,
            **overrides,
        )

    def resolved_help_text(self) -> str:
        if self.help_text is not None:
            return self.help_text
        return generate_help_text(self.keybindings, self.accessibility)
