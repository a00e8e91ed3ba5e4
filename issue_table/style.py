"""Table styling.

Only the selection highlight is user-configurable. Header, modal and
footer styles are fixed class names resolved through one prompt_toolkit
Style, so every window in the layout picks its colors from the same place.
"""

from dataclasses import dataclass
from typing import Dict

from prompt_toolkit.styles import Style

# Style classes used by the widgets
HEADER = "class:table.header"
CELL = "class:table.cell"
SELECTED = "class:table.selected"
SELECTED_CELL = "class:table.selected.cell"
FOOTER = "class:table.footer"
MODAL = "class:modal"
MODAL_TITLE = "class:modal.title"
MODAL_TEXT = "class:modal.text"
BUTTON = "class:modal.button"
BUTTON_FOCUSED = "class:modal.button.focused"
INFO = "class:modal.footer.info"
ERROR = "class:modal.footer.error"


@dataclass
class TableStyle:
    """Selection highlight of the table.

    Colors are anything prompt_toolkit accepts: ANSI names ("ansiblue"),
    named colors ("darkcyan") or hex ("#005f87"). Empty means terminal
    default.
    """
    selection_background: str = ""
    selection_foreground: str = ""
    selection_bold: bool = False

    def selection_style(self) -> str:
        """Convert to a prompt_toolkit style string."""
        parts = []
        if self.selection_background:
            parts.append(f"bg:{self.selection_background}")
        if self.selection_foreground:
            parts.append(self.selection_foreground)
        if self.selection_bold:
            parts.append("bold")
        # Reverse video when nothing is configured, so the cursor is visible
        return " ".join(parts) if parts else "reverse"


_BASE_RULES: Dict[str, str] = {
    "table.header": "bold #fffafa bg:#008b8b",
    "table.cell": "",
    "table.selected.cell": "underline",
    "table.footer": "",
    "modal": "bg:#303030 #d0d0d0",
    "modal.title": "bold",
    "modal.text": "",
    "modal.button": "bg:#4e4e4e #d0d0d0",
    "modal.button.focused": "bg:#5fafd7 #000000 bold",
    "modal.footer.info": "#8a8a8a",
    "modal.footer.error": "#ff5f5f",
}


def build_style(table_style: TableStyle) -> Style:
    """Build the prompt_toolkit Style for the whole table layout."""
    rules = dict(_BASE_RULES)
    rules["table.selected"] = table_style.selection_style()
    return Style.from_dict(rules)
