"""Keybinding configuration for the interactive table.

Allows users to customize keybindings via:
1. JSON config file: .issue-table/keybindings.json (project-level)
                     ~/.issue-table/keybindings.json (user-level fallback)
2. Terminal-specific profiles: .issue-table/keybindings.<terminal>.json
3. Environment variables: ISSUE_TABLE_KEY_<ACTION>=<key>
4. Profile override: ISSUE_TABLE_KEYBINDING_PROFILE=<profile>

Key syntax follows prompt_toolkit conventions:
- Simple keys: "enter", "tab", "q", "v", "?"
- Control: "c-r", "c-k", "c-s" (Ctrl+R, Ctrl+K, Ctrl+S)
- Function keys: "f5"
- Special: "pageup", "pagedown", "home", "end", "up", "down"
- Multi-key sequences: ["escape", "enter"] for Escape then Enter
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Type alias for keybinding: either a single key or a sequence
KeyBinding = Union[str, List[str]]

ENV_PREFIX = "ISSUE_TABLE_KEY_"
CONFIG_DIR = ".issue-table"


def normalize_key(key: KeyBinding) -> KeyBinding:
    """Normalize a keybinding to consistent format.

    Handles string parsing like "escape enter" -> ["escape", "enter"]
    """
    if isinstance(key, list):
        return key
    if " " in key and not key.startswith(" ") and not key.endswith(" "):
        parts = key.split()
        if len(parts) > 1:
            return parts
    return key


def key_to_args(key: KeyBinding) -> tuple:
    """Convert a KeyBinding to args suitable for kb.add()."""
    if isinstance(key, list):
        return tuple(key)
    return (key,)


_SPECIAL_KEY_NAMES = {
    "escape": "Esc",
    "enter": "Enter",
    "space": "Space",
    "tab": "Tab",
    "s-tab": "Shift+Tab",
    "pageup": "PgUp",
    "pagedown": "PgDn",
    "home": "Home",
    "end": "End",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
}


def format_key_for_display(key: KeyBinding) -> str:
    """Format a keybinding for the help page.

    - "c-k" -> "Ctrl+K"
    - "f5" -> "F5"
    - "escape" -> "Esc"
    - ["escape", "enter"] -> "Esc Enter"
    """
    if isinstance(key, list):
        return " ".join(format_key_for_display(k) for k in key)

    key_str = str(key)
    lowered = key_str.lower()

    if lowered.startswith("c-"):
        return f"Ctrl+{lowered[2:].upper()}"

    if lowered.startswith("f") and lowered[1:].isdigit():
        return lowered.upper()

    if lowered in _SPECIAL_KEY_NAMES:
        return _SPECIAL_KEY_NAMES[lowered]

    # Single characters keep their case ("?" and "q" read better as typed)
    if len(key_str) == 1:
        return key_str

    return key_str.capitalize()


def format_key_for_speech(key: KeyBinding) -> str:
    """Format a keybinding the way a screen reader should say it.

    Same as format_key_for_display but spells out modifiers:
    "c-s" -> "Control+S", "escape" -> "Escape".
    """
    if isinstance(key, list):
        return " then ".join(format_key_for_speech(k) for k in key)
    lowered = str(key).lower()
    if lowered.startswith("c-"):
        return f"Control+{lowered[2:].upper()}"
    if lowered == "escape":
        return "Escape"
    return format_key_for_display(key)


# Default keybindings for the table pages
DEFAULT_KEYBINDINGS: Dict[str, KeyBinding] = {
    # Primary page actions
    "quit": "q",
    "close": "escape",
    "refresh": "c-r",
    "refresh_alt": "f5",
    "copy": "c",
    "copy_key": "c-k",
    "help": "?",
    "view": "v",
    "move": "m",
    "select": "enter",

    # Accessibility (only active in accessibility mode)
    "speak_cell": "c-s",
    "speak_help": "c-a",

    # Navigation
    "nav_up": "up",
    "nav_down": "down",
    "nav_left": "left",
    "nav_right": "right",
    "page_up": "pageup",
    "page_down": "pagedown",
    "top": "home",
    "bottom": "end",

    # Action modal
    "next_option": "tab",
    "prev_option": "s-tab",
}


def _default(action: str):
    def factory() -> KeyBinding:
        value = DEFAULT_KEYBINDINGS[action]
        return list(value) if isinstance(value, list) else value
    return field(default_factory=factory)


def detect_terminal() -> str:
    """Detect the current terminal type from environment variables.

    Returns:
        Terminal identifier string (lowercase), e.g. "tmux", "iterm2".
        Returns "default" if no specific terminal is detected.
    """
    override = os.environ.get("ISSUE_TABLE_KEYBINDING_PROFILE", "").strip().lower()
    if override:
        return override

    term_program = os.environ.get("TERM_PROGRAM", "").lower()
    term = os.environ.get("TERM", "").lower()

    if os.environ.get("TMUX"):
        return "tmux"
    if term.startswith("screen"):
        return "screen"
    if "iterm" in term_program:
        return "iterm2"
    if term_program == "vscode" or os.environ.get("VSCODE_INJECTION"):
        return "vscode"
    if os.environ.get("WT_SESSION"):
        return "windows-terminal"
    if term_program == "apple_terminal":
        return "apple-terminal"
    if term.startswith("xterm"):
        return "xterm"
    return "default"


@dataclass
class KeybindingConfig:
    """Keybindings for the table, its help page and the action modal.

    Values are either a single key ("c-r") or a key sequence
    (["escape", "enter"]). Space-separated strings from JSON or the
    environment are converted to sequences.
    """
    quit: KeyBinding = _default("quit")
    close: KeyBinding = _default("close")
    refresh: KeyBinding = _default("refresh")
    refresh_alt: KeyBinding = _default("refresh_alt")
    copy: KeyBinding = _default("copy")
    copy_key: KeyBinding = _default("copy_key")
    help: KeyBinding = _default("help")
    view: KeyBinding = _default("view")
    move: KeyBinding = _default("move")
    select: KeyBinding = _default("select")

    speak_cell: KeyBinding = _default("speak_cell")
    speak_help: KeyBinding = _default("speak_help")

    nav_up: KeyBinding = _default("nav_up")
    nav_down: KeyBinding = _default("nav_down")
    nav_left: KeyBinding = _default("nav_left")
    nav_right: KeyBinding = _default("nav_right")
    page_up: KeyBinding = _default("page_up")
    page_down: KeyBinding = _default("page_down")
    top: KeyBinding = _default("top")
    bottom: KeyBinding = _default("bottom")

    next_option: KeyBinding = _default("next_option")
    prev_option: KeyBinding = _default("prev_option")

    # Profile metadata (not a keybinding)
    _profile: str = field(default="default")
    _profile_source: str = field(default="default")

    def get_key_args(self, action: str) -> tuple:
        """Get the key arguments for kb.add() for a given action."""
        if action not in DEFAULT_KEYBINDINGS:
            raise ValueError(f"Unknown keybinding action: {action}")
        return key_to_args(getattr(self, action))

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def profile_source(self) -> str:
        return self._profile_source

    def to_dict(self) -> Dict[str, KeyBinding]:
        return {action: getattr(self, action) for action in DEFAULT_KEYBINDINGS}

    @classmethod
    def from_dict(cls, data: Dict[str, KeyBinding]) -> "KeybindingConfig":
        """Create config from a dictionary.

        Unknown actions are ignored with a warning; keys starting with "_"
        (comments, embedded profiles) are skipped silently.
        """
        kwargs = {}
        for action, value in data.items():
            if action.startswith("_"):
                continue
            if action in DEFAULT_KEYBINDINGS:
                kwargs[action] = normalize_key(value)
            else:
                logger.warning(f"Unknown keybinding action '{action}' - ignoring")
        return cls(**kwargs)

    @classmethod
    def from_env(cls) -> Dict[str, KeyBinding]:
        """Collect overrides from ISSUE_TABLE_KEY_<ACTION> variables.

        Returns only the actions that were actually set.
        """
        overrides = {}
        for env_key, value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue
            action = env_key[len(ENV_PREFIX):].lower()
            if action in DEFAULT_KEYBINDINGS:
                overrides[action] = normalize_key(value)
            else:
                logger.warning(f"Unknown keybinding action in {env_key} - ignoring")
        return overrides

    @classmethod
    def from_file(
        cls,
        project_path: str = f"{CONFIG_DIR}/keybindings.json",
        user_path: Optional[str] = None,
        profile: Optional[str] = None,
    ) -> Optional["KeybindingConfig"]:
        """Load keybindings from JSON with terminal profile support.

        Lookup order:
        1. Profile file next to the project or user config
           (keybindings.<profile>.json)
        2. "_profiles": {"<profile>": {...}} embedded in the base config
        3. The base config itself

        Returns:
            KeybindingConfig if a config file was found and loaded, None otherwise.
        """
        if user_path is None:
            user_path = str(Path.home() / CONFIG_DIR / "keybindings.json")
        if profile is None:
            profile = detect_terminal()

        if profile != "default":
            for base in (project_path, user_path):
                path = Path(base).parent / f"keybindings.{profile}.json"
                data = _read_json(path)
                if data is not None:
                    logger.info(f"Loaded keybindings profile '{profile}' from {path}")
                    config = cls.from_dict(data)
                    config._profile = profile
                    config._profile_source = str(path)
                    return config

        for base in (project_path, user_path):
            data = _read_json(Path(base))
            if data is None:
                continue
            profiles = data.get("_profiles", {})
            if profile != "default" and profile in profiles:
                merged = {k: v for k, v in data.items() if not k.startswith("_")}
                merged.update(profiles[profile])
                logger.info(f"Loaded keybindings profile '{profile}' (embedded) from {base}")
                config = cls.from_dict(merged)
                config._profile = profile
                config._profile_source = f"{base} [embedded]"
                return config

            logger.info(f"Loaded keybindings from {base}")
            config = cls.from_dict(data)
            config._profile_source = base
            return config

        return None


def _read_json(path: Path) -> Optional[dict]:
    """Read a JSON object from path; None if missing or invalid."""
    if not path.exists():
        return None
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in keybindings file {path}: {e}")
        return None
    except OSError as e:
        logger.warning(f"Error reading keybindings file {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Keybindings file {path} must contain a JSON object")
        return None
    return data


def load_keybindings(
    project_path: str = f"{CONFIG_DIR}/keybindings.json",
    user_path: Optional[str] = None,
    profile: Optional[str] = None,
) -> KeybindingConfig:
    """Load keybindings with fallback chain and profile support.

    Priority order:
    1. Environment variables (ISSUE_TABLE_KEY_*)
    2. Profile-specific file
    3. Embedded profile in base config
    4. Project config file
    5. User config file
    6. Default values
    """
    config = KeybindingConfig.from_file(project_path, user_path, profile) or KeybindingConfig()

    overrides = KeybindingConfig.from_env()
    if overrides:
        for action, key in overrides.items():
            setattr(config, action, key)
        logger.info(f"Applied environment keybinding overrides: {sorted(overrides)}")

    return config


def generate_help_text(keys: KeybindingConfig, accessibility: bool = False) -> str:
    """Build the text shown on the help page from the active bindings."""
    fmt = format_key_for_display
    lines = [
        f"{fmt(keys.nav_up)}/{fmt(keys.nav_down)}  Navigate rows",
        f"{fmt(keys.nav_left)}/{fmt(keys.nav_right)}  Move between columns",
        f"{fmt(keys.page_up)}/{fmt(keys.page_down)}  Scroll a page",
        f"{fmt(keys.top)}/{fmt(keys.bottom)}  First/last row",
        f"{fmt(keys.select)}  Select row",
        f"{fmt(keys.view)}  View details",
        f"{fmt(keys.move)}  Transition",
        f"{fmt(keys.copy)}  Copy row to clipboard",
        f"{fmt(keys.copy_key)}  Copy key to clipboard",
        f"{fmt(keys.refresh)}/{fmt(keys.refresh_alt)}  Refresh",
        f"{fmt(keys.help)}  This help",
        f"{fmt(keys.quit)}/{fmt(keys.close)}  Quit",
    ]
    if accessibility:
        lines.append(f"{fmt(keys.speak_cell)}  Speak current cell")
        lines.append(f"{fmt(keys.speak_help)}  Speak accessibility help")
    return "\n".join(lines)


def accessibility_help_text(keys: KeybindingConfig) -> str:
    """Spoken summary of the accessibility shortcuts."""
    speak = format_key_for_speech
    return (
        f"Accessibility shortcuts: {speak(keys.speak_cell)} to speak current cell, "
        f"{speak(keys.speak_help)} for this help, Arrow keys to navigate, "
        f"Tab to move between sections."
    )
