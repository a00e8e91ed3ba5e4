"""Native clipboard provider using system tools."""

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


def detect_tool() -> Optional[Tuple[str, List[str]]]:
    """Find a clipboard command for this platform.

    Returns:
        Tuple of (tool_name, command_args) or None if unavailable.
    """
    if sys.platform == "darwin":
        if shutil.which("pbcopy"):
            return ("pbcopy", ["pbcopy"])
        return None
    if sys.platform == "win32":
        if shutil.which("clip"):
            return ("clip", ["clip"])
        return None

    session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
    if session_type == "wayland" and shutil.which("wl-copy"):
        return ("wl-copy", ["wl-copy"])
    if shutil.which("xclip"):
        return ("xclip", ["xclip", "-selection", "clipboard"])
    if shutil.which("xsel"):
        return ("xsel", ["xsel", "--clipboard", "--input"])
    if shutil.which("wl-copy"):
        return ("wl-copy", ["wl-copy"])
    return None


class NativeProvider:
    """Clipboard provider using pbcopy, clip.exe, wl-copy, xclip or xsel."""

    def __init__(self):
        self._tool = detect_tool()

    @property
    def name(self) -> str:
        return f"Native ({self._tool[0] if self._tool else 'unavailable'})"

    @property
    def available(self) -> bool:
        return self._tool is not None

    def copy(self, text: str) -> bool:
        if not text or not self._tool:
            return False
        try:
            result = subprocess.run(
                self._tool[1],
                input=text.encode("utf-8"),
                capture_output=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"Clipboard tool {self._tool[0]} failed: {e}")
            return False
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.warning(f"Clipboard tool {self._tool[0]} exited {result.returncode}: {stderr}")
            return False
        return True
