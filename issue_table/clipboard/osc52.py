"""OSC 52 clipboard provider."""

import base64
import sys
from typing import IO, Optional

# Some terminals cap OSC 52 payloads at ~74KB of base64
OSC52_MAX_BYTES = 74994


def encode_osc52(text: str) -> str:
    """Build the OSC 52 sequence for text, truncating oversized payloads."""
    raw = text.encode("utf-8")
    if len(base64.b64encode(raw)) > OSC52_MAX_BYTES:
        max_text_bytes = (OSC52_MAX_BYTES // 4) * 3
        raw = raw[:max_text_bytes].decode("utf-8", errors="ignore").encode("utf-8")
    encoded = base64.b64encode(raw).decode("ascii")
    # ESC ] 52 ; c ; <base64> BEL
    return f"\x1b]52;c;{encoded}\x07"


class OSC52Provider:
    """Copies through the terminal with the OSC 52 escape sequence.

    Works over SSH with no external tools. Supported by iTerm2, kitty,
    Alacritty, Windows Terminal and tmux (with set-clipboard on), among
    others; not by macOS Terminal.app.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self._stream = stream

    @property
    def name(self) -> str:
        return "OSC 52"

    def copy(self, text: str) -> bool:
        """Write the sequence; always True for non-empty text (fire-and-forget)."""
        if not text:
            return False
        stream = self._stream or sys.stdout
        stream.write(encode_osc52(text))
        stream.flush()
        return True
