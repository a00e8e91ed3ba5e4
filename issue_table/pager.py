"""Page long text through the user's pager.

Checks $PAGER, then falls back to "less -r" (keeps ANSI colors from Rich).
If the pager cannot be started the text is written to stdout instead.
"""

import logging
import os
import shlex
import subprocess
import sys

logger = logging.getLogger(__name__)

DEFAULT_PAGER = "less -r"


def get_pager() -> str:
    """Get the user's preferred pager command."""
    return os.environ.get("PAGER") or DEFAULT_PAGER


def pager_out(text: str) -> None:
    """Show text in the pager and wait for the user to quit it."""
    command = shlex.split(get_pager())
    try:
        subprocess.run(command, input=text.encode("utf-8"), check=False)
    except (FileNotFoundError, OSError) as e:
        logger.warning(f"Pager '{command[0]}' unavailable ({e}), writing to stdout")
        sys.stdout.write(text)
        sys.stdout.flush()
