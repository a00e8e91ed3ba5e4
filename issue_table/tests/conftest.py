"""Pytest configuration for issue_table tests.

Run tests with: pytest issue_table/tests/
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

# Add repository root to path for imports
repo_root = Path(__file__).parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from issue_table.announcer import ANNOUNCEMENT_MARKER  # noqa: E402
from issue_table.screen import PageStack  # noqa: E402


class FakeSurface:
    """In-memory TerminalSurface.

    post() runs immediately, as if the render loop picked the callable up
    right away. run() calls `script` (if set) in place of the event loop,
    so a test can drive the table the way key presses would.
    """

    def __init__(self):
        self.pages = PageStack()
        self.script: Optional[Callable[[], None]] = None
        self.key_bindings = None
        self.style = None
        self.runs = 0
        self.stopped = 0
        self.draws = 0
        self.force_draws = 0
        self.posted = 0
        self.timers: List[Tuple[float, Callable[[], None]]] = []
        self.suspended: List[Callable[[], None]] = []
        self.failures: List[BaseException] = []
        self.containers: Dict[str, Any] = {}

    def add_page(self, name, container, visible):
        self.pages.add(name, container, visible)
        self.containers[name] = container

    def show_page(self, name):
        self.pages.show(name)

    def hide_page(self, name):
        self.pages.hide(name)

    def send_to_front(self, name):
        self.pages.send_to_front(name)

    def front_page(self):
        return self.pages.front()

    def is_page_visible(self, name):
        return self.pages.is_visible(name)

    def run(self, key_bindings, style=None):
        self.runs += 1
        self.key_bindings = key_bindings
        self.style = style
        if self.script is not None:
            script, self.script = self.script, None
            script()

    def draw(self):
        self.draws += 1

    def force_draw(self):
        self.force_draws += 1

    def stop(self):
        self.stopped += 1

    def post(self, fn):
        self.posted += 1
        fn()

    def call_later(self, delay, fn):
        self.timers.append((delay, fn))

    def fire_timers(self):
        timers, self.timers = self.timers, []
        for _, fn in timers:
            fn()

    def suspend(self, fn):
        self.suspended.append(fn)
        fn()

    def fail(self, error):
        self.failures.append(error)
        self.stop()


class QueuedSurface(FakeSurface):
    """FakeSurface whose post() queues like the real render loop.

    Posted callables only run on drain(), in FIFO order, so tests see the
    same interleaving as a background thread racing the render thread.
    """

    def __init__(self):
        super().__init__()
        self.queue: List[Callable[[], None]] = []

    def post(self, fn):
        self.posted += 1
        self.queue.append(fn)

    def drain(self):
        while self.queue:
            self.queue.pop(0)()


class SyncTaskRunner:
    """TaskRunner that runs every task inline, in spawn order."""

    def __init__(self):
        self.spawned: List[str] = []

    def spawn(self, name, target):
        self.spawned.append(name)
        target()


class DeferredTaskRunner:
    """TaskRunner that holds tasks until run_all()."""

    def __init__(self):
        self.pending: List[Tuple[str, Callable[[], None]]] = []

    def spawn(self, name, target):
        self.pending.append((name, target))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, target in pending:
            target()


def announcements(stderr: str) -> List[str]:
    """Extract announcement texts from captured stderr, in order."""
    prefix = ANNOUNCEMENT_MARKER + " "
    return [line[len(prefix):] for line in stderr.splitlines() if line.startswith(prefix)]


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def queued_surface():
    return QueuedSurface()


@pytest.fixture
def runner():
    return SyncTaskRunner()


@pytest.fixture
def issue_rows():
    return [
        ["KEY", "STATUS", "SUMMARY"],
        ["X-1", "Open", "Fix bug"],
        ["X-2", "In Progress", "Write docs"],
        ["X-3", "Done", "Ship it"],
    ]
