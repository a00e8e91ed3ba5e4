"""Terminal surface backed by a prompt_toolkit Application.

The surface owns the render thread: the thread that runs the application
event loop. All page and widget state is mutated on that thread. Other
threads hand work over with post(), which queues a callable on the event
loop (FIFO), and then ask for a redraw with draw().

Pages are named layers. "primary" is the base layer; every other page is
a float drawn above it, later pages on top. send_to_front() reorders the
floats.
"""

import asyncio
import concurrent.futures
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from prompt_toolkit.application import Application, run_in_terminal
from prompt_toolkit.application.current import set_app
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout.containers import ConditionalContainer, Float, FloatContainer
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import BaseStyle

logger = logging.getLogger(__name__)

PRIMARY_PAGE = "primary"


class TerminalSurface(Protocol):
    """What the table needs from the terminal."""

    def add_page(self, name: str, container: Any, visible: bool) -> None: ...
    def show_page(self, name: str) -> None: ...
    def hide_page(self, name: str) -> None: ...
    def send_to_front(self, name: str) -> None: ...
    def front_page(self) -> Optional[str]: ...
    def is_page_visible(self, name: str) -> bool: ...
    def run(self, key_bindings: KeyBindings, style: Optional[BaseStyle] = None) -> None: ...
    def draw(self) -> None: ...
    def force_draw(self) -> None: ...
    def stop(self) -> None: ...
    def post(self, fn: Callable[[], None]) -> None: ...
    def call_later(self, delay: float, fn: Callable[[], None]) -> None: ...
    def suspend(self, fn: Callable[[], None]) -> None: ...
    def fail(self, error: BaseException) -> None: ...


class PageStack:
    """Named pages with visibility and stacking order."""

    def __init__(self):
        self._order: List[str] = []
        self._containers: Dict[str, Any] = {}
        self._visible: Dict[str, bool] = {}

    def add(self, name: str, container: Any, visible: bool) -> None:
        if name in self._containers:
            self._order.remove(name)
        self._order.append(name)
        self._containers[name] = container
        self._visible[name] = visible

    def show(self, name: str) -> None:
        self._check(name)
        self._visible[name] = True

    def hide(self, name: str) -> None:
        self._check(name)
        self._visible[name] = False

    def send_to_front(self, name: str) -> None:
        self._check(name)
        self._order.remove(name)
        self._order.append(name)

    def is_visible(self, name: str) -> bool:
        return self._visible.get(name, False)

    def front(self) -> Optional[str]:
        """Topmost visible page."""
        for name in reversed(self._order):
            if self._visible[name]:
                return name
        return None

    def container(self, name: str) -> Any:
        return self._containers[name]

    @property
    def names(self) -> List[str]:
        return list(self._order)

    def _check(self, name: str) -> None:
        if name not in self._containers:
            raise KeyError(f"Unknown page: {name}")


class Screen:
    """prompt_toolkit implementation of TerminalSurface."""

    def __init__(self, full_screen: bool = True):
        self._full_screen = full_screen
        self._pages = PageStack()
        self._floats: Dict[str, Float] = {}
        self._root: Optional[FloatContainer] = None
        self._app: Optional[Application] = None
        self._pending_timers: List[Tuple[float, Callable[[], None]]] = []
        self._failure: Optional[BaseException] = None

    @property
    def is_running(self) -> bool:
        return bool(self._app and self._app.is_running)

    # Pages

    def add_page(self, name: str, container: Any, visible: bool) -> None:
        self._pages.add(name, container, visible)

    def show_page(self, name: str) -> None:
        self._pages.show(name)
        logger.debug(f"Show page '{name}'")

    def hide_page(self, name: str) -> None:
        self._pages.hide(name)
        logger.debug(f"Hide page '{name}'")

    def send_to_front(self, name: str) -> None:
        self._pages.send_to_front(name)
        self._sync_float_order()

    def front_page(self) -> Optional[str]:
        return self._pages.front()

    def is_page_visible(self, name: str) -> bool:
        return self._pages.is_visible(name)

    def _build_root(self) -> FloatContainer:
        for name in self._pages.names:
            if name == PRIMARY_PAGE:
                continue
            self._floats[name] = Float(
                content=ConditionalContainer(
                    self._pages.container(name),
                    filter=Condition(lambda n=name: self._pages.is_visible(n)),
                ),
            )
        self._root = FloatContainer(
            content=self._pages.container(PRIMARY_PAGE),
            floats=[],
        )
        self._sync_float_order()
        return self._root

    def _sync_float_order(self) -> None:
        if self._root is not None:
            self._root.floats = [
                self._floats[name] for name in self._pages.names if name in self._floats
            ]

    # Lifecycle

    def run(self, key_bindings: KeyBindings, style: Optional[BaseStyle] = None) -> None:
        """Run the application until stop(). Blocks the calling thread.

        Raises:
            The error passed to fail(), if a background task failed.
        """
        if not sys.stdout.isatty():
            raise RuntimeError("issue-table requires an interactive terminal")

        self._failure = None
        self._app = Application(
            layout=Layout(self._build_root()),
            key_bindings=key_bindings,
            full_screen=self._full_screen,
            style=style,
        )
        self._app.pre_run_callables.append(self._start_pending_timers)
        try:
            self._app.run()
        finally:
            self._app = None
        if self._failure is not None:
            raise self._failure

    def _start_pending_timers(self) -> None:
        loop = asyncio.get_event_loop()
        timers, self._pending_timers = self._pending_timers, []
        for delay, fn in timers:
            loop.call_later(delay, fn)

    def stop(self) -> None:
        """Exit the application. Safe to call from any thread."""
        app = self._app
        if app is None:
            return

        def _exit() -> None:
            if app.is_running and not app.future.done():
                app.exit()

        self.post(_exit)

    def fail(self, error: BaseException) -> None:
        """Stop with an error that run() re-raises on its thread."""
        if self._failure is None:
            self._failure = error
        self.stop()

    # Render thread hand-off

    def post(self, fn: Callable[[], None]) -> None:
        """Run fn on the render thread.

        Before the application starts (or after it stopped) there is no
        render loop to race with and fn runs immediately.
        """
        app = self._app
        if app is not None and app.is_running and app.loop is not None:
            app.loop.call_soon_threadsafe(fn)
        else:
            fn()

    def call_later(self, delay: float, fn: Callable[[], None]) -> None:
        """Run fn on the render thread after delay seconds."""
        app = self._app
        if app is not None and app.is_running and app.loop is not None:
            loop = app.loop
            loop.call_soon_threadsafe(lambda: loop.call_later(delay, fn))
        else:
            self._pending_timers.append((delay, fn))

    def draw(self) -> None:
        """Request a redraw. Thread-safe; the loop services it later."""
        if self._app is not None:
            self._app.invalidate()

    def force_draw(self) -> None:
        """Request a redraw queued behind everything already posted.

        Used after a post() whose effect must be on screen before the
        caller moves on to slow work.
        """
        app = self._app
        if app is not None:
            self.post(app.invalidate)

    def suspend(self, fn: Callable[[], None]) -> None:
        """Hand the terminal to fn (e.g. a pager) and wait for it.

        Must be called off the render thread: the render loop suspends the
        UI, runs fn, restores the UI, and only then does this return.
        """
        app = self._app
        if app is None or not app.is_running or app.loop is None:
            fn()
            return

        done: concurrent.futures.Future = concurrent.futures.Future()

        def _start() -> None:
            with set_app(app):
                task = run_in_terminal(fn)

            def _finish(t: "asyncio.Future[None]") -> None:
                if t.cancelled():
                    done.cancel()
                elif t.exception() is not None:
                    done.set_exception(t.exception())
                else:
                    done.set_result(None)

            task.add_done_callback(_finish)

        app.loop.call_soon_threadsafe(_start)
        done.result()
