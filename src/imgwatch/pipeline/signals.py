"""Ctrl+C / SIGTERM handling for the watch loop.

The watch loop never stops in the middle of writing an image: a first signal
only asks it to stop once the current polling pass is done, and cuts short the
sleep between passes. A second signal aborts with ``KeyboardInterrupt``.
"""

from __future__ import annotations

import signal
import threading
from typing import Any

_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Stop flag shared by the watch loop and its signal handlers."""

    def __init__(self) -> None:
        self._stop = threading.Event()
        self._previous: dict[int, Any] = {}

    @property
    def is_shutting_down(self) -> bool:
        return self._stop.is_set()

    def request_shutdown(self) -> None:
        self._stop.set()

    def wait(self, timeout: float) -> bool:
        """Sleep between passes; returns early (True) once a stop was requested."""
        return self._stop.wait(timeout)

    def install(self) -> None:
        """Route SIGINT and SIGTERM to this handler until :meth:`uninstall`.

        A no-op outside the main thread, where Python refuses signal handlers.
        """
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in _HANDLED_SIGNALS:
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._on_signal)

    def uninstall(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        while self._previous:
            signum, previous = self._previous.popitem()
            if previous is not None:
                signal.signal(signum, previous)

    def _on_signal(self, signum: int, frame: object) -> None:
        if not self._stop.is_set():
            self._stop.set()
            return
        for sig in _HANDLED_SIGNALS:
            signal.signal(sig, signal.SIG_DFL)
        raise KeyboardInterrupt


def worker_init() -> None:
    """Pool initializer: workers ignore SIGINT so the loop decides when to stop."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)
