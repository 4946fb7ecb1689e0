"""Cancellation token and the OS signal bridge that triggers it.

The token is the only thing the stream driver sees of cancellation.  A
``SignalBridge`` converts SIGINT/SIGTERM into exactly one ``cancel()``;
callbacks registered on the token (terminating the test process) run
once, on whichever thread cancels first.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable
from types import FrameType
from typing import Any

from tgo.errors import CancellationError

logger = logging.getLogger(__name__)

_BRIDGED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """A one-shot, thread-safe cancellation flag with callbacks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Request cancellation.  Returns ``False`` if already cancelled."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        return True

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancellation, or right away if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("run cancelled")


class SignalBridge:
    """Cancel a token on SIGINT or SIGTERM while the context is active.

    Handlers can only be installed from the main thread; elsewhere the
    bridge is inert.
    """

    def __init__(self, token: CancellationToken) -> None:
        self._token = token
        self._previous: dict[int, Any] = {}

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        if self._token.cancel():
            logger.info("Received %s, cancelling run", signal.Signals(signum).name)

    def __enter__(self) -> SignalBridge:
        if threading.current_thread() is threading.main_thread():
            for signum in _BRIDGED_SIGNALS:
                self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def __exit__(self, *exc_info: object) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()
