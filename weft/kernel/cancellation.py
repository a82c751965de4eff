"""Cancellation token - an observable flag that unregisters listeners when set."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Plain observable cancellation flag.

    Callbacks registered before ``cancel()`` run once, in registration
    order. Registering on an already cancelled token runs the callback
    immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback for cancellation.

        Returns:
            Function that detaches the callback again
        """
        if self._cancelled:
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        logger.debug(f"Cancellation token triggered ({len(callbacks)} callbacks)")
        for callback in callbacks:
            callback()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
