"""
KernelEvent - one emission instance

Carries the concrete event name, an opaque payload, and a context dict
shared by reference with every listener invoked for the same emission.
"""

from __future__ import annotations

import time
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class KernelEvent(Generic[T]):
    """
    Event passed to listeners.

    ``name``, ``data`` and ``timestamp`` are read-only. ``context`` is the
    mutable per-emission state; it is never reset mid-emission.
    """

    __slots__ = ("_name", "_data", "_context", "_timestamp", "_propagation_stopped")

    def __init__(self, name: str, data: T = None, context: dict[str, Any] | None = None) -> None:
        self._name = name
        self._data = data
        self._context = context if context is not None else {}
        self._timestamp = time.time()
        self._propagation_stopped = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def data(self) -> T:
        return self._data

    @property
    def context(self) -> dict[str, Any]:
        return self._context

    @property
    def timestamp(self) -> float:
        return self._timestamp

    @property
    def is_propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def stop_propagation(self) -> None:
        """Skip every listener of this emission that has not started yet."""
        self._propagation_stopped = True

    def __repr__(self) -> str:
        return f"KernelEvent(name={self._name!r}, data={self._data!r}, context={self._context!r})"
