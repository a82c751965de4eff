"""
ListenerContext - per-invocation handle passed as the second listener argument

Built fresh for every invocation. It carries the listener's metadata plus
the two kernel operations a listener may need (unregister itself, emit
another event); it holds no reference back to the kernel object.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from weft.errors import ListenerContextError

if TYPE_CHECKING:
    from weft.kernel.cancellation import CancellationToken
    from weft.kernel.event import KernelEvent
    from weft.types import ListenerEntry

EmitFunction = Callable[..., Awaitable[None]]


class ListenerContext:
    """
    Listener self-management without polluting the event object.

    Example:
        async def handler(event, ctx):
            if event.data.get("done"):
                ctx.cancel()
            await ctx.emit("audit:seen", {"by": ctx.id})
    """

    def __init__(
        self,
        entry: ListenerEntry,
        event_name: str,
        unregister: Callable[[], None],
        emit: EmitFunction,
    ) -> None:
        self.id = entry.id
        self.event_name = event_name
        self.pattern = entry.pattern
        self.priority = entry.priority
        self.dependencies: tuple[str, ...] = entry.after
        self.token: CancellationToken | None = entry.token
        self._unregister = unregister
        self._emit = emit
        self._current_event: KernelEvent[Any] | None = None

    def _bind(self, event: KernelEvent[Any]) -> None:
        self._current_event = event

    def _release(self) -> None:
        self._current_event = None

    def cancel(self) -> None:
        """Remove this listener from the kernel. The running invocation completes."""
        self._unregister()

    def off(self) -> None:
        self.cancel()

    async def emit(self, event_name: str, data: Any = None) -> None:
        await self._emit(event_name, data)

    def stop_propagation(self) -> None:
        if self._current_event is None:
            raise ListenerContextError(
                "stop_propagation() can only be called during event processing"
            )
        self._current_event.stop_propagation()

    def __repr__(self) -> str:
        return f"ListenerContext(id={self.id!r}, event_name={self.event_name!r})"
