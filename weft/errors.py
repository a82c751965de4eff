"""Structured error hierarchy for the dispatch kernel."""

from __future__ import annotations


class WeftError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause

    @classmethod
    def wrap(cls, err: Exception) -> WeftError:
        if isinstance(err, WeftError):
            return err
        return WeftError("UNKNOWN", str(err), err)


class DependencyError(WeftError):
    """Listener ordering cannot be resolved. Raised before any listener runs."""


class MissingDependencyError(DependencyError):
    def __init__(self, listener_id: str, dependency: str) -> None:
        super().__init__(
            "MISSING_DEPENDENCY",
            f'Listener "{listener_id}" depends on missing listener "{dependency}"',
        )
        self.listener_id = listener_id
        self.dependency = dependency


class CyclicDependencyError(DependencyError):
    def __init__(self, cycle: list[str]) -> None:
        super().__init__("CYCLIC_DEPENDENCY", f"Cyclic dependency detected: {' -> '.join(cycle)}")
        self.cycle = cycle


class EmitError(WeftError):
    """Aggregate of every listener failure in one parallel emission."""

    def __init__(self, event_name: str, errors: list[Exception]) -> None:
        super().__init__(
            "EMIT_FAILED",
            f'{len(errors)} listener(s) failed for event "{event_name}"',
            errors[0] if errors else None,
        )
        self.event_name = event_name
        self.errors = errors


class ReservedEventError(WeftError):
    def __init__(self, event_name: str) -> None:
        super().__init__("RESERVED_EVENT", f"Cannot emit reserved event: {event_name}")
        self.event_name = event_name


class ListenerContextError(WeftError):
    def __init__(self, message: str) -> None:
        super().__init__("NOT_PROCESSING", message)


class CompositionError(WeftError):
    def __init__(self, message: str) -> None:
        super().__init__("COMPOSITION_EMPTY", message)
