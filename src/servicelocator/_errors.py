from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence


class ResolutionError(RuntimeError):
    pass


class DuplicateRegistrationError(ResolutionError):
    def __init__(self, key: object, message: str) -> None:
        super().__init__(message)
        self.key = key


class NotRegisteredError(ResolutionError, LookupError):
    def __init__(self, key: object, message: str) -> None:
        super().__init__(message)
        self.key = key


class CircularDependencyError(ResolutionError):
    """Raised when constructing a class requires constructing itself again."""

    def __init__(self, cycle: Sequence[type]) -> None:
        self.cycle = tuple(cycle)
        names = " -> ".join(cls.__name__ for cls in self.cycle)
        super().__init__(f"Circular dependency detected: {names}")
