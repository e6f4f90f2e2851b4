from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from ._errors import NotRegisteredError


T = TypeVar("T")
D = TypeVar("D")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: object) -> T:  # noqa: ARG002
        return self.value

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class NotFound:
    """Absence of a registration for `key`.

    `unwrap()` turns the absence into a `NotRegisteredError` carrying `message`.
    """

    key: object
    message: str

    def unwrap(self) -> NoReturn:
        raise NotRegisteredError(self.key, self.message)

    def value_or(self, default: D) -> D:
        return default

    def __bool__(self) -> bool:
        return False
