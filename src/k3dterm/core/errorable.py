"""Success/failure results for operations that must not raise."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    """A successful outcome carrying a value."""
    result: T


@dataclass(frozen=True)
class Failed:
    """A failed outcome carrying one or more error messages."""
    error: list[str]

    def __post_init__(self) -> None:
        if not self.error:
            raise ValueError("Failed requires at least one error message")


Errorable = Union[Succeeded[T], Failed]


def succeeded(e: Errorable[T]) -> bool:
    return isinstance(e, Succeeded)


def failed(e: Errorable[T]) -> bool:
    return isinstance(e, Failed)


def map_result(e: Errorable[T], fn: Callable[[T], U]) -> Errorable[U]:
    """Apply fn to a success value; failures pass through unchanged."""
    if isinstance(e, Failed):
        return e
    return Succeeded(fn(e.result))
