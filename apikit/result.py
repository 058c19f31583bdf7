"""Two-variant outcome type delivered to completion handlers."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        return Success(fn(self.value))

    def flat_map(self, fn: Callable[[T], "Result[U, Any]"]) -> "Result[U, Any]":
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    """Failed outcome carrying ``error``."""

    error: E

    @property
    def is_success(self) -> bool:
        return False

    def map(self, fn: Callable[[Any], Any]) -> "Failure[E]":
        return self

    def flat_map(self, fn: Callable[[Any], Any]) -> "Failure[E]":
        return self


Result = Success[T] | Failure[E]
