"""Result[T, E] — errors as values.

Validators, the oracle and the disclosure layer never raise on bad input.
They return Ok[T] on success and Err[E] carrying an error value otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success variant of Result."""

    value: T

    def map[U](self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))


@final
@dataclass(frozen=True, slots=True)
class Err[E]:
    """Error variant of Result."""

    error: E

    def map(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        return self


type Result[T, E] = Ok[T] | Err[E]


def unwrap[T](result: Ok[T] | Err[Any]) -> T:
    """Extract Ok value or raise RuntimeError. Test/boundary code only."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise RuntimeError(f"unwrap on Err: {result.error}")
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def first_err[E](checks: Iterable[Callable[[], Ok[Any] | Err[E]]]) -> Ok[None] | Err[E]:
    """Run zero-argument checks in order, returning the first Err.

    Checks are evaluated lazily so a later check may assume every earlier
    one passed.
    """
    for check in checks:
        match check():
            case Err() as e:
                return e
            case Ok():
                pass
    return Ok(None)
