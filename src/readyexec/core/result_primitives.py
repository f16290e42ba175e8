"""Value-or-error tagged union.

A result is exactly one of ``Value`` or ``Error``. Callers branch with
``isinstance`` or ``match``; there is no shared base class to dispatch on.
"""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class Value[T]:
    """A successfully produced value."""

    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class Error:
    """A captured failure."""

    error: BaseException


type ValueOrError[T] = Value[T] | Error


def unwrap[T](result: ValueOrError[T]) -> T:
    """Return the value, or re-raise the captured failure."""
    match result:
        case Value(value=value):
            return value
        case Error(error=error):
            raise error
    raise TypeError(f"Expected Value or Error, got {type(result).__name__}")
