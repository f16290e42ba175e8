"""Always-ready futures.

``ReadyFuture`` is a lightweight wrapper around a result that is already
known when the future is created. Executors that always block their caller
use it as their associated future type and can still expose two-way
asynchronous operations such as ``async_execute``.

Results are single-extraction: the first ``get()`` hands over the value (or
re-raises the captured failure) and every later ``get()`` raises
``FutureConsumedError``.
"""

from __future__ import annotations

from typing import Self

from readyexec.core.exceptions import FutureConsumedError
from readyexec.core.result_primitives import Error, Value, ValueOrError, unwrap

__all__ = ["ReadyFuture", "ReadyVoidFuture"]


def _require_exception(error: object) -> BaseException:
    if not isinstance(error, BaseException):
        raise TypeError(
            f"from_error() expects an exception instance, got {type(error).__name__}"
        )
    return error


class _ReadyBase:
    """Shared readiness surface for value and void futures."""

    __slots__ = ("_consumed",)

    def __init__(self) -> None:
        self._consumed = False

    # Waiting on a ready future might indicate a programmer error, but generic
    # code does not know the concrete future type in advance.
    def wait(self) -> None:
        """Return immediately; the result is always available."""

    def done(self) -> bool:
        """Return True; readiness is permanent."""
        return True

    @property
    def consumed(self) -> bool:
        """Whether ``get()`` has already been called."""
        return self._consumed


class ReadyFuture[T](_ReadyBase):
    """A future whose value or failure is available at construction time."""

    __slots__ = ("_result",)

    def __init__(self, value: T) -> None:
        """Create a value-holding future."""
        super().__init__()
        self._result: ValueOrError[T] | None = Value(value)

    @classmethod
    def from_value(cls, value: T) -> Self:
        """Create a ready, value-holding future."""
        return cls(value)

    @classmethod
    def from_error(cls, error: BaseException) -> Self:
        """Create a ready future that re-raises ``error`` on ``get()``."""
        fut = cls.__new__(cls)
        _ReadyBase.__init__(fut)
        fut._result = Error(_require_exception(error))
        return fut

    def get(self) -> T:
        """Return the value, or re-raise the captured failure.

        The future drops its reference to the value on the way out.

        Raises:
            FutureConsumedError: If the result was already retrieved. For an
                error-holding future the original failure is the cause.
        """
        if self._consumed:
            raise FutureConsumedError() from self._stored_error()
        self._consumed = True
        result = self._result
        if isinstance(result, Value):
            self._result = None
        return unwrap(result)

    def exception(self) -> BaseException | None:
        """Return the captured failure without consuming the future."""
        if self._consumed:
            raise FutureConsumedError() from self._stored_error()
        return self._stored_error()

    def _stored_error(self) -> BaseException | None:
        if isinstance(self._result, Error):
            return self._result.error
        return None

    def __repr__(self) -> str:
        if self._consumed:
            state = "consumed"
        elif isinstance(self._result, Error):
            state = f"error={type(self._result.error).__name__}"
        else:
            state = "value"
        return f"ReadyFuture({state})"


class ReadyVoidFuture(_ReadyBase):
    """Void specialization: no value, only an optional captured failure."""

    __slots__ = ("_error",)

    def __init__(self) -> None:
        """Create a successful void future."""
        super().__init__()
        self._error: BaseException | None = None

    @classmethod
    def from_error(cls, error: BaseException) -> Self:
        """Create a ready void future that re-raises ``error`` on ``get()``."""
        fut = cls()
        fut._error = _require_exception(error)
        return fut

    def get(self) -> None:
        """Return None, or re-raise the captured failure."""
        if self._consumed:
            raise FutureConsumedError() from self._error
        self._consumed = True
        if self._error is not None:
            raise self._error

    def exception(self) -> BaseException | None:
        """Return the captured failure without consuming the future."""
        if self._consumed:
            raise FutureConsumedError() from self._error
        return self._error

    def __repr__(self) -> str:
        if self._consumed:
            state = "consumed"
        elif self._error is not None:
            state = f"error={type(self._error).__name__}"
        else:
            state = "ok"
        return f"ReadyVoidFuture({state})"
