"""Capability protocols for futures and executors.

Generic algorithms are written against ``Future`` and ``Executor`` only.
Both are runtime-checkable so that generic code (and dev-time validation) can
confirm conformance with ``isinstance``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)

# A zero-argument factory invoked once per bulk call.
type SharedFactory = Callable[[], Any]

# Element function of a bulk call: (index, shared_a, shared_b).
type BulkFunction = Callable[[int, Any, Any], object]


@runtime_checkable
class Future(Protocol[T_co]):
    """Minimal future capability set: block for readiness, then extract."""

    def get(self) -> T_co:
        """Return the result or re-raise the captured failure."""
        ...

    def wait(self) -> None:
        """Block until the result is available."""
        ...


@runtime_checkable
class Executor(Protocol):
    """The four execution shapes every executor exposes.

    ``sync_*`` operations propagate failures to the caller. ``async_*``
    operations never raise for task failures; the failure is observable only
    through ``get()`` on the returned future.
    """

    def sync_execute(self, f: Callable[[], object]) -> None:
        """Run ``f`` and block until it completes."""
        ...

    def async_execute(self, f: Callable[[], Any]) -> Future[Any]:
        """Run ``f`` and return a future for its result."""
        ...

    def bulk_sync_execute(
        self,
        f: BulkFunction,
        n: int,
        factory_a: SharedFactory,
        factory_b: SharedFactory,
    ) -> None:
        """Invoke ``f`` for every index in ``range(n)`` and block until done."""
        ...

    def bulk_async_execute(
        self,
        f: BulkFunction,
        n: int,
        factory_a: SharedFactory,
        factory_b: SharedFactory,
    ) -> Future[None]:
        """Invoke ``f`` for every index in ``range(n)``; return a void future."""
        ...


__all__ = ("BulkFunction", "Executor", "Future", "SharedFactory")
