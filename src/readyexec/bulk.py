"""Bulk-execution protocol.

A bulk call ``(f, n, factory_a, factory_b)`` does the following:

1. Call ``factory_a()`` then ``factory_b()`` exactly once each, before any
   element invocation and regardless of ``n`` (``n == 0`` included).
2. Call ``f(i, shared_a, shared_b)`` once per index ``i`` in ``range(n)``,
   passing the same two shared objects to every invocation.

Indices carry no ordering guarantee; this module issues them in ascending
order. What happens after an element fails is governed by
``BulkFailurePolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import operator
from typing import TYPE_CHECKING, Final

from readyexec.core.exceptions import HINTS, BulkShapeError

if TYPE_CHECKING:
    from readyexec.base import BulkFunction, SharedFactory

log = logging.getLogger(__name__)

__all__ = [
    "IGNORE",
    "BulkFailurePolicy",
    "BulkOutcome",
    "check_shape",
    "ignore",
    "run_bulk",
]


class _Ignore:
    """Placeholder shared state for bulk calls that need none."""

    __slots__ = ()
    _instance: _Ignore | None = None

    def __new__(cls) -> _Ignore:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "IGNORE"

    def __reduce__(self) -> str:
        return "IGNORE"


IGNORE: Final = _Ignore()


def ignore() -> _Ignore:
    """Shared-state factory producing the ignorable placeholder."""
    return IGNORE


class BulkFailurePolicy(str, Enum):
    """What a sequential bulk call does after an element invocation fails."""

    STOP = "stop"  # issue no further indices
    COMPLETE = "complete"  # issue every remaining index, surface the first failure

    @classmethod
    def _missing_(cls, value: object) -> BulkFailurePolicy | None:
        """Accept names and values case-insensitively, e.g. "COMPLETE"."""
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        return None


@dataclass(frozen=True, slots=True)
class BulkOutcome:
    """Record of one bulk call: how many indices ran and what failed."""

    invoked: int
    failures: tuple[BaseException, ...] = ()

    @property
    def first_failure(self) -> BaseException | None:
        return self.failures[0] if self.failures else None

    def reraise(self) -> None:
        """Raise the first failure, if any.

        When later failures were also recorded, their count is attached to
        the raised exception as a note.
        """
        first = self.first_failure
        if first is None:
            return
        extra = len(self.failures) - 1
        if extra:
            first.add_note(
                f"{extra} further bulk invocation(s) failed after this one "
                f"({self.invoked} invoked)"
            )
        raise first


def check_shape(n: object) -> int:
    """Validate a bulk invocation count and return it.

    Raises:
        BulkShapeError: If ``n`` is a bool, has no ``__index__`` or is negative.
    """
    if isinstance(n, bool):
        raise BulkShapeError("Bulk count must be an int, got bool", hint=HINTS["bulk_count"])
    try:
        count = operator.index(n)
    except TypeError:
        raise BulkShapeError(
            f"Bulk count must be an int, got {type(n).__name__}",
            hint=HINTS["bulk_count"],
        ) from None
    if count < 0:
        raise BulkShapeError(
            f"Bulk count must be >= 0, got {count}", hint=HINTS["bulk_count"]
        )
    return count


def run_bulk(
    f: BulkFunction,
    n: int,
    factory_a: SharedFactory,
    factory_b: SharedFactory,
    *,
    policy: BulkFailurePolicy = BulkFailurePolicy.STOP,
) -> BulkOutcome:
    """Run one bulk call on the calling thread.

    Element failures (``Exception`` subclasses) are recorded in the returned
    ``BulkOutcome`` rather than raised. Factory failures and interrupts
    (``KeyboardInterrupt``, ``SystemExit``) propagate directly.
    """
    count = check_shape(n)
    policy = BulkFailurePolicy(policy)
    shared_a = factory_a()
    shared_b = factory_b()

    failures: list[BaseException] = []
    invoked = 0
    for i in range(count):
        invoked += 1
        try:
            f(i, shared_a, shared_b)
        except Exception as e:
            failures.append(e)
            if policy is BulkFailurePolicy.STOP:
                break
            if len(failures) > 1:
                log.debug("Bulk index %d failed after an earlier failure: %r", i, e)
        except BaseException:
            log.debug("Bulk call interrupted at index %d", i)
            raise

    return BulkOutcome(invoked=invoked, failures=tuple(failures))
