"""Inline executor: the reference implementation of the executor contract.

Every operation runs to completion on the calling thread before it returns,
including the ``async`` variants. Their futures are therefore always ready,
and ``ReadyFuture`` is the associated future type.

Error channels:
- ``sync_execute`` / ``bulk_sync_execute`` propagate the callable's failure
  to the caller unchanged.
- ``async_execute`` / ``bulk_async_execute`` never raise for a callable's
  failure; it is captured into the returned future.

An invalid bulk count is a caller error and raises ``BulkShapeError`` from
both bulk forms.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from readyexec._dev_flags import dev_validate_enabled
from readyexec.base import Future
from readyexec.bulk import BulkFailurePolicy, check_shape, run_bulk
from readyexec.config import FrozenConfig, ambient_config, resolve_config
from readyexec.config.core import to_redacted_dict
from readyexec.core.exceptions import InvariantViolationError
from readyexec.future import ReadyFuture, ReadyVoidFuture
from readyexec.invoke import try_invoke
from readyexec.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from readyexec.base import BulkFunction, SharedFactory
    from readyexec.telemetry import TelemetryReporter

log = logging.getLogger(__name__)


class InlineExecutor:
    """Executor that blocks its caller for every operation.

    Notes:
    - Bulk calls issue indices in ascending order; callers must not rely on
      it, since other executors may reorder.
    - After an element failure the bulk loop follows ``policy``: ``STOP``
      issues no further indices, ``COMPLETE`` issues all of them. Either way
      the first failure is the one surfaced.
    - Dev-time validation (``validate=True``, ``validate_invariants`` in the
      config, or ``READYEXEC_VALIDATE=1``) checks callables and returned
      futures on every call. It is off by default.
    """

    future_type = ReadyFuture

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        policy: BulkFailurePolicy | str | None = None,
        validate: bool | None = None,
        reporters: Iterable[TelemetryReporter] = (),
    ):
        """Initialize the executor.

        Args:
            config: Resolved configuration. Defaults to ``FrozenConfig()``.
            policy: Bulk partial-failure policy; overrides the config.
            validate: Enable dev-time validation; overrides config and env.
            reporters: Telemetry reporters. Passing any enables telemetry.
        """
        self.config = config if config is not None else FrozenConfig()
        self.policy = (
            BulkFailurePolicy(policy)
            if policy is not None
            else self.config.bulk_failure_policy
        )
        override = validate if validate is not None else (self.config.validate_invariants or None)
        self._validate: bool = dev_validate_enabled(override=override)
        reps = tuple(reporters)
        self._telemetry = TelemetryContext(
            *reps, enabled=True if (reps or self.config.telemetry_enabled) else None
        )

    # --- Scalar operations ---

    def sync_execute(self, f: Callable[[], object]) -> None:
        """Invoke ``f`` once and return after it completes.

        Raises:
            Whatever ``f`` raises, unchanged.
        """
        if self._validate:
            _require_callable(f, "f", "sync_execute")
        with self._telemetry("executor.sync_execute"):
            f()

    def async_execute[T](self, f: Callable[[], T]) -> ReadyFuture[T] | ReadyVoidFuture:
        """Invoke ``f`` once and return a ready future for its outcome.

        ``f`` annotated ``-> None`` yields a ``ReadyVoidFuture``; anything
        else yields a ``ReadyFuture`` holding the return value.
        """
        if self._validate:
            _require_callable(f, "f", "async_execute")
        with self._telemetry("executor.async_execute"):
            fut = try_invoke(f)
        self._note_capture("async_execute", fut.exception())
        if self._validate:
            _require_future(fut, "async_execute")
        return fut

    # --- Bulk operations ---

    def bulk_sync_execute(
        self,
        f: BulkFunction,
        n: int,
        factory_a: SharedFactory,
        factory_b: SharedFactory,
    ) -> None:
        """Invoke ``f(i, a, b)`` for each ``i`` in ``range(n)`` and block.

        ``a`` and ``b`` come from one call each to ``factory_a`` and
        ``factory_b``, made before any element runs, even when ``n == 0``.

        Raises:
            BulkShapeError: If ``n`` is not a non-negative int.
            The first failure raised by a factory or element.
        """
        n = check_shape(n)
        if self._validate:
            _require_bulk_callables(f, factory_a, factory_b, "bulk_sync_execute")
        with self._telemetry("executor.bulk_sync_execute", n=n):
            self._run_bulk(f, n, factory_a, factory_b)

    def bulk_async_execute(
        self,
        f: BulkFunction,
        n: int,
        factory_a: SharedFactory,
        factory_b: SharedFactory,
    ) -> ReadyVoidFuture:
        """Bulk form of ``async_execute``: returns a ready void future.

        Factory and element failures are captured into the future.

        Raises:
            BulkShapeError: If ``n`` is not a non-negative int.
        """
        n = check_shape(n)
        if self._validate:
            _require_bulk_callables(f, factory_a, factory_b, "bulk_async_execute")
        with self._telemetry("executor.bulk_async_execute", n=n):
            fut = try_invoke(lambda: self._run_bulk(f, n, factory_a, factory_b), void=True)
        self._note_capture("bulk_async_execute", fut.exception())
        if self._validate:
            _require_future(fut, "bulk_async_execute")
        return fut

    # --- Internals ---

    def _run_bulk(
        self,
        f: BulkFunction,
        n: int,
        factory_a: SharedFactory,
        factory_b: SharedFactory,
    ) -> None:
        outcome = run_bulk(f, n, factory_a, factory_b, policy=self.policy)
        self._telemetry.count("executor.bulk_invocations", outcome.invoked)
        if outcome.failures:
            self._telemetry.count("executor.bulk_failures", len(outcome.failures))
        outcome.reraise()

    def _note_capture(self, operation: str, error: BaseException | None) -> None:
        if error is None:
            return
        self._telemetry.count("executor.captured_failure", operation=operation)
        if self.config.log_captured_failures:
            log.debug("%s captured %s: %s", operation, type(error).__name__, error)

    def __repr__(self) -> str:
        return f"InlineExecutor(policy={self.policy.value!r}, validate={self._validate})"


def _require_callable(obj: Any, name: str, operation: str) -> None:
    if not callable(obj):
        raise TypeError(f"{operation}: '{name}' must be callable, got {type(obj).__name__}")


def _require_bulk_callables(
    f: Any, factory_a: Any, factory_b: Any, operation: str
) -> None:
    _require_callable(f, "f", operation)
    _require_callable(factory_a, "factory_a", operation)
    _require_callable(factory_b, "factory_b", operation)


def _require_future(fut: Any, operation: str) -> None:
    if not isinstance(fut, Future) or not fut.done():
        raise InvariantViolationError(
            "Executor returned an object that is not a ready Future",
            operation=operation,
        )


def create_executor(
    config: FrozenConfig | None = None,
    *,
    policy: BulkFailurePolicy | str | None = None,
    validate: bool | None = None,
) -> InlineExecutor:
    """Create an inline executor from explicit, ambient or resolved config.

    Lookup order: ``config`` argument, then the innermost ``config_scope``,
    then ``resolve_config()`` (files, env, defaults).

    Raises:
        ConfigurationError: If resolving configuration fails validation.
    """
    final_config = config or ambient_config() or resolve_config()
    executor = InlineExecutor(final_config, policy=policy, validate=validate)
    log.debug("Created %r with config %s", executor, to_redacted_dict(final_config))
    return executor
