"""readyexec: ready futures and an inline executor with bulk submission.

Public API:
    - InlineExecutor / create_executor(): the reference executor
    - ReadyFuture / ReadyVoidFuture: always-ready futures
    - try_invoke(): run a callable, capture its outcome in a future
    - ignore: placeholder shared-state factory for bulk calls
    - Future / Executor: capability protocols for generic code

Example:
    exe = create_executor()
    out = [0] * 4
    exe.bulk_sync_execute(lambda i, _a, _b: out.__setitem__(i, i * 2), 4, ignore, ignore)
    assert out == [0, 2, 4, 6]
"""

from __future__ import annotations

import logging

from readyexec.base import Executor, Future
from readyexec.bulk import IGNORE, BulkFailurePolicy, ignore
from readyexec.config import FrozenConfig, config_scope, resolve_config
from readyexec.core.exceptions import (
    BulkShapeError,
    ConfigurationError,
    FutureConsumedError,
    InvariantViolationError,
    ReadyExecError,
)
from readyexec.executor import InlineExecutor, create_executor
from readyexec.future import ReadyFuture, ReadyVoidFuture
from readyexec.invoke import try_invoke

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("readyexec")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("readyexec").addHandler(logging.NullHandler())

__all__ = [
    "IGNORE",
    "BulkFailurePolicy",
    "BulkShapeError",
    "ConfigurationError",
    "Executor",
    "FrozenConfig",
    "Future",
    "FutureConsumedError",
    "InlineExecutor",
    "InvariantViolationError",
    "ReadyExecError",
    "ReadyFuture",
    "ReadyVoidFuture",
    "config_scope",
    "create_executor",
    "ignore",
    "resolve_config",
    "try_invoke",
]
