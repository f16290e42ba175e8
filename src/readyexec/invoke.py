"""Invocation guard: run a callable and capture its outcome in a ready future.

Two code paths exist, selected by the callable's declared result type rather
than by the value it happens to return:

- value path: ``ReadyFuture[T]`` holding the return value or the failure
- void path: ``ReadyVoidFuture`` holding only the optional failure

A callable annotated ``-> None`` takes the void path. Unannotated callables
(lambdas, most partials) take the value path, so ``get()`` yields whatever
they returned, ``None`` included.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, overload

from readyexec.future import ReadyFuture, ReadyVoidFuture

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

__all__ = ["returns_void", "try_invoke"]

_VOID_ANNOTATIONS: tuple[object, ...] = (None, type(None))


def returns_void(f: Callable[[], Any]) -> bool:
    """Return True when ``f`` declares a ``None`` result.

    String annotations are compared without evaluation. Callables whose
    signature cannot be inspected, including annotations that fail to
    evaluate lazily, are treated as value-returning.
    """
    try:
        annotation = inspect.signature(f, eval_str=False).return_annotation
    except Exception:
        log.debug("Cannot inspect %r; taking the value path", f, exc_info=True)
        return False
    if annotation is inspect.Signature.empty:
        return False
    if isinstance(annotation, str):
        return annotation.strip() == "None"
    return any(annotation is v for v in _VOID_ANNOTATIONS)


@overload
def try_invoke(f: Callable[[], None], *, void: bool | None = ...) -> ReadyVoidFuture: ...
@overload
def try_invoke[T](f: Callable[[], T], *, void: bool | None = ...) -> ReadyFuture[T]: ...


def try_invoke(
    f: Callable[[], Any], *, void: bool | None = None
) -> ReadyFuture[Any] | ReadyVoidFuture:
    """Invoke ``f`` and wrap its outcome in a ready future.

    Never raises: every exception raised by ``f`` (``BaseException``
    included, as with ``concurrent.futures`` workers) is captured into the
    returned future and re-raised by its ``get()``.

    Args:
        f: Zero-argument callable.
        void: Force the void (True) or value (False) path. Defaults to the
            path implied by ``f``'s return annotation.
    """
    is_void = returns_void(f) if void is None else void
    if is_void:
        return _invoke_void(f)
    return _invoke_value(f)


def _invoke_value(f: Callable[[], Any]) -> ReadyFuture[Any]:
    try:
        result = f()
    except BaseException as e:
        return ReadyFuture.from_error(e)
    return ReadyFuture(result)


def _invoke_void(f: Callable[[], Any]) -> ReadyVoidFuture:
    try:
        f()
    except BaseException as e:
        return ReadyVoidFuture.from_error(e)
    return ReadyVoidFuture()
