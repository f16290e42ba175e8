"""SAXPY throughput benchmark over the executor operations.

Each variant computes ``z[i] = a * x[i] + y[i]`` over float32 buffers, either
directly (the reference loop) or through one of the four executor operations.
Comparing their bandwidth shows what each execution shape costs on top of
the bare loop.
"""

from __future__ import annotations

from array import array
import dataclasses
import logging
import time
from typing import TYPE_CHECKING

from readyexec.bulk import ignore
from readyexec.core.exceptions import InvariantViolationError
from readyexec.executor import InlineExecutor

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

log = logging.getLogger(__name__)

type Buffer = array[float]
type SaxpyVariant = Callable[[float, Buffer, Buffer, Buffer, InlineExecutor], None]

_BYTES_PER_GB = 1 << 30


def for_loop_saxpy(
    a: float, x: Buffer, y: Buffer, z: Buffer, exe: InlineExecutor | None = None
) -> None:
    """Reference loop with no executor involved."""
    del exe
    for i in range(len(x)):
        z[i] = a * x[i] + y[i]


def sync_execute_saxpy(
    a: float, x: Buffer, y: Buffer, z: Buffer, exe: InlineExecutor | None = None
) -> None:
    """One ``sync_execute`` per element."""
    exe = exe or InlineExecutor()
    for i in range(len(x)):

        def body(i: int = i) -> None:
            z[i] = a * x[i] + y[i]

        exe.sync_execute(body)


def async_execute_saxpy(
    a: float, x: Buffer, y: Buffer, z: Buffer, exe: InlineExecutor | None = None
) -> None:
    """One ``async_execute`` per element, waiting on each future."""
    exe = exe or InlineExecutor()
    for i in range(len(x)):

        def body(i: int = i) -> None:
            z[i] = a * x[i] + y[i]

        exe.async_execute(body).wait()


def bulk_sync_execute_saxpy(
    a: float, x: Buffer, y: Buffer, z: Buffer, exe: InlineExecutor | None = None
) -> None:
    """A single ``bulk_sync_execute`` over all elements."""
    exe = exe or InlineExecutor()

    def body(i: int, _a: object, _b: object) -> None:
        z[i] = a * x[i] + y[i]

    exe.bulk_sync_execute(body, len(x), ignore, ignore)


def bulk_async_execute_saxpy(
    a: float, x: Buffer, y: Buffer, z: Buffer, exe: InlineExecutor | None = None
) -> None:
    """A single ``bulk_async_execute`` over all elements, then ``wait()``."""
    exe = exe or InlineExecutor()

    def body(i: int, _a: object, _b: object) -> None:
        z[i] = a * x[i] + y[i]

    exe.bulk_async_execute(body, len(x), ignore, ignore).wait()


VARIANTS: dict[str, SaxpyVariant] = {
    "for_loop_saxpy": for_loop_saxpy,
    "sync_execute_saxpy": sync_execute_saxpy,
    "async_execute_saxpy": async_execute_saxpy,
    "bulk_sync_execute_saxpy": bulk_sync_execute_saxpy,
    "bulk_async_execute_saxpy": bulk_async_execute_saxpy,
}


@dataclasses.dataclass(frozen=True)
class BandwidthResult:
    """Timing of one variant: mean seconds per trial and effective GB/s."""

    name: str
    seconds_per_trial: float
    gigabytes_per_second: float

    def summary(self) -> str:
        return f"{self.name}: {self.gigabytes_per_second:.4g} GB/s"


@dataclasses.dataclass(frozen=True)
class BenchmarkReport:
    """Results of one benchmark run, in the order the variants ran."""

    n: int
    trials: int
    results: tuple[BandwidthResult, ...]

    def summary(self) -> list[str]:
        """Return printable lines: problem size first, then one per variant."""
        return [f"SAXPY problem size: {self.n}"] + [r.summary() for r in self.results]


def make_buffers(n: int, x_value: float, y_value: float) -> tuple[Buffer, Buffer, Buffer]:
    """Allocate ``x`` and ``y`` filled with constants and a zeroed ``z``."""
    return array("f", [x_value]) * n, array("f", [y_value]) * n, array("f", [0.0]) * n


def measure(
    name: str,
    variant: SaxpyVariant,
    a: float,
    x: Buffer,
    y: Buffer,
    z: Buffer,
    *,
    trials: int,
    exe: InlineExecutor | None = None,
) -> BandwidthResult:
    """Check a variant's output, warm it up, then time ``trials`` runs.

    Raises:
        InvariantViolationError: If the variant's output differs from the
            reference loop's.
        ValueError: If ``trials`` is not positive.
    """
    if trials <= 0:
        raise ValueError("trials must be positive")
    exe = exe or InlineExecutor()

    reference = array(z.typecode, bytes(len(z) * z.itemsize))
    for_loop_saxpy(a, x, y, reference)

    z[:] = array(z.typecode, bytes(len(z) * z.itemsize))
    variant(a, x, y, z, exe)
    if z != reference:
        raise InvariantViolationError(
            "Variant output differs from the reference loop", operation=name
        )

    variant(a, x, y, z, exe)  # warm-up
    start = time.perf_counter()
    for _ in range(trials):
        variant(a, x, y, z, exe)
    elapsed = time.perf_counter() - start

    seconds = elapsed / trials
    gigabytes = 3 * len(x) * x.itemsize / _BYTES_PER_GB
    bandwidth = gigabytes / seconds if seconds > 0 else float("inf")
    log.debug("%s: %.6fs per trial over %d trials", name, seconds, trials)
    return BandwidthResult(name, seconds, bandwidth)


def run_benchmark(
    n: int,
    trials: int,
    *,
    a: float = 42.0,
    x_value: float = 7.0,
    y_value: float = 13.0,
    variants: Iterable[str] | None = None,
    exe: InlineExecutor | None = None,
) -> BenchmarkReport:
    """Run the selected variants (all by default) on fresh buffers of size ``n``.

    Raises:
        KeyError: If a variant name is unknown.
    """
    names = list(variants) if variants is not None else list(VARIANTS)
    unknown = [v for v in names if v not in VARIANTS]
    if unknown:
        raise KeyError(f"Unknown SAXPY variant(s): {', '.join(unknown)}")

    x, y, z = make_buffers(n, x_value, y_value)
    results = tuple(
        measure(name, VARIANTS[name], a, x, y, z, trials=trials, exe=exe)
        for name in names
    )
    return BenchmarkReport(n=n, trials=trials, results=results)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``readyexec-bench``."""
    import argparse
    import sys

    from readyexec.telemetry import SimpleReporter

    parser = argparse.ArgumentParser("readyexec-bench", description=__doc__)
    parser.add_argument("--size-log2", type=int, default=20, help="problem size as a power of two")
    parser.add_argument("--trials", type=int, default=5)
    parser.add_argument(
        "--variant",
        action="append",
        choices=sorted(VARIANTS),
        help="variant to run (repeatable; default: all)",
    )
    parser.add_argument("--telemetry", action="store_true", help="print a telemetry report")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    reporter = SimpleReporter() if args.telemetry else None
    exe = InlineExecutor(reporters=(reporter,) if reporter else ())
    try:
        report = run_benchmark(
            1 << args.size_log2, args.trials, variants=args.variant, exe=exe
        )
    except (InvariantViolationError, ValueError) as e:
        sys.stderr.write(f"{e}\n")
        return 1

    for line in report.summary():
        sys.stdout.write(line + "\n")
    if reporter is not None:
        sys.stdout.write(reporter.get_report() + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
