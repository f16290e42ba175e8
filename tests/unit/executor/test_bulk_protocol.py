"""Unit tests for bulk execution: counts, shared state and failure policy."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from readyexec.bulk import IGNORE, BulkFailurePolicy, BulkOutcome, check_shape, ignore, run_bulk
from readyexec.core.exceptions import BulkShapeError
from readyexec.executor import InlineExecutor
from readyexec.future import ReadyVoidFuture

pytestmark = pytest.mark.unit

BULK_FORMS = ("bulk_sync_execute", "bulk_async_execute")


def _call(exe: InlineExecutor, form: str, *args):
    """Invoke a bulk form and, for the async one, surface its result."""
    result = getattr(exe, form)(*args)
    if form == "bulk_async_execute":
        assert isinstance(result, ReadyVoidFuture)
        result.wait()
        result.get()
    else:
        assert result is None


class TestInvocationCounts:
    @pytest.mark.parametrize("form", BULK_FORMS)
    @given(n=st.integers(min_value=0, max_value=200))
    @settings(max_examples=25, deadline=None)
    def test_each_index_exactly_once(self, form, n):
        seen: list[int] = []
        _call(InlineExecutor(), form, lambda i, a, b: seen.append(i), n, ignore, ignore)
        assert sorted(seen) == list(range(n))

    @pytest.mark.parametrize("form", BULK_FORMS)
    @pytest.mark.parametrize("n", [0, 1, 17])
    def test_factories_called_once_regardless_of_n(
        self, form, n, counting_factory, recording_body
    ):
        fa, fb = counting_factory(), counting_factory()
        body = recording_body()
        _call(InlineExecutor(), form, body, n, fa, fb)
        assert (fa.calls, fb.calls) == (1, 1)
        assert len(body.calls) == n

    @pytest.mark.parametrize("form", BULK_FORMS)
    def test_factories_run_before_any_element(self, form):
        events: list[str] = []

        def fa():
            events.append("a")
            return "A"

        def fb():
            events.append("b")
            return "B"

        _call(InlineExecutor(), form, lambda i, a, b: events.append(f"f{i}"), 2, fa, fb)
        assert events == ["a", "b", "f0", "f1"]


class TestSharedState:
    @pytest.mark.parametrize("form", BULK_FORMS)
    def test_shared_objects_are_identical_across_indices(
        self, form, counting_factory, recording_body
    ):
        fa, fb = counting_factory(), counting_factory()
        body = recording_body()
        _call(InlineExecutor(), form, body, 5, fa, fb)
        (a_obj,), (b_obj,) = fa.produced, fb.produced
        assert a_obj is not b_obj
        assert all(a is a_obj and b is b_obj for _, a, b in body.calls)

    def test_scratch_accumulator_is_shared(self):
        def body(i, acc, _b):
            acc.append(i * i)

        holder = []

        def factory():
            holder.append([])
            return holder[-1]

        InlineExecutor().bulk_sync_execute(body, 4, factory, ignore)
        assert holder == [[0, 1, 4, 9]]

    def test_ignore_factory_returns_singleton(self):
        assert ignore() is IGNORE
        assert ignore() is ignore()
        assert repr(IGNORE) == "IGNORE"

    def test_writes_to_external_sequence(self):
        out = [None] * 4

        def body(i, _a, _b):
            out[i] = i * 2

        InlineExecutor().bulk_sync_execute(body, 4, ignore, ignore)
        assert out == [0, 2, 4, 6]


class TestFailures:
    def test_sync_propagates_first_failure(self, recording_body):
        body = recording_body(fail_on=frozenset({2, 4}))
        with pytest.raises(RuntimeError, match="element 2 failed"):
            InlineExecutor().bulk_sync_execute(body, 6, ignore, ignore)

    def test_async_captures_failure(self, recording_body):
        body = recording_body(fail_on=frozenset({1}))
        fut = InlineExecutor().bulk_async_execute(body, 3, ignore, ignore)
        fut.wait()
        with pytest.raises(RuntimeError, match="element 1 failed"):
            fut.get()

    @pytest.mark.parametrize("form", BULK_FORMS)
    def test_stop_policy_issues_no_further_indices(self, form, recording_body):
        body = recording_body(fail_on=frozenset({2}))
        exe = InlineExecutor(policy=BulkFailurePolicy.STOP)
        with pytest.raises(RuntimeError):
            _call(exe, form, body, 6, ignore, ignore)
        assert body.indices == [0, 1, 2]

    @pytest.mark.parametrize("form", BULK_FORMS)
    def test_complete_policy_issues_every_index(self, form, recording_body):
        body = recording_body(fail_on=frozenset({1, 3}))
        exe = InlineExecutor(policy=BulkFailurePolicy.COMPLETE)
        with pytest.raises(RuntimeError, match="element 1 failed") as ei:
            _call(exe, form, body, 5, ignore, ignore)
        assert body.indices == [0, 1, 2, 3, 4]
        assert any("1 further bulk invocation" in n for n in ei.value.__notes__)

    def test_factory_failure_propagates_from_sync(self, recording_body):
        body = recording_body()

        def broken():
            raise MemoryError("no scratch")

        with pytest.raises(MemoryError):
            InlineExecutor().bulk_sync_execute(body, 3, ignore, broken)
        assert body.calls == []

    def test_factory_failure_is_captured_by_async(self, recording_body):
        body = recording_body()

        def broken():
            raise OSError("no scratch")

        fut = InlineExecutor().bulk_async_execute(body, 3, broken, ignore)
        with pytest.raises(OSError, match="no scratch"):
            fut.get()
        assert body.calls == []

    def test_interrupt_is_captured_by_async(self):
        def body(i, _a, _b):
            raise KeyboardInterrupt

        fut = InlineExecutor(policy="complete").bulk_async_execute(body, 3, ignore, ignore)
        assert isinstance(fut.exception(), KeyboardInterrupt)


class TestShape:
    @pytest.mark.parametrize("form", BULK_FORMS)
    @pytest.mark.parametrize("bad", [-1, 2.0, "3", True, None])
    def test_invalid_count_raises_synchronously(self, form, bad, counting_factory):
        fa = counting_factory()
        with pytest.raises(BulkShapeError):
            getattr(InlineExecutor(), form)(lambda i, a, b: None, bad, fa, ignore)
        assert fa.calls == 0

    def test_check_shape_returns_count(self):
        assert check_shape(0) == 0
        assert check_shape(12) == 12

    @pytest.mark.parametrize("form", BULK_FORMS)
    def test_index_integers_are_accepted(self, form):
        class Count:
            def __index__(self):
                return 3

        seen: list[int] = []
        assert check_shape(Count()) == 3
        _call(InlineExecutor(), form, lambda i, a, b: seen.append(i), Count(), ignore, ignore)
        assert seen == [0, 1, 2]


class TestRunBulk:
    def test_outcome_without_failures(self):
        outcome = run_bulk(lambda i, a, b: None, 3, ignore, ignore)
        assert outcome == BulkOutcome(invoked=3)
        assert outcome.first_failure is None
        outcome.reraise()

    def test_outcome_records_failures_in_order(self, recording_body):
        body = recording_body(fail_on=frozenset({0, 2}))
        outcome = run_bulk(body, 3, ignore, ignore, policy=BulkFailurePolicy.COMPLETE)
        assert outcome.invoked == 3
        assert [str(e) for e in outcome.failures] == ["element 0 failed", "element 2 failed"]

    def test_policy_accepts_plain_strings(self, recording_body):
        body = recording_body(fail_on=frozenset({0}))
        outcome = run_bulk(body, 3, ignore, ignore, policy="complete")  # type: ignore[arg-type]
        assert outcome.invoked == 3

    def test_policy_accepts_enum_names(self, recording_body):
        body = recording_body(fail_on=frozenset({0}))
        outcome = run_bulk(body, 3, ignore, ignore, policy="COMPLETE")  # type: ignore[arg-type]
        assert outcome.invoked == 3
        assert BulkFailurePolicy("STOP") is BulkFailurePolicy.STOP
