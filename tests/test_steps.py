"""Tests for the processing step registry."""

import pytest

from headtrack.steps import get_processing_steps, processing_step
from headtrack.types import DetectionMode


class Timed:
    def __init__(self):
        self._step_timings = {}

    @processing_step("second", DetectionMode.VJ, after=["first"])
    def second(self, value):
        return value * 2

    @processing_step("first", DetectionMode.WB, summary="Runs first", algorithm="none")
    def first(self):
        return "ok"


class Untimed:
    @processing_step("only", DetectionMode.CS)
    def only(self):
        raise RuntimeError("boom")


class TestProcessingStep:
    def test_order_follows_after(self):
        assert [s.name for s in get_processing_steps(Timed)] == ["first", "second"]

    def test_instance_lookup(self):
        assert [s.name for s in get_processing_steps(Timed())] == ["first", "second"]

    def test_str(self):
        first = get_processing_steps(Timed)[0]
        assert str(first) == "[WB] first: Runs first (none)"

    def test_records_timing(self):
        obj = Timed()
        assert obj.second(21) == 42
        assert set(obj._step_timings) == {"second"}
        assert obj._step_timings["second"] >= 0

    def test_wraps_method(self):
        assert Timed.second.__name__ == "second"

    def test_exceptions_propagate_without_timings(self):
        with pytest.raises(RuntimeError, match="boom"):
            Untimed().only()

    def test_cycle(self):
        class Cyclic:
            @processing_step("a", DetectionMode.VJ, after=["b"])
            def a(self):
                pass

            @processing_step("b", DetectionMode.VJ, after=["a"])
            def b(self):
                pass

        with pytest.raises(ValueError, match="cycle"):
            get_processing_steps(Cyclic)
