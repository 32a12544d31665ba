"""Tests for double exponential smoothing."""

import pytest

from headtrack.errors import ConfigurationError
from headtrack.smoother import Smoother, SmoothVector


class TestSmoother:
    def test_alpha_one_is_pass_through(self):
        smoother = Smoother(1.0, 35)
        smoother.init((0, 0, 0, 0, 0))
        for v in [(1, 2, 3, 4, 5), (-7, 0.5, 0, 100, 3), (10, 10, 10, 10, 10)]:
            assert smoother.smooth(v) == SmoothVector(*map(float, v))
            assert smoother.smooth(v, elapsed_ms=500) == SmoothVector(*map(float, v))

    @pytest.mark.parametrize("alpha", [0.05, 0.35, 0.9])
    def test_level_converges_monotonically(self, alpha):
        smoother = Smoother(alpha, 35)
        smoother.init((0, 0, 0, 0, 0))
        target = (10, -5, 0, 60, 80)

        previous = smoother.level
        for _ in range(200):
            smoother.smooth(target)
            level = smoother.level
            for prev, cur, t in zip(previous, level, target):
                assert abs(t - cur) <= abs(t - prev)
            previous = level

        assert previous == pytest.approx(target, abs=1e-2)

    def test_constant_input_is_fixed_point(self):
        smoother = Smoother(0.35, 35)
        smoother.init((5, 5, 0, 20, 20))
        assert smoother.smooth((5, 5, 0, 20, 20)) == pytest.approx((5, 5, 0, 20, 20))

    def test_stages_are_independent(self):
        smoother = Smoother(0.5, 35)
        smoother.init((0, 0, 0, 0, 0))
        smoother.smooth((8, 0, 0, 0, 0))

        assert smoother.level.x == pytest.approx(4.0)
        assert smoother.trend_level.x == pytest.approx(2.0)

    def test_init_copies_input(self):
        smoother = Smoother(0.5, 35)
        initial = [1.0, 2.0, 3.0, 4.0, 5.0]
        smoother.init(initial)
        initial[0] = 100.0
        assert smoother.level.x == 1.0

    def test_discrete_prediction(self):
        alpha, interval = 0.5, 10
        smoother = Smoother(alpha, interval)
        smoother.init((0, 0, 0, 0, 0))
        smoother.smooth((8, 0, 0, 0, 0))
        sp, sp2 = 4.0, 2.0

        # Whole steps only: 25 ms is two intervals.
        ratio = alpha * 2 / (1 - alpha)
        assert smoother.predict(25).x == pytest.approx((2 + ratio) * sp - (1 + ratio) * sp2)
        assert smoother.predict(0).x == pytest.approx(2 * sp - sp2)

    def test_interpolated_prediction(self):
        alpha, interval = 0.5, 10
        smoother = Smoother(alpha, interval, interpolate=True)
        smoother.init((0, 0, 0, 0, 0))
        smoother.smooth((8, 0, 0, 0, 0))
        sp, sp2 = 4.0, 2.0

        ratio = alpha / (1 - alpha)
        step, step_lo = 1.5, 1
        expected = (step - step_lo) * ratio * (sp - sp2) + (2 + step_lo * ratio) * sp - (1 + step_lo * ratio) * sp2
        assert smoother.predict(15).x == pytest.approx(expected)

    def test_modes_agree_on_whole_steps(self):
        a = Smoother(0.3, 10)
        b = Smoother(0.3, 10, interpolate=True)
        for s in (a, b):
            s.init((0, 0, 0, 0, 0))
            s.smooth((3, 1, 0, 7, 2))
            s.smooth((6, 2, 0, 9, 4))
        assert a.predict(30) == pytest.approx(b.predict(30))

    def test_reset(self):
        smoother = Smoother(0.5, 10)
        smoother.init((1, 1, 1, 1, 1))
        smoother.reset()
        assert not smoother.initialized
        assert smoother.level is None

    @pytest.mark.parametrize("alpha", [0.0, -0.1, 1.5])
    def test_invalid_alpha(self, alpha):
        with pytest.raises(ConfigurationError):
            Smoother(alpha, 35)

    def test_invalid_interval(self):
        with pytest.raises(ConfigurationError):
            Smoother(0.5, 0)

    def test_smooth_before_init(self):
        with pytest.raises(RuntimeError):
            Smoother(0.5, 35).smooth((1, 2, 3, 4, 5))

    def test_wrong_vector_length(self):
        smoother = Smoother(0.5, 35)
        with pytest.raises(ValueError):
            smoother.init((1, 2, 3))
