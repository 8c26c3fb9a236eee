"""
Test Hermite extrapolation and the s-plane transform.
"""

import numpy as np
import pytest

from pyendgame import CycleNumberError, NumericContext, hermite_interpolate_and_solve
from pyendgame.interpolation import s_to_time, to_s_plane


def _cubic(t):
    return np.array([1 + 2 * t + 3 * t ** 2 + t ** 3, 4 - t ** 3], dtype=complex)


def _cubic_derivative(t):
    return np.array([2 + 6 * t + 3 * t ** 2, -3 * t ** 2], dtype=complex)


class TestHermite:
    """Test Hermite interpolation."""

    def test_reproduces_cubic_from_two_nodes(self):
        """Test that two nodes with derivatives recover a cubic exactly."""
        times = [0.5, 0.25]
        result = hermite_interpolate_and_solve(
            0.0, times, [_cubic(t) for t in times], [_cubic_derivative(t) for t in times])
        assert np.allclose(result, [1, 4], atol=1e-12)

    def test_interpolates_at_nodes(self):
        times = [0.4, 0.2, 0.1]
        samples = [_cubic(t) for t in times]
        result = hermite_interpolate_and_solve(
            0.2, times, samples, [_cubic_derivative(t) for t in times])
        assert np.allclose(result, samples[1])

    def test_multiprecision(self):
        ctx = NumericContext(40)
        times = [ctx.scalar(0.5), ctx.scalar(0.25)]
        samples = [ctx.vector(_cubic(0.5)), ctx.vector(_cubic(0.25))]
        derivatives = [ctx.vector(_cubic_derivative(0.5)), ctx.vector(_cubic_derivative(0.25))]
        result = hermite_interpolate_and_solve(ctx.scalar(0), times, samples, derivatives)
        assert ctx.norm(result - ctx.vector([1, 4])) < 1e-30

    def test_coincident_nodes_raise(self):
        sample = _cubic(0.5)
        with pytest.raises(ValueError):
            hermite_interpolate_and_solve(0.0, [0.5, 0.5], [sample, sample], [sample, sample])

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            hermite_interpolate_and_solve(0.0, [0.5, 0.25], [_cubic(0.5)], [_cubic(0.5)])


class TestSPlane:
    """Test the map s = t^(1/c)."""

    @pytest.mark.parametrize("c", [1, 2, 3, 4])
    def test_round_trip(self, c):
        ctx = NumericContext()
        times = [0.1, 0.05 + 0.02j]
        s_times, _ = to_s_plane(times, [np.zeros(1), np.zeros(1)], c, ctx)
        for t, s in zip(times, s_times):
            assert abs(s_to_time(s, c, ctx) - t) < 1e-14

    def test_derivative_scaling(self):
        """Test dx/ds = dx/dt * c * t^((c-1)/c) for x = t^(1/2)."""
        ctx = NumericContext()
        t = 0.09
        dxdt = np.array([0.5 * t ** -0.5], dtype=complex)
        _, s_derivatives = to_s_plane([t], [dxdt], 2, ctx)
        assert np.allclose(s_derivatives[0], [1.0])

    def test_zero_cycle_number_raises(self):
        ctx = NumericContext()
        with pytest.raises(CycleNumberError) as excinfo:
            to_s_plane([0.1], [np.zeros(1)], 0, ctx)
        assert excinfo.value.code.name == "ZeroCycleNumber"
