"""
Test the fixed and adaptive precision policies.
"""

import numpy as np
import pytest

from pyendgame import (
    AdaptivePrecision,
    AMPTracker,
    FixedPrecision,
    NumericContext,
    PrecisionPolicy,
    SampleHistory,
    SuccessCode,
    Tracker,
    TrackResult,
)


class FlakyRefiner:
    """Refines successfully only at or above ``needed_digits``."""

    def __init__(self, needed_digits):
        self.needed_digits = needed_digits
        self.attempts = []

    def refine(self, sample, time, tolerance, max_iterations, precision=None):
        self.attempts.append(precision)
        ctx = NumericContext(precision)
        code = SuccessCode.Success if precision >= self.needed_digits else SuccessCode.Failure
        return TrackResult(code, ctx.vector(sample) + 1, precision)


def _mixed_history():
    history = SampleHistory()
    history.append(0.1, np.array([1.0 + 0j]), 16)
    ctx = NumericContext(30)
    history.append(ctx.scalar(0.05), ctx.vector([2.0]), 30)
    return history


class TestFixedPrecision:
    """Test the fixed-precision policy."""

    def test_refine_failure_keeps_sample(self):
        policy = FixedPrecision()
        sample = np.array([3.0 + 0j])
        result = policy.refine_sample(FlakyRefiner(100), sample, 0.1, 16, 1e-13, 15)
        assert result.code == SuccessCode.Success
        assert result.sample is sample

    def test_refine_success_uses_refined(self):
        result = FixedPrecision().refine_sample(FlakyRefiner(16), np.array([3.0 + 0j]), 0.1, 16, 1e-13, 15)
        assert result.sample[0] == 4

    def test_uniform_precision_is_noop(self, smooth):
        history = _mixed_history()
        assert FixedPrecision(16).ensure_at_uniform_precision(smooth(), history) == 16
        assert history.precisions == [16, 30]


class TestAdaptivePrecision:
    """Test the adaptive-precision policy."""

    def test_refine_raises_precision(self):
        refiner = FlakyRefiner(32)
        result = AdaptivePrecision(precision_increment=8).refine_sample(
            refiner, np.array([3.0 + 0j]), 0.1, 16, 1e-13, 15)
        assert result.code == SuccessCode.Success
        assert refiner.attempts == [16, 24, 32]
        assert result.precision == 32

    def test_refine_max_precision(self):
        result = AdaptivePrecision(max_precision=24, precision_increment=8).refine_sample(
            FlakyRefiner(100), np.array([3.0 + 0j]), 0.1, 16, 1e-13, 15)
        assert result.code == SuccessCode.MaxPrecisionReached

    def test_uniform_precision(self, smooth):
        system = smooth()
        history = _mixed_history()
        loops = SampleHistory()
        loops.append(0.1, np.array([5.0 + 0j]), 16)

        digits = AdaptivePrecision().ensure_at_uniform_precision(system, history, loops)
        assert digits == 30
        assert history.precisions == [30, 30]
        assert loops.precisions == [30]
        assert system.precision == 30

    def test_uniform_precision_idempotent(self, smooth):
        system = smooth()
        history = _mixed_history()
        policy = AdaptivePrecision()
        policy.ensure_at_uniform_precision(system, history)
        samples = list(history.samples)
        assert policy.ensure_at_uniform_precision(system, history) == 30
        assert all(a is b for a, b in zip(samples, history.samples))

    def test_empty_histories(self, smooth):
        system = smooth()
        assert AdaptivePrecision().ensure_at_uniform_precision(system, SampleHistory()) == system.precision

    def test_rejects_low_max_precision(self):
        with pytest.raises(ValueError):
            AdaptivePrecision(max_precision=8)

    @pytest.mark.parametrize("increment", [0, -8])
    def test_rejects_non_positive_increment(self, increment):
        with pytest.raises(ValueError):
            AdaptivePrecision(precision_increment=increment)


class TestPolicySelection:
    """Test choosing a policy from a tracker."""

    def test_for_tracker(self, smooth):
        system = smooth()
        assert isinstance(PrecisionPolicy.for_tracker(Tracker(system)), FixedPrecision)
        policy = PrecisionPolicy.for_tracker(AMPTracker(system, max_precision=64))
        assert isinstance(policy, AdaptivePrecision)
        assert policy.max_precision == 64
