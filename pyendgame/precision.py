"""
Precision policies for PyEndgame.

The endgames call two precision-dependent operations they do not implement
themselves: refining a freshly tracked sample, and bringing every sample of
a history to one common precision before cross-sample linear algebra. A
policy object supplying both is chosen at construction.
"""

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from pyendgame.codes import SuccessCode
from pyendgame.history import SampleHistory
from pyendgame.numeric import DOUBLE_PRECISION, NumericContext
from pyendgame.system import System
from pyendgame.tracking import TrackResult

logger = logging.getLogger(__name__)


class PrecisionPolicy(ABC):
    """Strategy for precision handling during an endgame."""

    @abstractmethod
    def refine_sample(self, tracker, sample: np.ndarray, time, precision: int,
                      tolerance: float, max_iterations: int) -> TrackResult:
        """Newton-refine a just-tracked sample."""

    @abstractmethod
    def ensure_at_uniform_precision(self, system: System, *histories: SampleHistory) -> int:
        """Bring every entry of the histories to one precision and return it."""

    def ensure_at_precision(self, time, sample: np.ndarray, digits: int) -> Tuple[object, np.ndarray]:
        """Express one (time, sample) pair at ``digits``."""
        ctx = NumericContext(digits)
        return ctx.scalar(time), ctx.vector(sample)

    @staticmethod
    def for_tracker(tracker) -> "PrecisionPolicy":
        """The policy matching a tracker's precision mode."""
        if getattr(tracker, "is_adaptive", False):
            return AdaptivePrecision(max_precision=tracker.max_precision,
                                     precision_increment=tracker.precision_increment)
        return FixedPrecision(tracker.precision)


class FixedPrecision(PrecisionPolicy):
    """Every computation runs at one fixed precision."""

    def __init__(self, digits: int = DOUBLE_PRECISION):
        self.digits = int(digits)

    def __repr__(self) -> str:
        return f"FixedPrecision(digits={self.digits})"

    def refine_sample(self, tracker, sample, time, precision, tolerance, max_iterations):
        result = tracker.refine(sample, time, tolerance, max_iterations, precision=self.digits)
        if result.code != SuccessCode.Success:
            # keep the tracked point; it already satisfies the tracking tolerance
            logger.debug("refinement at t=%s ended with %s; keeping tracked sample", time, result.code)
            return TrackResult(SuccessCode.Success, sample, self.digits)
        return result

    def ensure_at_uniform_precision(self, system, *histories):
        return self.digits


class AdaptivePrecision(PrecisionPolicy):
    """Precision is raised whenever refinement or conditioning demands it."""

    def __init__(self, max_precision: int = 256, precision_increment: int = 8):
        if max_precision < DOUBLE_PRECISION:
            raise ValueError("max_precision must be at least double precision")
        if precision_increment < 1:
            raise ValueError("precision_increment must be positive")
        self.max_precision = int(max_precision)
        self.precision_increment = int(precision_increment)

    def __repr__(self) -> str:
        return f"AdaptivePrecision(max_precision={self.max_precision})"

    def refine_sample(self, tracker, sample, time, precision, tolerance, max_iterations):
        digits = int(precision)
        while True:
            result = tracker.refine(sample, time, tolerance, max_iterations, precision=digits)
            if result.code == SuccessCode.Success:
                return result
            if digits >= self.max_precision:
                return TrackResult(SuccessCode.MaxPrecisionReached, result.sample, digits)
            digits = min(self.max_precision, digits + self.precision_increment)
            logger.debug("refinement failed at t=%s, retrying at %d digits", time, digits)
            time, sample = self.ensure_at_precision(time, sample, digits)

    def ensure_at_uniform_precision(self, system, *histories):
        populated = [h for h in histories if len(h) > 0]
        if not populated:
            return system.precision
        digits = max(h.max_precision for h in populated)
        ctx = NumericContext(digits)
        for history in populated:
            history.convert_to(ctx)
        system.precision = digits
        return digits
