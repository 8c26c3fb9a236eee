"""
Path tracking module for PyEndgame.

This module implements the predictor-corrector tracker the endgames use to
move a solution of H(x, t) = 0 from one time to another along a straight
segment of the complex t-plane, in fixed or adaptive precision.
"""

import logging
import math
from collections import namedtuple
from typing import Optional, Tuple

import numpy as np

from pyendgame.codes import SuccessCode
from pyendgame.numeric import DOUBLE_PRECISION, NumericContext
from pyendgame.system import System

logger = logging.getLogger(__name__)

TrackResult = namedtuple("TrackResult", ["code", "sample", "precision"])


def euler_predictor(t_current, t_target, point: np.ndarray, tangent: np.ndarray) -> np.ndarray:
    """Euler predictor step.

    Args:
        t_current: Current parameter value
        t_target: Target parameter value
        point: Current point
        tangent: dx/dt at the current point

    Returns:
        Predicted point at t_target
    """
    return point + (t_target - t_current) * tangent


def newton_corrector(system: System,
                     point: np.ndarray,
                     t,
                     ctx: NumericContext,
                     max_iters: int = 10,
                     tol: float = 1e-10) -> Tuple[np.ndarray, bool, int]:
    """Newton's method for H(., t) = 0 at a fixed time.

    Args:
        system: The homotopy
        point: Initial guess
        t: Time at which to correct
        ctx: Precision to work in
        max_iters: Maximum iterations
        tol: Convergence tolerance on the Newton step

    Returns:
        (x, success, iters)

    Raises:
        numpy.linalg.LinAlgError: if the Jacobian is singular.
    """
    current = ctx.vector(point)
    for i in range(max_iters):
        f_val = system.evaluate(current, t, ctx)
        delta = ctx.solve(system.jacobian(current, t, ctx), -f_val)
        current = current + delta
        if not ctx.isfinite(current):
            return current, False, i + 1
        if ctx.norm(delta) < tol:
            return current, True, i + 1
    return current, False, max_iters


class Tracker:
    """Fixed-precision predictor-corrector tracker.

    Tracks along the segment from ``from_time`` to ``to_time`` with an Euler
    predictor and a Newton corrector, halving the step on corrector failure
    and growing it after quick convergence.
    """

    is_adaptive = False

    def __init__(self,
                 system: System,
                 tolerance: float = 1e-11,
                 min_step_size: float = 1e-14,
                 max_step_size: float = 0.1,
                 max_num_steps: int = 10000,
                 max_newton_iterations: int = 5,
                 max_norm: float = 1e8,
                 precision: Optional[int] = None):
        """Initialize a tracker.

        Args:
            system: The homotopy to track on
            tolerance: Newton step tolerance while tracking
            min_step_size: Smallest allowed step, as a fraction of the segment
            max_step_size: Largest allowed step in |t|
            max_num_steps: Cap on steps per call to track_path
            max_newton_iterations: Corrector iterations per step
            max_norm: Points larger than this are going to infinity
            precision: Working precision in digits (default: the system's)
        """
        self.system = system
        self.tolerance = tolerance
        self.min_step_size = min_step_size
        self.max_step_size = max_step_size
        self.max_num_steps = max_num_steps
        self.max_newton_iterations = max_newton_iterations
        self.max_norm = max_norm
        self.precision = precision if precision is not None else system.precision

    def context(self, precision: Optional[int] = None) -> NumericContext:
        return NumericContext(precision if precision is not None else self.precision)

    def digits_needed(self, point, t, ctx: NumericContext) -> float:
        """Digits required to keep the corrector meaningful at (point, t)."""
        cond = ctx.condition_number(self.system.jacobian(point, t, ctx))
        if cond == float("inf"):
            return float("inf")
        safety = math.ceil(-math.log10(self.tolerance))
        return math.ceil(math.log10(max(float(cond), 1.0))) + safety

    def _on_precision_check(self, x, t, ctx: NumericContext):
        """Hook for adaptive trackers; returns (code, x, t, ctx)."""
        return SuccessCode.Success, x, t, ctx

    def _on_step_failure(self, x, t, ctx: NumericContext):
        """Called when the step size underflows; returns (code, x, t, ctx)."""
        try:
            needed = self.digits_needed(x, t, ctx)
        except np.linalg.LinAlgError:
            return SuccessCode.MatrixSolveFailure, x, t, ctx
        if needed > ctx.digits:
            return SuccessCode.HigherPrecisionNecessary, x, t, ctx
        return SuccessCode.MinStepSizeReached, x, t, ctx

    def track_path(self, from_time, to_time, from_sample,
                   precision: Optional[int] = None) -> TrackResult:
        """Track a solution from ``from_time`` to ``to_time``.

        Args:
            from_time: Time of the known solution
            to_time: Time to track to
            from_sample: Solution of H(x, from_time) = 0
            precision: Precision of the start data (default: tracker's)

        Returns:
            TrackResult(code, sample, precision). On failure the sample is the
            last point successfully reached.
        """
        ctx = self.context(precision)
        x = ctx.vector(from_sample)
        start = ctx.scalar(from_time)
        target = ctx.scalar(to_time)
        direction = target - start
        length = ctx.abs(direction)
        if length == 0:
            return TrackResult(SuccessCode.Success, x, ctx.digits)

        try:
            self.system.path_derivative(x, start, ctx)
        except np.linalg.LinAlgError:
            return TrackResult(SuccessCode.SingularStartPoint, x, ctx.digits)

        t = start
        s = 0.0  # fraction of the segment covered
        h = min(1.0, float(self.max_step_size / length))
        num_steps = 0

        while s < 1.0:
            if num_steps >= self.max_num_steps:
                logger.debug("max number of steps taken at t=%s", t)
                return TrackResult(SuccessCode.MaxNumStepsTaken, x, ctx.digits)
            num_steps += 1

            code, x, t, ctx = self._on_precision_check(x, t, ctx)
            if code != SuccessCode.Success:
                return TrackResult(code, x, ctx.digits)
            start, target, direction = ctx.scalar(start), ctx.scalar(target), ctx.scalar(direction)

            h = min(h, 1.0 - s)
            t_next = target if s + h >= 1.0 else start + (s + h) * direction

            try:
                tangent = self.system.path_derivative(x, t, ctx)
                predicted = euler_predictor(t, t_next, x, tangent)
                corrected, success, iters = newton_corrector(
                    self.system, predicted, t_next, ctx,
                    max_iters=self.max_newton_iterations, tol=self.tolerance
                )
            except np.linalg.LinAlgError:
                return TrackResult(SuccessCode.MatrixSolveFailure, x, ctx.digits)

            if not success:
                h = h / 2
                if h < self.min_step_size:
                    code, x, t, ctx = self._on_step_failure(x, t, ctx)
                    if code != SuccessCode.Success:
                        logger.debug("tracking failed at t=%s with %s", t, code)
                        return TrackResult(code, x, ctx.digits)
                    h = min(1.0 - s, float(self.max_step_size / length))
                continue

            if ctx.norm(corrected) > self.max_norm:
                return TrackResult(SuccessCode.GoingToInfinity, corrected, ctx.digits)

            x, t = corrected, t_next
            s = s + h
            if iters <= 2:
                # Increase step size if Newton converges quickly
                h = min(float(self.max_step_size / length), h * 1.5)

        return TrackResult(SuccessCode.Success, x, ctx.digits)

    def refine(self, sample, time, tolerance: float, max_iterations: int,
               precision: Optional[int] = None) -> TrackResult:
        """Newton-refine a point at a fixed time to ``tolerance``."""
        ctx = self.context(precision)
        try:
            refined, success, _ = newton_corrector(
                self.system, sample, ctx.scalar(time), ctx,
                max_iters=max_iterations, tol=tolerance
            )
        except np.linalg.LinAlgError:
            return TrackResult(SuccessCode.MatrixSolveFailure, ctx.vector(sample), ctx.digits)
        code = SuccessCode.Success if success else SuccessCode.Failure
        return TrackResult(code, refined, ctx.digits)


class AMPTracker(Tracker):
    """Adaptive-precision tracker.

    Before each step the condition number of the Jacobian decides how many
    digits are needed; precision is raised in increments up to
    ``max_precision`` and never lowered within one call.
    """

    is_adaptive = True

    def __init__(self,
                 system: System,
                 max_precision: int = 256,
                 precision_increment: int = 8,
                 degree_bound: Optional[int] = None,
                 coefficient_bound: Optional[float] = None,
                 **kwargs):
        super().__init__(system, **kwargs)
        if max_precision < DOUBLE_PRECISION:
            raise ValueError("max_precision must be at least double precision")
        if precision_increment < 1:
            raise ValueError("precision_increment must be positive")
        self.max_precision = max_precision
        self.precision_increment = precision_increment
        self.degree_bound = degree_bound if degree_bound is not None else (system.degree_bound or 2)
        self.coefficient_bound = coefficient_bound if coefficient_bound is not None else (system.coefficient_bound or 1.0)

    def _raise_precision(self, x, t, ctx: NumericContext, needed):
        if needed > self.max_precision or ctx.digits >= self.max_precision:
            return SuccessCode.MaxPrecisionReached, x, t, ctx
        digits = min(self.max_precision, max(int(needed), ctx.digits + self.precision_increment))
        logger.debug("raising precision from %d to %d digits at t=%s", ctx.digits, digits, t)
        new_ctx = ctx.at(digits)
        return SuccessCode.Success, new_ctx.vector(x), new_ctx.scalar(t), new_ctx

    def _on_precision_check(self, x, t, ctx):
        try:
            needed = self.digits_needed(x, t, ctx)
        except np.linalg.LinAlgError:
            return SuccessCode.MatrixSolveFailure, x, t, ctx
        if needed <= ctx.digits:
            return SuccessCode.Success, x, t, ctx
        return self._raise_precision(x, t, ctx, needed)

    def _on_step_failure(self, x, t, ctx):
        return self._raise_precision(x, t, ctx, ctx.digits + self.precision_increment)
