"""
Cauchy endgame for PyEndgame.

This module implements the Cauchy endgame. It tracks the solution around
circles in the complex t-plane centered at the origin. The number of loops
needed before the path closes up is the cycle number, and the Cauchy
integral formula, which with uniformly spaced samples is the mean of the
loop samples, predicts the endpoint at t = 0.
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from pyendgame.codes import EndgameContractError, InsufficientSamplesError, SuccessCode
from pyendgame.endgame.base import EndgameBase
from pyendgame.history import SampleHistory
from pyendgame.numeric import NumericContext

logger = logging.getLogger(__name__)


class CauchyEndgame(EndgameBase):
    """Endgame predicting the endpoint from closed loops around t = 0.

    ``num_sample_points`` sets the number of stop points per loop.
    """

    def __init__(self, tracker, config=None, precision_policy=None, random_state=None):
        super().__init__(tracker, config, precision_policy, random_state)
        self.loop_history = SampleHistory()
        self.c_over_k: List = []

    @property
    def cauchy_settings(self):
        return self.config.cauchy

    def circle_track(self, start_time, start_sample) -> Tuple[SuccessCode, np.ndarray]:
        """Track once around the circle of radius ``|start_time|``.

        The loop is cut into ``num_sample_points`` equal angular steps; each
        leg is tracked along its chord and every stop point is refined and
        appended to ``loop_history``.

        Args:
            start_time: Point on the circle where the loop starts and ends
            start_sample: Solution at ``start_time``

        Returns:
            (code, sample). On a tracking failure the sample is the last point
            the tracker reached.

        Raises:
            EndgameContractError: with fewer than three stop points or a zero
                radius.
        """
        num_points = self.endgame_settings.num_sample_points
        if num_points < 3:
            raise EndgameContractError("circle tracking needs at least three sample points per loop")

        ctx = self.context()
        start_time = ctx.scalar(start_time)
        if ctx.abs(start_time) == 0:
            raise EndgameContractError("cannot track a circle of radius zero")

        digits = ctx.digits
        current_time, current_sample = start_time, ctx.vector(start_sample)
        for k in range(num_points):
            if k == num_points - 1:
                next_time = start_time
            else:
                angle = 2 * ctx.pi * (k + 1) / num_points
                next_time = start_time * ctx.exp(ctx.scalar(1j) * angle)

            result = self.tracker.track_path(current_time, next_time, current_sample, precision=digits)
            if result.code != SuccessCode.Success:
                logger.debug("circle track failed on leg %d, code %s", k, result.code)
                return result.code, result.sample

            refined = self.refine(result.sample, next_time, result.precision)
            if refined.code != SuccessCode.Success:
                return refined.code, result.sample

            digits = refined.precision
            current_time = NumericContext(digits).scalar(next_time)
            current_sample = refined.sample
            self.loop_history.append(current_time, current_sample, digits)

        self.precision = max(self.precision, digits)
        return SuccessCode.Success, current_sample

    def compute_c_over_k(self):
        """Ratio estimate of c/k from the three newest samples.

        Degenerate data give 1, as do estimates below 1.

        Raises:
            InsufficientSamplesError: with fewer than three samples.
        """
        if len(self.history) < 3:
            raise InsufficientSamplesError("need at least three samples for a c/k estimate")

        ctx = self.context()
        sample0, sample1, sample2 = (ctx.vector(s) for s in self.history.samples[-3:])
        rand_vector = self.projection_vector(ctx)
        numerator = ctx.abs(ctx.dot(sample2 - sample1, rand_vector))
        denominator = ctx.abs(ctx.dot(sample1 - sample0, rand_vector))
        if numerator == 0 or denominator == 0 or numerator == denominator:
            return ctx.real(1)

        estimate = abs(ctx.log(ctx.real(self.endgame_settings.sample_factor))) / abs(ctx.log(numerator / denominator))
        if estimate < 1:
            return ctx.real(1)
        return estimate

    def check_for_c_over_k_stabilization(self, estimates=None) -> bool:
        """True when the newest c/k estimates agree.

        The last ``num_needed_for_stabilization`` estimates are stable when
        every consecutive min/max ratio reaches
        ``minimum_for_c_over_k_stabilization``.
        """
        estimates = self.c_over_k if estimates is None else list(estimates)
        needed = self.cauchy_settings.num_needed_for_stabilization
        if len(estimates) < needed:
            return False

        recent = [abs(e) for e in estimates[-needed:]]
        for a, b in zip(recent, recent[1:]):
            largest = max(a, b)
            ratio = 1 if largest == 0 else min(a, b) / largest
            if ratio < self.cauchy_settings.minimum_for_c_over_k_stabilization:
                return False
        return True

    def find_tolerance_for_closed_loop(self, time, sample) -> float:
        """A-priori tolerance for deciding whether a loop has closed.

        Built from the degree and coefficient bounds of the homotopy, the
        smallest singular value of the Jacobian at (sample, time), and the
        norm of the sample, then clamped to the configured range.
        """
        settings = self.cauchy_settings
        min_tolerance = settings.minimum_closed_loop_tolerance
        max_tolerance = max(settings.maximum_closed_loop_tolerance, min_tolerance)

        degree = max(int(getattr(self.tracker, "degree_bound", 2)), 2)
        coefficient_bound = float(getattr(self.tracker, "coefficient_bound", 1.0))
        n = len(sample)
        num_terms = degree if n <= 1 else math.comb(degree + n - 1, n - 1)
        m = degree * (degree - 1) * num_terms

        ctx = self.context()
        sigma = float(ctx.smallest_singular_value(self.system.jacobian(sample, time, ctx)))
        norm_factor = float(ctx.norm(sample)) ** (degree - 2)

        bound = coefficient_bound * norm_factor * m
        tolerance = sigma if bound == 0 else 2 * sigma / bound
        return min(max(tolerance, min_tolerance), max_tolerance)

    def closed_loop_tolerance(self, time, sample) -> float:
        if getattr(self.tracker, "is_adaptive", False):
            return self.find_tolerance_for_closed_loop(time, sample)
        return self.tolerances.final_tolerance

    def ratio_test(self, time) -> bool:
        """Check that the loop samples are in the endgame operating zone.

        The values around the loop must not differ radically: either their
        norms nearly agree, or the smallest is a fair fraction of the largest.
        """
        if abs(complex(time)) < self.cauchy_settings.cycle_cutoff_time:
            return True

        ctx = self.context()
        norms = [float(ctx.norm(s)) for s in self.loop_history.samples]
        m = min(norms)
        M = max(norms)
        if M == 0:
            return True
        return (M - m < self.tolerances.final_tolerance) or (m / M > self.cauchy_settings.maximum_cauchy_ratio)

    def pre_cauchy_loop_tracking(self) -> SuccessCode:
        """Advance geometrically until the c/k estimates stabilize.

        Also stops once |t| falls below ``cycle_cutoff_time``.
        """
        self.c_over_k = []
        while True:
            if len(self.history) >= 3:
                self.c_over_k.append(self.compute_c_over_k())
                if self.check_for_c_over_k_stabilization():
                    logger.debug("c/k estimates stabilized at %s", self.c_over_k[-1])
                    return SuccessCode.Success

            time, _ = self.history.latest()
            if abs(complex(time)) < self.cauchy_settings.cycle_cutoff_time:
                return SuccessCode.Success

            code = self.advance_time(self.history, with_derivatives=False)
            if code != SuccessCode.Success:
                return code

    def initial_cauchy_loops(self) -> SuccessCode:
        """Loop around the newest sample's circle until the path closes up.

        The number of loops taken is the cycle number. Loops that do not
        close within ``fail_safe_maximum_cycle_number`` revolutions, or
        whose samples fail the ratio test, send the endgame one step closer
        to the origin to try again.
        """
        fail_safe = self.cauchy_settings.fail_safe_maximum_cycle_number
        while True:
            time, sample = self.history.latest()
            self.loop_history.clear()
            self.loop_history.append(time, sample, self.history.precisions[-1])
            tolerance = self.closed_loop_tolerance(time, sample)

            current = sample
            closed = False
            num_loops = 0
            while num_loops < fail_safe:
                code, current = self.circle_track(time, current)
                if code != SuccessCode.Success:
                    return code
                num_loops += 1
                ctx = self.context()
                if float(ctx.norm(ctx.vector(current) - ctx.vector(sample))) < tolerance:
                    closed = True
                    break

            if closed and self.ratio_test(time):
                self._cycle_number = num_loops
                logger.debug("loop closed after %d revolutions at t=%s", num_loops, time)
                return SuccessCode.Success

            if not closed:
                logger.debug("loop did not close within %d revolutions at t=%s", fail_safe, time)
                if abs(complex(time)) < self.cauchy_settings.cycle_cutoff_time:
                    return SuccessCode.CycleNumTooHigh
            else:
                logger.debug("loop samples failed the ratio test at t=%s", time)

            code = self.advance_time(self.history, with_derivatives=False)
            if code != SuccessCode.Success:
                return code

    def compute_cauchy_approximation(self) -> np.ndarray:
        """Mean of the loop samples, the trapezoid rule for the Cauchy integral.

        The loop's start sample is left out since it is repeated at the end.
        """
        if len(self.loop_history) < 2:
            raise InsufficientSamplesError("no closed loop to average")
        digits = self.precision_policy.ensure_at_uniform_precision(self.system, self.loop_history)
        self.precision = digits
        ctx = self.context(digits)

        samples = self.loop_history.samples[1:]
        total = ctx.zeros(len(samples[0]))
        for sample in samples:
            total = total + sample
        return total / len(samples)

    def run(self, start_time, start_point) -> SuccessCode:
        """Run the Cauchy endgame from ``start_point`` at ``start_time``.

        Returns:
            Success once consecutive loop predictions agree to
            ``final_tolerance``; otherwise the first failure encountered.
        """
        ctx = self._start_run(start_time, start_point)
        security = self.security_settings
        self.loop_history.clear()
        self.c_over_k = []
        self.history.append(ctx.scalar(start_time), ctx.vector(start_point), ctx.digits)

        code = self.pre_cauchy_loop_tracking()
        if code != SuccessCode.Success:
            logger.info("pre-loop tracking failed, code %s", code)
            return code

        code = self.initial_cauchy_loops()
        if code != SuccessCode.Success:
            logger.info("initial Cauchy loops failed, code %s", code)
            return code

        previous = self.compute_cauchy_approximation()
        self._final_approximation = previous
        previous_norm = self.dehomogenized_norm(previous) if security.enabled else None

        while True:
            code = self.advance_time(self.history, with_derivatives=False)
            if code != SuccessCode.Success:
                logger.info("Cauchy endgame stopped at t=%s, code %s", self.history.times[-1], code)
                return code

            code = self.initial_cauchy_loops()
            if code != SuccessCode.Success:
                return code

            latest = self.compute_cauchy_approximation()
            self._final_approximation = latest
            if not self.context().isfinite(latest):
                return SuccessCode.GoingToInfinity

            if security.enabled:
                latest_norm = self.dehomogenized_norm(latest)
                if self.exceeds_max_norm(previous_norm, latest_norm):
                    logger.info("approximations exceed max norm %g", security.max_norm)
                    return SuccessCode.SecurityMaxNormReached
                previous_norm = latest_norm

            approximation_error = float(self.context().norm(latest - previous))
            logger.debug("t=%s, cycle number %d, approximation error %.3e",
                         self.history.times[-1], self._cycle_number, approximation_error)
            if approximation_error <= self.tolerances.final_tolerance:
                return SuccessCode.Success
            previous = latest
