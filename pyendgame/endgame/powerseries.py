"""
Power-series endgame for PyEndgame.

Near a branch point of cycle number c the path is analytic in s = t^(1/c).
The endgame collects geometrically spaced samples with their derivatives,
estimates c by testing which candidate best predicts the newest sample from
the older ones, and extrapolates to t = 0 by Hermite interpolation in the
s-plane. It stops once two consecutive extrapolations agree.
"""

import logging
import math
from fractions import Fraction
from typing import Optional, Tuple

import numpy as np

from pyendgame.codes import InsufficientSamplesError, SuccessCode
from pyendgame.endgame.base import EndgameBase
from pyendgame.interpolation import hermite_interpolate_and_solve, to_s_plane

logger = logging.getLogger(__name__)


class PowerSeriesEndgame(EndgameBase):
    """Endgame extrapolating samples with a Hermite power series."""

    def __init__(self, tracker, config=None, precision_policy=None, random_state=None):
        super().__init__(tracker, config, precision_policy, random_state)
        self.upper_bound_on_cycle_number = None

    @property
    def power_series_settings(self):
        return self.config.power_series

    def compute_bound_on_cycle_number(self) -> int:
        """Upper bound on the cycle number from the three newest samples.

        The samples are projected onto the run's random vector; the decay of
        consecutive differences gives an estimate of c, which is rounded,
        amplified, and never allowed below ``max_cycle_number``.

        Raises:
            InsufficientSamplesError: with fewer than three samples.
        """
        if len(self.history) < 3:
            raise InsufficientSamplesError("need at least three samples to bound the cycle number")

        ctx = self.context()
        sample0, sample1, sample2 = (ctx.vector(s) for s in self.history.samples[-3:])
        settings = self.power_series_settings

        if np.array_equal(sample2, sample1) or np.array_equal(sample1, sample0):
            self.upper_bound_on_cycle_number = 1
            return 1

        rand_vector = self.projection_vector(ctx)
        numerator = ctx.abs(ctx.dot(sample2 - sample1, rand_vector))
        denominator = ctx.abs(ctx.dot(sample1 - sample0, rand_vector))
        if numerator == 0 or denominator == 0 or numerator == denominator:
            self.upper_bound_on_cycle_number = 1
            return 1

        estimate = abs(ctx.log(ctx.real(self.endgame_settings.sample_factor))) / abs(ctx.log(numerator / denominator))
        if estimate < 1:
            bound = 1
        else:
            bound = max(int(round(math.floor(float(estimate) + 0.5) * settings.cycle_number_amplification)),
                        settings.max_cycle_number)
        self.upper_bound_on_cycle_number = bound
        logger.debug("cycle number estimate %s, upper bound %d", estimate, bound)
        return bound

    def compute_cycle_number(self) -> int:
        """Choose the cycle number that best predicts the newest sample.

        The newest sample is held out. For each candidate c up to the upper
        bound, the preceding samples are mapped to the s-plane and Hermite
        extrapolated to the newest time. The candidate with the smallest
        residual wins; a later candidate has to beat the best by more than
        the tie tolerance, so ties go to the smallest c. The tolerance is
        the larger of the rounding level and the endgame tracking
        tolerance, the latter capped at ``cycle_number_tie_step_fraction``
        of the distance between the two newest samples.
        """
        upper_bound = self.compute_bound_on_cycle_number()
        if not self.history.has_derivatives:
            code = self.compute_derivatives()
            if code != SuccessCode.Success:
                raise np.linalg.LinAlgError(f"derivative computation failed with {code}")

        ctx = self.context()
        times = self.history.times
        samples = self.history.samples
        derivatives = self.history.derivatives
        most_recent_time, most_recent_sample = times[-1], samples[-1]

        num_used = min(len(self.history) - 1, self.endgame_settings.num_sample_points)
        offset = len(self.history) - 1 - num_used
        used = slice(offset, offset + num_used)

        # residual differences below the sample accuracy are ties, but the
        # tracking floor never exceeds a small fraction of the newest step
        settings = self.power_series_settings
        rounding = (settings.cycle_number_tie_tolerance * float(ctx.epsilon)
                    * (1 + float(ctx.norm(most_recent_sample))))
        step = float(ctx.norm(ctx.vector(most_recent_sample) - ctx.vector(samples[-2])))
        tie_tolerance = max(rounding, min(self.tolerances.track_tolerance_during_endgame,
                                          settings.cycle_number_tie_step_fraction * step))

        best_residual = None
        for candidate in range(1, upper_bound + 1):
            s_times, s_derivatives = to_s_plane(times[used], derivatives[used], candidate, ctx)
            prediction = hermite_interpolate_and_solve(
                ctx.power(most_recent_time, Fraction(1, candidate)),
                s_times, samples[used], s_derivatives,
            )
            residual = float(ctx.norm(prediction - most_recent_sample))
            if best_residual is None or residual < best_residual - tie_tolerance:
                best_residual = residual
                self._cycle_number = candidate

        logger.debug("cycle number %d (residual %.3e, bound %d)",
                     self._cycle_number, best_residual, upper_bound)
        return self._cycle_number

    def compute_derivatives(self) -> SuccessCode:
        """Bring the history to one precision and compute dx/dt at every sample."""
        digits = self.precision_policy.ensure_at_uniform_precision(self.system, self.history)
        self.precision = digits
        ctx = self.context(digits)
        try:
            derivatives = [self.compute_derivative(sample, time, ctx)
                           for time, sample in zip(self.history.times, self.history.samples)]
        except np.linalg.LinAlgError:
            logger.debug("singular Jacobian while computing sample derivatives")
            return SuccessCode.MatrixSolveFailure
        self.history.set_derivatives(derivatives)
        return SuccessCode.Success

    def compute_approximation_at(self, target_time) -> Tuple[SuccessCode, Optional[np.ndarray]]:
        """Extrapolate the newest samples to ``target_time``.

        Uses the newest ``num_sample_points`` samples after re-estimating the
        cycle number.

        Returns:
            (code, approximation); the approximation is None on failure.

        Raises:
            InsufficientSamplesError: with fewer than ``num_sample_points`` samples.
            CycleNumberError: if the cycle number is zero.
        """
        num_points = self.endgame_settings.num_sample_points
        if len(self.history) < num_points:
            raise InsufficientSamplesError(
                f"need {num_points} samples to extrapolate, have {len(self.history)}")
        if not self.history.has_derivatives:
            code = self.compute_derivatives()
            if code != SuccessCode.Success:
                return code, None

        self.compute_cycle_number()
        ctx = self.context()
        window = slice(len(self.history) - num_points, len(self.history))
        s_times, s_derivatives = to_s_plane(self.history.times[window], self.history.derivatives[window],
                                            self._cycle_number, ctx)
        approximation = hermite_interpolate_and_solve(
            ctx.power(ctx.scalar(target_time), Fraction(1, self._cycle_number)),
            s_times, self.history.samples[window], s_derivatives,
        )
        return SuccessCode.Success, approximation

    def run(self, start_time, start_point) -> SuccessCode:
        """Run the power-series endgame from ``start_point`` at ``start_time``.

        Returns:
            Success once consecutive approximations of the limit agree to
            ``final_tolerance``; otherwise the first failure encountered.
        """
        ctx = self._start_run(start_time, start_point)
        origin = ctx.scalar(0)
        security = self.security_settings

        code = self.compute_initial_samples(start_time, start_point)
        if code != SuccessCode.Success:
            logger.info("unable to obtain initial samples, code %s", code)
            return code

        code = self.compute_derivatives()
        if code != SuccessCode.Success:
            return code

        code, previous = self.compute_approximation_at(origin)
        if code != SuccessCode.Success:
            return code
        self._final_approximation = previous
        previous_norm = self.dehomogenized_norm(previous) if security.enabled else None

        approximation_error = 1.0
        while approximation_error > self.tolerances.final_tolerance:
            code = self.advance_time()
            if code != SuccessCode.Success:
                logger.info("power series endgame stopped at t=%s, code %s", self.history.times[-1], code)
                return code

            code, latest = self.compute_approximation_at(origin)
            if code != SuccessCode.Success:
                return code
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
            previous = latest

        return SuccessCode.Success
