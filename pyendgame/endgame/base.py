"""
Shared machinery for the endgames.

An endgame finishes a path near t = 0, where the path may be singular and
ordinary step-by-step tracking becomes unreliable. EndgameBase holds the
per-run state (sample history, cycle number, final approximation) and the
steps both endgames share: collecting the initial samples, advancing time
geometrically, computing path derivatives, and the divergence check.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np

from pyendgame.codes import DimensionMismatchError, SuccessCode
from pyendgame.config import EndgameConfig
from pyendgame.history import SampleHistory
from pyendgame.numeric import NumericContext
from pyendgame.precision import PrecisionPolicy

logger = logging.getLogger(__name__)


class EndgameBase(ABC):
    """Base class for endgames.

    One instance serves one path at a time. Run several paths concurrently
    only with one instance per path.
    """

    def __init__(self,
                 tracker,
                 config: Optional[EndgameConfig] = None,
                 precision_policy: Optional[PrecisionPolicy] = None,
                 random_state: Union[None, int, np.random.Generator] = None):
        """Initialize an endgame.

        Args:
            tracker: Tracker used to move between sample times; its system
                is the homotopy being solved
            config: Endgame settings (default: EndgameConfig())
            precision_policy: Precision strategy (default: matched to the
                tracker's precision mode)
            random_state: Seed or Generator for the random projection vector
        """
        self.tracker = tracker
        self.system = tracker.system
        self.config = config if config is not None else EndgameConfig()
        self.precision_policy = (precision_policy if precision_policy is not None
                                 else PrecisionPolicy.for_tracker(tracker))
        self.rng = (random_state if isinstance(random_state, np.random.Generator)
                    else np.random.default_rng(random_state))

        # State
        self.history = SampleHistory()
        self.rand_vector = None
        self.precision = tracker.precision
        self._cycle_number = None
        self._final_approximation = None

    @property
    def endgame_settings(self):
        return self.config.endgame

    @property
    def tolerances(self):
        return self.config.tolerances

    @property
    def security_settings(self):
        return self.config.security

    @property
    def cycle_number(self) -> Optional[int]:
        """Cycle number from the latest approximation, or None before one."""
        return self._cycle_number

    @property
    def final_approximation(self) -> Optional[np.ndarray]:
        """Approximation of the path's limit from the latest run."""
        return self._final_approximation

    def context(self, digits: Optional[int] = None) -> NumericContext:
        return NumericContext(digits if digits is not None else self.precision)

    def projection_vector(self, ctx: NumericContext) -> np.ndarray:
        """The run's random projection vector, expressed at ``ctx``."""
        if self.rand_vector is None or len(self.rand_vector) != self.system.num_variables:
            self.rand_vector = ctx.random_vector(self.system.num_variables, self.rng)
        return ctx.vector(self.rand_vector)

    def _start_run(self, start_time, start_point, precision: Optional[int] = None) -> NumericContext:
        """Validate the start data and reset the per-run state."""
        if len(start_point) != self.system.num_variables:
            raise DimensionMismatchError(
                f"number of variables in start point, {len(start_point)}, must match "
                f"the number of variables in the system, {self.system.num_variables}"
            )
        self.precision = precision if precision is not None else self.tracker.precision
        ctx = self.context()
        self.history.clear()
        self._cycle_number = None
        self._final_approximation = None
        self.rand_vector = ctx.random_vector(self.system.num_variables, self.rng)
        logger.debug("%s starting at t=%s with %d digits", type(self).__name__, start_time, ctx.digits)
        return ctx

    def compute_derivative(self, sample, time, ctx: NumericContext) -> np.ndarray:
        """dx/dt = -J^-1 * dH/dt at (sample, time)."""
        return self.system.path_derivative(sample, time, ctx)

    def refine(self, sample, time, precision: int):
        return self.precision_policy.refine_sample(
            self.tracker, sample, time, precision,
            self.tolerances.final_tolerance / 100,
            self.endgame_settings.max_num_newton_iterations,
        )

    def compute_initial_samples(self, start_time, start_point) -> SuccessCode:
        """Fill the history with ``num_sample_points`` geometrically spaced samples.

        The first sample is the start pair; each further one is tracked from
        the previous at ``sample_factor`` times its time.
        """
        ctx = self.context()
        self.history.append(ctx.scalar(start_time), ctx.vector(start_point), ctx.digits)
        for _ in range(self.endgame_settings.num_sample_points - 1):
            time, sample = self.history.latest()
            next_time = time * self.endgame_settings.sample_factor
            result = self.tracker.track_path(time, next_time, sample,
                                             precision=self.history.precisions[-1])
            if result.code != SuccessCode.Success:
                logger.debug("initial sample gathering failed, code %s", result.code)
                return result.code
            refined = self.refine(result.sample, next_time, result.precision)
            if refined.code != SuccessCode.Success:
                return refined.code
            digits = refined.precision
            self.history.append(NumericContext(digits).scalar(next_time), refined.sample, digits)
        return SuccessCode.Success

    def advance_time(self, history: Optional[SampleHistory] = None,
                     with_derivatives: bool = True) -> SuccessCode:
        """Track one geometric step closer to the target and record the sample.

        The new time is the latest time scaled by ``sample_factor``. If its
        modulus is below ``min_track_time`` nothing is tracked and the history
        is left untouched. Tracker failures are returned unchanged.
        """
        history = history if history is not None else self.history
        time, sample = history.latest()
        next_time = time * self.endgame_settings.sample_factor

        if abs(complex(next_time)) < self.endgame_settings.min_track_time:
            logger.debug("current time norm is less than min track time")
            return SuccessCode.MinTrackTimeReached

        logger.debug("tracking to t=%s at %d digits", next_time, history.precisions[-1])
        result = self.tracker.track_path(time, next_time, sample, precision=history.precisions[-1])
        if result.code != SuccessCode.Success:
            return result.code

        refined = self.refine(result.sample, next_time, result.precision)
        if refined.code != SuccessCode.Success:
            logger.debug("refining failed, code %s", refined.code)
            return refined.code

        pending = SampleHistory()
        pending.append(next_time, refined.sample, refined.precision)
        digits = self.precision_policy.ensure_at_uniform_precision(self.system, history, pending)
        self.precision = digits
        ctx = self.context(digits)
        new_time, new_sample = self.precision_policy.ensure_at_precision(
            pending.times[0], pending.samples[0], digits)

        derivative = None
        if with_derivatives and history.has_derivatives:
            try:
                derivative = self.compute_derivative(new_sample, new_time, ctx)
            except np.linalg.LinAlgError:
                return SuccessCode.MatrixSolveFailure
        history.append(new_time, new_sample, digits, derivative=derivative)
        return SuccessCode.Success

    def dehomogenized_norm(self, point, ctx: Optional[NumericContext] = None):
        ctx = ctx if ctx is not None else self.context()
        return ctx.norm(self.system.dehomogenize_point(point, ctx))

    def exceeds_max_norm(self, previous_norm, latest_norm) -> bool:
        """True once two consecutive approximations are both too large."""
        max_norm = self.security_settings.max_norm
        return latest_norm > max_norm and previous_norm > max_norm

    @abstractmethod
    def run(self, start_time, start_point) -> SuccessCode:
        """Run the endgame from an approximate solution at ``start_time``.

        Raises:
            DimensionMismatchError: if ``start_point`` has the wrong length.
        """
