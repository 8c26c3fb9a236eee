"""
Sample history for PyEndgame.

A SampleHistory holds the (time, sample, derivative) triples collected
along one path during one endgame run, oldest first, together with the
precision (in decimal digits) each entry was computed at.
"""

from typing import Any, List, Optional, Tuple

import numpy as np

from pyendgame.numeric import NumericContext


class SampleHistory:
    """Ordered history of times, samples and derivatives for one path.

    Times and samples always have equal length. Derivatives are either absent
    or have the same length as the samples. Entries are only ever appended;
    when ``max_length`` is set the oldest entries are evicted.
    """

    def __init__(self, max_length: Optional[int] = None):
        if max_length is not None and max_length < 1:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self.times: List[Any] = []
        self.samples: List[np.ndarray] = []
        self.derivatives: List[np.ndarray] = []
        self.precisions: List[int] = []

    def __len__(self) -> int:
        return len(self.samples)

    def __repr__(self) -> str:
        return f"SampleHistory({len(self)} entries, derivatives={self.has_derivatives})"

    @property
    def has_derivatives(self) -> bool:
        return len(self.derivatives) > 0

    def clear(self):
        """Remove every entry."""
        self.times.clear()
        self.samples.clear()
        self.derivatives.clear()
        self.precisions.clear()

    def append(self, time, sample: np.ndarray, precision: int,
               derivative: Optional[np.ndarray] = None):
        """Append one entry, keeping the derivative sequence aligned.

        Raises:
            ValueError: if the derivative would break the length invariant.
        """
        if self.has_derivatives and derivative is None:
            raise ValueError("history has derivatives; a derivative is required")
        if derivative is not None and len(self) > 0 and not self.has_derivatives:
            raise ValueError("history has no derivatives; compute them for all entries first")
        self.times.append(time)
        self.samples.append(sample)
        self.precisions.append(int(precision))
        if derivative is not None:
            self.derivatives.append(derivative)
        self._evict()

    def set_derivatives(self, derivatives: List[np.ndarray]):
        if len(derivatives) != len(self):
            raise ValueError(f"expected {len(self)} derivatives, got {len(derivatives)}")
        self.derivatives = list(derivatives)

    def _evict(self):
        if self.max_length is None:
            return
        excess = len(self) - self.max_length
        if excess > 0:
            del self.times[:excess]
            del self.samples[:excess]
            del self.precisions[:excess]
            if self.derivatives:
                del self.derivatives[:excess]

    def latest(self) -> Tuple[Any, np.ndarray]:
        """Most recent (time, sample) pair."""
        if not self.samples:
            raise IndexError("history is empty")
        return self.times[-1], self.samples[-1]

    @property
    def max_precision(self) -> int:
        return max(self.precisions) if self.precisions else 0

    def is_uniform(self) -> bool:
        return len(set(self.precisions)) <= 1

    def convert_to(self, ctx: NumericContext):
        """Re-express every entry at the precision of ``ctx``.

        Entries already at that precision are left untouched.
        """
        for i, digits in enumerate(self.precisions):
            if digits == ctx.digits:
                continue
            self.times[i] = ctx.scalar(self.times[i])
            self.samples[i] = ctx.vector(self.samples[i])
            if self.derivatives:
                self.derivatives[i] = ctx.vector(self.derivatives[i])
            self.precisions[i] = ctx.digits
