"""
Hermite extrapolation for PyEndgame.

Near a branch point of cycle number c, a solution path x(t) is analytic in
s = t^(1/c). The power-series endgame maps its samples into this s-plane
and extrapolates them to the target time with Hermite interpolation, which
matches both the sample values and their derivatives.
"""

from fractions import Fraction
from typing import List, Sequence, Tuple

import numpy as np

from pyendgame.codes import CycleNumberError
from pyendgame.numeric import NumericContext


def hermite_interpolate_and_solve(target_time,
                                  times: Sequence,
                                  samples: Sequence[np.ndarray],
                                  derivatives: Sequence[np.ndarray]) -> np.ndarray:
    """Evaluate the Hermite interpolant of the data at ``target_time``.

    Builds the divided-difference table on the doubled nodes
    ``t0, t0, t1, t1, ...`` and evaluates the Newton form by Horner's rule.

    Args:
        target_time: Time at which to evaluate the interpolant
        times: Interpolation nodes, pairwise distinct
        samples: Vector values at the nodes
        derivatives: Vector derivatives at the nodes

    Returns:
        The interpolated vector at ``target_time``

    Raises:
        ValueError: if the data are inconsistent or two nodes coincide.
    """
    num_points = len(times)
    if num_points == 0:
        raise ValueError("need at least one interpolation node")
    if len(samples) != num_points or len(derivatives) != num_points:
        raise ValueError("times, samples and derivatives must have the same length")

    size = 2 * num_points
    nodes = [times[i // 2] for i in range(size)]
    table: List[List[np.ndarray]] = [[None] * size for _ in range(size)]

    for i in range(num_points):
        table[2 * i][0] = samples[i]
        table[2 * i + 1][0] = samples[i]
        table[2 * i + 1][1] = derivatives[i]
        if i > 0:
            gap = times[i] - times[i - 1]
            if gap == 0:
                raise ValueError("interpolation nodes must be distinct")
            table[2 * i][1] = (samples[i] - samples[i - 1]) / gap

    for i in range(2, size):
        for j in range(2, i + 1):
            table[i][j] = (table[i][j - 1] - table[i - 1][j - 1]) / (nodes[i] - nodes[i - j])

    result = table[size - 1][size - 1]
    for k in range(size - 2, -1, -1):
        result = table[k][k] + (target_time - nodes[k]) * result
    return result


def to_s_plane(times: Sequence,
               derivatives: Sequence[np.ndarray],
               cycle_number: int,
               ctx: NumericContext) -> Tuple[List, List[np.ndarray]]:
    """Map times and derivatives to the s-plane, s = t^(1/c).

    Derivatives become dx/ds = dx/dt * c * t^((c-1)/c).

    Raises:
        CycleNumberError: if ``cycle_number`` is zero.
    """
    if cycle_number == 0:
        raise CycleNumberError("cycle number is 0 while converting to the s-plane")
    c = int(cycle_number)
    s_times = [ctx.power(t, Fraction(1, c)) for t in times]
    s_derivatives = [d * (c * ctx.power(t, Fraction(c - 1, c)))
                     for t, d in zip(times, derivatives)]
    return s_times, s_derivatives


def s_to_time(s, cycle_number: int, ctx: NumericContext):
    """Inverse of the s-plane map for times, t = s^c."""
    if cycle_number == 0:
        raise CycleNumberError("cycle number is 0 while converting from the s-plane")
    return ctx.power(s, int(cycle_number))
