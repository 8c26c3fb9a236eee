"""
Homotopy system module for PyEndgame.

A System exposes the numeric quantities the tracker and the endgames need
from a homotopy H(x, t): its value, its Jacobian with respect to x, its
derivative with respect to t, and the dehomogenization of a point.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import numpy as np

from pyendgame.numeric import DOUBLE_PRECISION, NumericContext

PointMap = Callable[[np.ndarray], Sequence]
HomotopyMap = Callable[[np.ndarray, object], Sequence]


class System(ABC):
    """Base class for numeric homotopies H(x, t).

    Every evaluation takes an explicit NumericContext. When none is given,
    the system's own ``precision`` is used.
    """

    def __init__(self,
                 num_variables: int,
                 precision: int = DOUBLE_PRECISION,
                 homogenizing_index: Optional[int] = None,
                 degree_bound: Optional[int] = None,
                 coefficient_bound: Optional[float] = None):
        """Initialize a system.

        Args:
            num_variables: Number of variables in a point
            precision: Default working precision in decimal digits
            homogenizing_index: Index of the homogenizing coordinate, if the
                points live in projective space
            degree_bound: Bound on the degrees of the equations
            coefficient_bound: Bound on the coefficients of the equations
        """
        if num_variables < 1:
            raise ValueError("a system needs at least one variable")
        if homogenizing_index is not None and not 0 <= homogenizing_index < num_variables:
            raise ValueError(f"homogenizing index {homogenizing_index} out of range")
        self._num_variables = int(num_variables)
        self._precision = DOUBLE_PRECISION
        self.precision = precision
        self.homogenizing_index = homogenizing_index
        self.degree_bound = degree_bound
        self.coefficient_bound = coefficient_bound

    @property
    def num_variables(self) -> int:
        return self._num_variables

    @property
    def precision(self) -> int:
        return self._precision

    @precision.setter
    def precision(self, digits: int):
        if int(digits) < DOUBLE_PRECISION:
            raise ValueError(f"precision must be at least {DOUBLE_PRECISION} digits")
        self._precision = int(digits)

    def context(self, ctx: Optional[NumericContext] = None) -> NumericContext:
        return ctx if ctx is not None else NumericContext(self._precision)

    @abstractmethod
    def _evaluate(self, x: np.ndarray, t) -> Sequence:
        """Raw values of H at (x, t)."""

    @abstractmethod
    def _jacobian(self, x: np.ndarray, t) -> Sequence[Sequence]:
        """Raw rows of dH/dx at (x, t)."""

    @abstractmethod
    def _time_derivative(self, x: np.ndarray, t) -> Sequence:
        """Raw values of dH/dt at (x, t)."""

    def evaluate(self, x, t, ctx: Optional[NumericContext] = None) -> np.ndarray:
        ctx = self.context(ctx)
        return ctx.vector(self._evaluate(ctx.vector(x), ctx.scalar(t)))

    def jacobian(self, x, t, ctx: Optional[NumericContext] = None) -> np.ndarray:
        ctx = self.context(ctx)
        return ctx.matrix(self._jacobian(ctx.vector(x), ctx.scalar(t)))

    def time_derivative(self, x, t, ctx: Optional[NumericContext] = None) -> np.ndarray:
        ctx = self.context(ctx)
        return ctx.vector(self._time_derivative(ctx.vector(x), ctx.scalar(t)))

    def path_derivative(self, x, t, ctx: Optional[NumericContext] = None) -> np.ndarray:
        """Tangent dx/dt = -J^-1 * dH/dt along the solution path.

        Raises:
            numpy.linalg.LinAlgError: if the Jacobian is singular.
        """
        ctx = self.context(ctx)
        return -ctx.solve(self.jacobian(x, t, ctx), self.time_derivative(x, t, ctx))

    def dehomogenize_point(self, x, ctx: Optional[NumericContext] = None) -> np.ndarray:
        """Map a point to affine coordinates.

        Points of systems without a homogenizing coordinate are returned
        unchanged. Otherwise the homogenizing coordinate is divided out and
        dropped.
        """
        ctx = self.context(ctx)
        x = ctx.vector(x)
        if self.homogenizing_index is None:
            return x
        h = x[self.homogenizing_index]
        rest = [x[i] for i in range(len(x)) if i != self.homogenizing_index]
        if h == 0:
            return ctx.vector([float("inf")] * len(rest))
        return ctx.vector([z / h for z in rest])


class FunctionSystem(System):
    """A system given by callables for H, dH/dx and dH/dt.

    The callables receive the point as a numpy array and the time as a
    scalar of the active precision, and must use only arithmetic that works
    for both ``complex`` and mpmath values.
    """

    def __init__(self,
                 function: HomotopyMap,
                 jacobian: Callable[[np.ndarray, object], Sequence[Sequence]],
                 time_derivative: HomotopyMap,
                 num_variables: int,
                 **kwargs):
        super().__init__(num_variables, **kwargs)
        self._function = function
        self._jacobian_function = jacobian
        self._time_derivative_function = time_derivative

    def _evaluate(self, x, t):
        return self._function(x, t)

    def _jacobian(self, x, t):
        return self._jacobian_function(x, t)

    def _time_derivative(self, x, t):
        return self._time_derivative_function(x, t)


class StraightLineHomotopy(System):
    """The homotopy H(x, t) = (1 - t) f(x) + t * gamma * g(x).

    At t = 1 this is the start system g (scaled by gamma); at t = 0 it is the
    target system f.
    """

    def __init__(self,
                 target: PointMap,
                 target_jacobian: Callable[[np.ndarray], Sequence[Sequence]],
                 start: PointMap,
                 start_jacobian: Callable[[np.ndarray], Sequence[Sequence]],
                 num_variables: int,
                 gamma: complex = 0.6+0.8j,
                 **kwargs):
        super().__init__(num_variables, **kwargs)
        self.target = target
        self.target_jacobian = target_jacobian
        self.start = start
        self.start_jacobian = start_jacobian
        self.gamma = gamma

    def _evaluate(self, x, t):
        f_val = self.target(x)
        g_val = self.start(x)
        return [(1 - t) * f + t * self.gamma * g for f, g in zip(f_val, g_val)]

    def _jacobian(self, x, t):
        jac_f = self.target_jacobian(x)
        jac_g = self.start_jacobian(x)
        return [[(1 - t) * a + t * self.gamma * b for a, b in zip(row_f, row_g)]
                for row_f, row_g in zip(jac_f, jac_g)]

    def _time_derivative(self, x, t):
        # dH/dt = -f(x) + gamma*g(x)
        return [-f + self.gamma * g for f, g in zip(self.target(x), self.start(x))]
