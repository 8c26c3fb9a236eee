"""
Numeric context module for PyEndgame.

A NumericContext performs scalar, vector and matrix arithmetic at one
explicit precision. Double precision uses numpy/scipy on complex128 arrays;
anything above double precision uses a private mpmath context, so no
arithmetic in the package depends on a process-wide precision setting.
"""

from fractions import Fraction
from typing import Any, Iterable, List, Optional, Sequence, Union

import mpmath
import numpy as np
from scipy import linalg as sla

# Number of significant decimal digits treated as hardware double precision.
DOUBLE_PRECISION = 16

Scalar = Any
Vector = np.ndarray
Matrix = np.ndarray


class NumericContext:
    """Arithmetic at a fixed number of significant decimal digits.

    Samples are 1-D numpy arrays: ``complex128`` in double precision and
    ``dtype=object`` arrays of ``mpc`` values otherwise. Times are Python
    ``complex`` values or ``mpc`` values of this context.
    """

    def __init__(self, digits: int = DOUBLE_PRECISION):
        digits = int(digits)
        if digits < DOUBLE_PRECISION:
            raise ValueError(f"precision must be at least {DOUBLE_PRECISION} digits, got {digits}")
        self.digits = digits
        self._mp = None
        if digits > DOUBLE_PRECISION:
            self._mp = mpmath.MPContext()
            self._mp.dps = digits

    def __repr__(self) -> str:
        kind = "double" if self.is_double else "multiple"
        return f"NumericContext({kind}, digits={self.digits})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, NumericContext):
            return NotImplemented
        return self.digits == other.digits

    def __hash__(self):
        return hash(self.digits)

    @property
    def is_double(self) -> bool:
        return self._mp is None

    @property
    def epsilon(self):
        """Unit roundoff of this precision."""
        if self.is_double:
            return float(np.finfo(float).eps)
        return self._mp.eps

    def at(self, digits: int) -> "NumericContext":
        """Return a context at ``digits``, reusing this one if unchanged."""
        if int(digits) == self.digits:
            return self
        return NumericContext(digits)

    # -- conversion -------------------------------------------------------

    def scalar(self, value) -> Scalar:
        if self.is_double:
            return complex(value)
        return self._mp.mpc(value)

    def real(self, value):
        if self.is_double:
            return float(value)
        return self._mp.mpf(value)

    def vector(self, values: Iterable) -> Vector:
        if self.is_double:
            return np.array([complex(z) for z in values], dtype=complex)
        return np.array([self._mp.mpc(z) for z in values], dtype=object)

    def matrix(self, rows: Iterable[Iterable]) -> Matrix:
        rows = [list(row) for row in rows]
        if self.is_double:
            return np.array([[complex(z) for z in row] for row in rows], dtype=complex)
        out = np.empty((len(rows), len(rows[0]) if rows else 0), dtype=object)
        for i, row in enumerate(rows):
            for j, z in enumerate(row):
                out[i, j] = self._mp.mpc(z)
        return out

    def zeros(self, n: int) -> Vector:
        return self.vector([0] * n)

    def random_vector(self, n: int, rng: Optional[np.random.Generator] = None) -> Vector:
        """Random complex unit vector of length ``n``."""
        if rng is None:
            rng = np.random.default_rng()
        v = rng.standard_normal(n) + 1j * rng.standard_normal(n)
        v = v / np.linalg.norm(v)
        return self.vector(v)

    # -- elementary functions ---------------------------------------------

    @property
    def pi(self):
        if self.is_double:
            return float(np.pi)
        return +self._mp.pi

    def abs(self, z):
        if self.is_double:
            return abs(complex(z))
        return abs(self._mp.mpc(z))

    def log(self, x):
        if self.is_double:
            return float(np.log(x))
        return self._mp.log(x)

    def exp(self, z):
        if self.is_double:
            return complex(np.exp(complex(z)))
        return self._mp.exp(z)

    def power(self, z, exponent: Union[int, float, Fraction]):
        """Principal branch of ``z ** exponent``."""
        if self.is_double:
            return complex(z) ** float(exponent)
        if isinstance(exponent, Fraction):
            exponent = self._mp.mpf(exponent.numerator) / exponent.denominator
        return self._mp.power(self._mp.mpc(z), exponent)

    # -- linear algebra ---------------------------------------------------

    def norm(self, v: Sequence):
        """Euclidean norm of a vector."""
        if self.is_double:
            return float(np.linalg.norm(np.asarray(v, dtype=complex)))
        return self._mp.norm([self._mp.mpc(z) for z in v], 2)

    def dot(self, u: Sequence, v: Sequence):
        """Plain bilinear pairing ``sum(u_i * v_i)``, no conjugation."""
        if self.is_double:
            return complex(np.dot(np.asarray(u, dtype=complex), np.asarray(v, dtype=complex)))
        return self._mp.fsum(self._mp.mpc(a) * self._mp.mpc(b) for a, b in zip(u, v))

    def isfinite(self, v: Sequence) -> bool:
        if self.is_double:
            return bool(np.all(np.isfinite(np.asarray(v, dtype=complex))))
        return all(self._mp.isfinite(self._mp.mpc(z)) for z in v)

    def solve(self, A: Matrix, b: Vector) -> Vector:
        """Solve ``A x = b``.

        Raises:
            numpy.linalg.LinAlgError: if the matrix is numerically singular.
        """
        if self.is_double:
            A = np.asarray(A, dtype=complex)
            b = np.asarray(b, dtype=complex)
            try:
                x = sla.solve(A, b)
            except ValueError as exc:
                raise np.linalg.LinAlgError(str(exc)) from exc
            if not np.all(np.isfinite(x)):
                raise np.linalg.LinAlgError("non-finite solution of linear system")
            return x
        M = self._mp.matrix(self.matrix(A).tolist())
        rhs = self._mp.matrix([self._mp.mpc(z) for z in b])
        try:
            x = self._mp.lu_solve(M, rhs)
        except ZeroDivisionError as exc:
            raise np.linalg.LinAlgError(str(exc)) from exc
        return np.array([x[i] for i in range(x.rows)], dtype=object)

    def singular_values(self, A: Matrix) -> List:
        if self.is_double:
            return [float(s) for s in sla.svdvals(np.asarray(A, dtype=complex))]
        M = self._mp.matrix(self.matrix(A).tolist())
        S = self._mp.svd_c(M, compute_uv=False)
        return [S[i] for i in range(S.rows)]

    def smallest_singular_value(self, A: Matrix):
        return min(self.singular_values(A))

    def condition_number(self, A: Matrix):
        """2-norm condition number; infinite for a singular matrix."""
        values = self.singular_values(A)
        smallest = min(values)
        if smallest == 0:
            return float("inf")
        return max(values) / smallest


def double_context() -> NumericContext:
    return NumericContext(DOUBLE_PRECISION)
