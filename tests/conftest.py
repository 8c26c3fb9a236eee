"""
Shared fixtures for the PyEndgame tests.

The fakes here describe solution paths in closed form, so endgame behavior
can be checked against exact limits and cycle numbers without a real
predictor-corrector tracker in the loop.
"""

import cmath

import numpy as np
import pytest

from pyendgame import FunctionSystem, SuccessCode, System, TrackResult


class BranchPath:
    """The c branches x(t) = x0 + v * w^k * t^(1/c), w = exp(2*pi*i/c)."""

    def __init__(self, x0, direction, cycle_number):
        self.x0 = np.asarray(x0, dtype=complex)
        self.direction = np.asarray(direction, dtype=complex)
        self.cycle_number = cycle_number

    def branches(self, t):
        root = complex(t) ** (1.0 / self.cycle_number)
        return [self.x0 + self.direction * root * cmath.exp(2j * cmath.pi * k / self.cycle_number)
                for k in range(self.cycle_number)]

    def derivative(self, x, t):
        return (np.asarray(x, dtype=complex) - self.x0) / (self.cycle_number * complex(t))


class PolePath:
    """The single path x(t) = v / t, which diverges as t -> 0."""

    def __init__(self, direction):
        self.direction = np.asarray(direction, dtype=complex)

    def branches(self, t):
        return [self.direction / complex(t)]

    def derivative(self, x, t):
        return -np.asarray(x, dtype=complex) / complex(t)


def nearest_branch(path, t, sample):
    sample = np.asarray([complex(z) for z in sample])
    return min(path.branches(t), key=lambda b: np.linalg.norm(b - sample))


class PathSystem(System):
    """H(x, t) = x - x(t) on the branch nearest x, with identity Jacobian."""

    def __init__(self, path, **kwargs):
        super().__init__(len(path.branches(0.5)[0]), **kwargs)
        self.path = path

    def _evaluate(self, x, t):
        return x - nearest_branch(self.path, t, x)

    def _jacobian(self, x, t):
        return np.eye(self.num_variables)

    def _time_derivative(self, x, t):
        return -self.path.derivative(x, t)


class BranchTracker:
    """Tracker that follows a closed-form path by continuity.

    Each call lands on the branch nearest the starting sample. Tracking to a
    time of modulus below ``fail_below`` returns ``fail_code`` instead.
    """

    is_adaptive = False

    def __init__(self, system, fail_below=None, fail_code=SuccessCode.MinStepSizeReached):
        self.system = system
        self.precision = 16
        self.fail_below = fail_below
        self.fail_code = fail_code
        self.calls = []

    def track_path(self, from_time, to_time, from_sample, precision=None):
        self.calls.append((complex(from_time), complex(to_time)))
        if self.fail_below is not None and abs(complex(to_time)) < self.fail_below:
            return TrackResult(self.fail_code, np.asarray(from_sample, dtype=complex), 16)
        return TrackResult(SuccessCode.Success, nearest_branch(self.system.path, to_time, from_sample), 16)

    def refine(self, sample, time, tolerance, max_iterations, precision=None):
        return TrackResult(SuccessCode.Success, nearest_branch(self.system.path, time, sample), 16)


def make_branch_setup(x0, direction, cycle_number, **tracker_kwargs):
    path = BranchPath(x0, direction, cycle_number)
    system = PathSystem(path)
    return path, system, BranchTracker(system, **tracker_kwargs)


def make_pole_setup(direction):
    path = PolePath(direction)
    system = PathSystem(path)
    return path, system, BranchTracker(system)


def double_root_system(**kwargs):
    """H(x, t) = (x - 1)^2 - t, whose two paths 1 +- sqrt(t) meet at t = 0."""
    return FunctionSystem(
        function=lambda x, t: [(x[0] - 1) ** 2 - t],
        jacobian=lambda x, t: [[2 * (x[0] - 1)]],
        time_derivative=lambda x, t: [-1],
        num_variables=1,
        **kwargs
    )


def smooth_system(**kwargs):
    """H(x, t) = x^2 - 4 - t, with the nonsingular paths +-sqrt(4 + t)."""
    return FunctionSystem(
        function=lambda x, t: [x[0] ** 2 - 4 - t],
        jacobian=lambda x, t: [[2 * x[0]]],
        time_derivative=lambda x, t: [-1],
        num_variables=1,
        **kwargs
    )


@pytest.fixture
def branch_setup():
    return make_branch_setup


@pytest.fixture
def pole_setup():
    return make_pole_setup


@pytest.fixture
def double_root():
    return double_root_system


@pytest.fixture
def smooth():
    return smooth_system
