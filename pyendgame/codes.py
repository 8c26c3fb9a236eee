"""
Result codes and contract errors for PyEndgame.

Tracking and endgame outcomes are reported as a flat set of result codes.
Violations of structural preconditions (wrong dimensions, a zero cycle
number, too few samples) are programming errors and raise instead.
"""

from enum import Enum


class SuccessCode(Enum):
    """Outcome of a tracking step, a refinement, or an endgame run."""
    Success = 0
    HigherPrecisionNecessary = 1
    GoingToInfinity = 2
    MatrixSolveFailure = 3
    MaxNumStepsTaken = 4
    MaxPrecisionReached = 5
    MinStepSizeReached = 6
    SingularStartPoint = 7
    MinTrackTimeReached = 8
    SecurityMaxNormReached = 9
    DimensionMismatch = 10
    ZeroCycleNumber = 11
    CycleNumTooHigh = 12
    Failure = 13


class EndgameContractError(RuntimeError):
    """Raised when an endgame is called in violation of its contract."""
    code = SuccessCode.Failure


class DimensionMismatchError(EndgameContractError, ValueError):
    """The start point does not have one entry per system variable."""
    code = SuccessCode.DimensionMismatch


class CycleNumberError(EndgameContractError, ArithmeticError):
    """A cycle number of zero reached the s-plane transform."""
    code = SuccessCode.ZeroCycleNumber


class InsufficientSamplesError(EndgameContractError):
    """A computation needed more samples than the history holds."""
