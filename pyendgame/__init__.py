"""
PyEndgame: endgames for numerical homotopy continuation.

This library finishes solution paths of a homotopy H(x, t) = 0 near
t = 0, where the endpoint may be singular. It provides the power-series
and Cauchy endgames, a predictor-corrector tracker in fixed or adaptive
precision, and a batch driver for running many paths.
"""

__version__ = "0.1.0"

from pyendgame.codes import (
    SuccessCode,
    EndgameContractError,
    DimensionMismatchError,
    CycleNumberError,
    InsufficientSamplesError
)

from pyendgame.config import (
    EndgameConfig,
    EndgameSettings,
    PowerSeriesSettings,
    CauchySettings,
    SecuritySettings,
    Tolerances
)

from pyendgame.numeric import NumericContext, DOUBLE_PRECISION
from pyendgame.history import SampleHistory
from pyendgame.interpolation import hermite_interpolate_and_solve
from pyendgame.system import System, FunctionSystem, StraightLineHomotopy
from pyendgame.tracking import Tracker, AMPTracker, TrackResult
from pyendgame.precision import PrecisionPolicy, FixedPrecision, AdaptivePrecision
from pyendgame.endgame import EndgameBase, PowerSeriesEndgame, CauchyEndgame
from pyendgame.batch import EndgameOutcome, run_endgames, solve_endgames, track_to_boundary

# Plotting needs matplotlib; import pyendgame.visualization directly.

__all__ = [
    "SuccessCode",
    "EndgameContractError",
    "DimensionMismatchError",
    "CycleNumberError",
    "InsufficientSamplesError",
    "EndgameConfig",
    "EndgameSettings",
    "PowerSeriesSettings",
    "CauchySettings",
    "SecuritySettings",
    "Tolerances",
    "NumericContext",
    "DOUBLE_PRECISION",
    "SampleHistory",
    "hermite_interpolate_and_solve",
    "System",
    "FunctionSystem",
    "StraightLineHomotopy",
    "Tracker",
    "AMPTracker",
    "TrackResult",
    "PrecisionPolicy",
    "FixedPrecision",
    "AdaptivePrecision",
    "EndgameBase",
    "PowerSeriesEndgame",
    "CauchyEndgame",
    "EndgameOutcome",
    "run_endgames",
    "solve_endgames",
    "track_to_boundary",
]
