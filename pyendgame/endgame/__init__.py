"""
Endgames for PyEndgame.

Two endgames share one base class: the power-series endgame extrapolates
samples in the s-plane, and the Cauchy endgame averages closed loops.
"""

from pyendgame.endgame.base import EndgameBase
from pyendgame.endgame.cauchy import CauchyEndgame
from pyendgame.endgame.powerseries import PowerSeriesEndgame

__all__ = ["EndgameBase", "PowerSeriesEndgame", "CauchyEndgame"]
