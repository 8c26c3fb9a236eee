"""
Configuration for PyEndgame.

Settings are grouped into small frozen dataclasses and collected in a
single EndgameConfig value object, shared read-only across paths.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class EndgameSettings:
    """Settings common to every endgame.

    Attributes:
        num_sample_points: Samples per extrapolation window, or stop points
            per loop for the Cauchy endgame.
        sample_factor: Ratio applied to the time at each advance.
        min_track_time: Smallest time modulus the endgame will track to.
        max_num_newton_iterations: Iteration cap when refining a sample.
    """
    num_sample_points: int = 4
    sample_factor: float = 0.5
    min_track_time: float = 1e-100
    max_num_newton_iterations: int = 15

    def __post_init__(self):
        if self.num_sample_points < 2:
            raise ValueError("num_sample_points must be at least 2")
        if not 0 < self.sample_factor < 1:
            raise ValueError("sample_factor must lie strictly between 0 and 1")
        if self.min_track_time < 0:
            raise ValueError("min_track_time must be non-negative")
        if self.max_num_newton_iterations < 1:
            raise ValueError("max_num_newton_iterations must be positive")


@dataclass(frozen=True)
class PowerSeriesSettings:
    """Settings for the power-series endgame.

    ``cycle_number_tie_tolerance`` is measured in units of the working
    precision's epsilon, scaled by the sample norm.
    ``cycle_number_tie_step_fraction`` caps the tracking-tolerance part of
    the tie margin relative to the newest step between samples.
    """
    max_cycle_number: int = 4
    cycle_number_amplification: int = 5
    cycle_number_tie_tolerance: float = 10.0
    cycle_number_tie_step_fraction: float = 1e-3

    def __post_init__(self):
        if self.max_cycle_number < 1:
            raise ValueError("max_cycle_number must be at least 1")
        if self.cycle_number_amplification < 1:
            raise ValueError("cycle_number_amplification must be at least 1")
        if self.cycle_number_tie_tolerance < 0:
            raise ValueError("cycle_number_tie_tolerance must be non-negative")
        if not 0 <= self.cycle_number_tie_step_fraction < 1:
            raise ValueError("cycle_number_tie_step_fraction must lie in [0, 1)")


@dataclass(frozen=True)
class CauchySettings:
    """Settings for the Cauchy endgame."""
    cycle_cutoff_time: float = 1e-8
    maximum_cauchy_ratio: float = 0.5
    minimum_for_c_over_k_stabilization: float = 0.75
    num_needed_for_stabilization: int = 3
    fail_safe_maximum_cycle_number: int = 250
    minimum_closed_loop_tolerance: float = 1e-12
    maximum_closed_loop_tolerance: float = 1e-6

    def __post_init__(self):
        if self.num_needed_for_stabilization < 2:
            raise ValueError("num_needed_for_stabilization must be at least 2")
        if self.fail_safe_maximum_cycle_number < 1:
            raise ValueError("fail_safe_maximum_cycle_number must be at least 1")
        if not 0 < self.minimum_for_c_over_k_stabilization <= 1:
            raise ValueError("minimum_for_c_over_k_stabilization must lie in (0, 1]")


@dataclass(frozen=True)
class SecuritySettings:
    """Divergence detection. The check is enabled when ``level <= 0``."""
    level: int = 0
    max_norm: float = 1e5

    @property
    def enabled(self) -> bool:
        return self.level <= 0


@dataclass(frozen=True)
class Tolerances:
    """Convergence tolerances used during the endgame."""
    final_tolerance: float = 1e-11
    track_tolerance_during_endgame: float = 1e-12

    def __post_init__(self):
        if self.final_tolerance <= 0 or self.track_tolerance_during_endgame <= 0:
            raise ValueError("tolerances must be positive")


@dataclass(frozen=True)
class EndgameConfig:
    """All endgame settings in one value object."""
    endgame: EndgameSettings = field(default_factory=EndgameSettings)
    power_series: PowerSeriesSettings = field(default_factory=PowerSeriesSettings)
    cauchy: CauchySettings = field(default_factory=CauchySettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    tolerances: Tolerances = field(default_factory=Tolerances)

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None) -> "EndgameConfig":
        """Build a config from a flat dictionary of option names.

        Each key must name a field of exactly one settings group, e.g.
        ``{'sample_factor': 0.25, 'final_tolerance': 1e-9}``.

        Raises:
            ValueError: if a key matches no settings field.
        """
        opts = dict(options or {})
        groups = {}
        for group_field in fields(cls):
            group_type = group_field.default_factory
            names = {f.name for f in fields(group_type)}
            picked = {k: opts.pop(k) for k in list(opts) if k in names}
            groups[group_field.name] = group_type(**picked)
        if opts:
            raise ValueError(f"Unknown endgame options: {sorted(opts)}")
        return cls(**groups)
