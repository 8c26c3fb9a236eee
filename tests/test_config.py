"""
Test endgame configuration objects.
"""

import dataclasses

import pytest

from pyendgame import EndgameConfig, EndgameSettings, CauchySettings, SecuritySettings, Tolerances


class TestDefaults:
    """Test default settings."""

    def test_defaults(self):
        config = EndgameConfig()
        assert config.endgame.num_sample_points == 4
        assert config.endgame.sample_factor == 0.5
        assert config.endgame.min_track_time == 1e-100
        assert config.power_series.max_cycle_number == 4
        assert config.power_series.cycle_number_amplification == 5
        assert config.cauchy.fail_safe_maximum_cycle_number == 250
        assert config.security.max_norm == 1e5
        assert config.tolerances.final_tolerance == 1e-11

    def test_frozen(self):
        config = EndgameConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.endgame.sample_factor = 0.25

    def test_security_level(self):
        assert SecuritySettings().enabled
        assert not SecuritySettings(level=1).enabled


class TestValidation:
    """Test rejection of out-of-range settings."""

    @pytest.mark.parametrize("kwargs", [
        {"num_sample_points": 1},
        {"sample_factor": 0.0},
        {"sample_factor": 1.0},
        {"min_track_time": -1.0},
        {"max_num_newton_iterations": 0},
    ])
    def test_bad_endgame_settings(self, kwargs):
        with pytest.raises(ValueError):
            EndgameSettings(**kwargs)

    def test_bad_cauchy_settings(self):
        with pytest.raises(ValueError):
            CauchySettings(num_needed_for_stabilization=1)
        with pytest.raises(ValueError):
            CauchySettings(minimum_for_c_over_k_stabilization=0)

    def test_bad_tolerances(self):
        with pytest.raises(ValueError):
            Tolerances(final_tolerance=0)


class TestFromOptions:
    """Test building a config from a flat options dictionary."""

    def test_routes_keys_to_groups(self):
        config = EndgameConfig.from_options({
            "sample_factor": 0.25,
            "max_cycle_number": 6,
            "max_norm": 1e8,
            "final_tolerance": 1e-9,
        })
        assert config.endgame.sample_factor == 0.25
        assert config.power_series.max_cycle_number == 6
        assert config.security.max_norm == 1e8
        assert config.tolerances.final_tolerance == 1e-9
        assert config.cauchy == CauchySettings()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown endgame options"):
            EndgameConfig.from_options({"samples_per_loop": 8})

    def test_empty(self):
        assert EndgameConfig.from_options() == EndgameConfig()
