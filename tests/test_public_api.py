"""
Test the public API and import functionality of PyEndgame.

This ensures that all public functions and classes are properly exposed.
"""

import pytest


class TestImports:
    """Test that all public API elements can be imported correctly."""

    def test_main_imports(self):
        """Test importing the endgames and their collaborators."""
        from pyendgame import (
            PowerSeriesEndgame,
            CauchyEndgame,
            Tracker,
            AMPTracker,
            FunctionSystem,
            StraightLineHomotopy,
            EndgameConfig,
            SuccessCode
        )

        assert PowerSeriesEndgame is not None
        assert CauchyEndgame is not None
        assert Tracker is not None
        assert AMPTracker is not None
        assert FunctionSystem is not None
        assert StraightLineHomotopy is not None
        assert EndgameConfig is not None
        assert SuccessCode is not None

    def test_star_import(self):
        """Test that __all__ names every exported symbol."""
        import pyendgame

        assert hasattr(pyendgame, '__all__')
        for name in pyendgame.__all__:
            assert hasattr(pyendgame, name), f"{name} in __all__ but not exported"

    def test_version(self):
        import pyendgame
        assert isinstance(pyendgame.__version__, str)

    def test_visualization_not_in_main_imports(self):
        """Test that plotting stays out of the package namespace."""
        import pyendgame
        assert 'plot_sample_history' not in pyendgame.__all__


class TestErrors:
    """Test the result codes and contract errors."""

    def test_error_codes(self):
        from pyendgame import (
            CycleNumberError,
            DimensionMismatchError,
            EndgameContractError,
            InsufficientSamplesError,
            SuccessCode
        )

        assert DimensionMismatchError.code == SuccessCode.DimensionMismatch
        assert CycleNumberError.code == SuccessCode.ZeroCycleNumber
        assert issubclass(DimensionMismatchError, ValueError)
        assert issubclass(InsufficientSamplesError, EndgameContractError)

    def test_success_code_values(self):
        from pyendgame import SuccessCode
        assert SuccessCode.Success.value == 0
        assert len(SuccessCode) == 14

    def test_endgames_are_abstract(self):
        from pyendgame import EndgameBase
        with pytest.raises(TypeError):
            EndgameBase(None)
