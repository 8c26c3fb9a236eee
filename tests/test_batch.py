"""
Test the batch driver that runs endgames over many paths.
"""

import numpy as np
import pytest

from pyendgame import (
    EndgameConfig,
    PowerSeriesEndgame,
    StraightLineHomotopy,
    SuccessCode,
    Tracker,
    run_endgames,
    solve_endgames,
    track_to_boundary,
)


def _double_root_homotopy():
    # (1 - t) x^2 + t*gamma*(x^2 - 1): both start roots end at the double root 0
    return StraightLineHomotopy(
        target=lambda x: [x[0] ** 2],
        target_jacobian=lambda x: [[2 * x[0]]],
        start=lambda x: [x[0] ** 2 - 1],
        start_jacobian=lambda x: [[2 * x[0]]],
        num_variables=1,
    )


class TestRunEndgames:
    """Test running one endgame per start point."""

    @pytest.mark.parametrize("verbose", [False, True])
    def test_both_branches(self, double_root, verbose):
        tracker = Tracker(double_root())
        outcomes = run_endgames(
            lambda: PowerSeriesEndgame(tracker, random_state=0),
            0.1,
            [np.array([1 + np.sqrt(0.1)]), np.array([1 - np.sqrt(0.1)])],
            verbose=verbose,
        )
        assert len(outcomes) == 2
        for outcome in outcomes:
            assert outcome.code == SuccessCode.Success
            assert outcome.cycle_number == 2
            assert abs(outcome.final_approximation[0] - 1) < 1e-8

    def test_fresh_endgame_per_path(self, double_root):
        tracker = Tracker(double_root())
        made = []

        def make_endgame():
            endgame = PowerSeriesEndgame(tracker, random_state=len(made))
            made.append(endgame)
            return endgame

        run_endgames(make_endgame, 0.1, [np.array([1 + np.sqrt(0.1)])] * 3)
        assert len(made) == 3
        assert len({id(e) for e in made}) == 3

    def test_failures_are_reported(self, branch_setup):
        path, system, tracker = branch_setup([1.0], [1.0], 2, fail_below=0.02)
        outcomes = run_endgames(lambda: PowerSeriesEndgame(tracker), 0.1, [path.branches(0.1)[0]])
        assert outcomes[0].code == SuccessCode.MinStepSizeReached
        assert outcomes[0].final_approximation is None


class TestSolveEndgames:
    """Test tracking to the endgame boundary followed by the endgames."""

    def test_track_to_boundary(self):
        tracker = Tracker(_double_root_homotopy())
        results = track_to_boundary(tracker, [np.array([1.0]), np.array([-1.0])])
        assert [r.code for r in results] == [SuccessCode.Success, SuccessCode.Success]

    def test_solve_endgames(self):
        tracker = Tracker(_double_root_homotopy())
        config = EndgameConfig.from_options({"final_tolerance": 1e-8})
        outcomes = solve_endgames(
            tracker,
            lambda: PowerSeriesEndgame(tracker, config=config, random_state=0),
            [np.array([1.0]), np.array([-1.0])],
        )
        for outcome in outcomes:
            assert outcome.code == SuccessCode.Success
            assert outcome.cycle_number == 2
            assert abs(outcome.final_approximation[0]) < 1e-6

    def test_failure_before_boundary(self):
        tracker = Tracker(_double_root_homotopy())
        outcomes = solve_endgames(
            tracker,
            lambda: PowerSeriesEndgame(tracker, random_state=0),
            [np.array([0.0])],
        )
        assert outcomes[0].code == SuccessCode.SingularStartPoint
        assert outcomes[0].final_approximation is None
        assert outcomes[0].cycle_number is None
