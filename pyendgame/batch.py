"""
Batch driver for PyEndgame.

This module runs endgames over many paths: it tracks each start point to
the endgame boundary time, then hands it to a fresh endgame instance and
collects the outcomes. Paths are processed sequentially, one endgame
instance per path.
"""

import logging
import time
from collections import namedtuple
from typing import Callable, List, Optional, Sequence

import numpy as np
from tqdm.auto import tqdm

from pyendgame.codes import SuccessCode
from pyendgame.endgame.base import EndgameBase
from pyendgame.tracking import Tracker, TrackResult

logger = logging.getLogger(__name__)

EndgameOutcome = namedtuple("EndgameOutcome", ["code", "final_approximation", "cycle_number"])


def track_to_boundary(tracker: Tracker,
                      start_points: Sequence[np.ndarray],
                      start_time=1.0,
                      boundary_time=0.1) -> List[TrackResult]:
    """Track every start point from ``start_time`` to the endgame boundary.

    Args:
        tracker: Tracker for the homotopy
        start_points: Solutions at ``start_time``
        start_time: Time of the start solutions (default: 1)
        boundary_time: Time at which the endgames take over (default: 0.1)

    Returns:
        One TrackResult per start point, in order.
    """
    results = []
    for i, point in enumerate(start_points):
        result = tracker.track_path(start_time, boundary_time, point)
        if result.code != SuccessCode.Success:
            logger.info("path %d failed before the endgame boundary, code %s", i, result.code)
        results.append(result)
    return results


def run_endgames(make_endgame: Callable[[], EndgameBase],
                 start_time,
                 start_points: Sequence[np.ndarray],
                 verbose: bool = False) -> List[EndgameOutcome]:
    """Run one endgame per start point.

    Args:
        make_endgame: Factory returning a new endgame for each path
        start_time: Time at which every start point is a solution
        start_points: Approximate solutions at ``start_time``
        verbose: Whether to show progress information

    Returns:
        One EndgameOutcome per start point. Failed paths keep their result
        code and best-effort approximation; nothing is retried.
    """
    n_paths = len(start_points)
    outcomes: List[EndgameOutcome] = []

    if verbose:
        print(f"Running endgames on {n_paths} paths from t={start_time}...")
        pbar = tqdm(total=n_paths)

    started = time.time()
    for i, point in enumerate(start_points):
        endgame = make_endgame()
        code = endgame.run(start_time, point)
        if code != SuccessCode.Success:
            logger.info("endgame on path %d ended with %s", i, code)
        outcomes.append(EndgameOutcome(code, endgame.final_approximation, endgame.cycle_number))
        if verbose:
            pbar.update(1)

    if verbose:
        pbar.close()
        success_count = sum(o.code == SuccessCode.Success for o in outcomes)
        print(f"Endgames complete: {success_count}/{n_paths} successful paths "
              f"in {time.time() - started:.2f}s")

    return outcomes


def solve_endgames(tracker: Tracker,
                   make_endgame: Callable[[], EndgameBase],
                   start_points: Sequence[np.ndarray],
                   start_time=1.0,
                   boundary_time=0.1,
                   verbose: bool = False) -> List[EndgameOutcome]:
    """Track to the endgame boundary, then run an endgame on each path.

    Paths that fail before the boundary are reported with the tracker's
    code and no approximation.
    """
    tracked = track_to_boundary(tracker, start_points, start_time, boundary_time)
    survivors = [i for i, r in enumerate(tracked) if r.code == SuccessCode.Success]
    endgame_outcomes = run_endgames(make_endgame, boundary_time,
                                    [tracked[i].sample for i in survivors], verbose=verbose)

    outcomes: List[Optional[EndgameOutcome]] = [
        EndgameOutcome(r.code, None, None) for r in tracked
    ]
    for i, outcome in zip(survivors, endgame_outcomes):
        outcomes[i] = outcome
    return outcomes
