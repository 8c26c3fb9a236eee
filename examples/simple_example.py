"""
Simple example demonstrating the basic usage of PyEndgame.

This example tracks the two solutions of the homotopy

    H(x, t) = (1 - t) x^2 + t * gamma * (x^2 - 1)

from the start roots x = 1 and x = -1 at t = 1 towards t = 0. Both paths
end at the double root x = 0 of the target x^2, where ordinary tracking
breaks down. The power-series and Cauchy endgames recover the endpoint and
its cycle number 2.
"""

import sys
import os
import time
import logging
import matplotlib.pyplot as plt
import numpy as np

# Add the parent directory to the path so we can import pyendgame
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pyendgame import (
    CauchyEndgame,
    EndgameConfig,
    PowerSeriesEndgame,
    StraightLineHomotopy,
    SuccessCode,
    Tracker,
    solve_endgames
)
from pyendgame.visualization import plot_sample_history, plot_cauchy_loop


def main():
    """Run the simple example."""
    logging.basicConfig(level=logging.INFO)
    print("PyEndgame Simple Example")
    print("========================")

    homotopy = StraightLineHomotopy(
        target=lambda x: [x[0] ** 2],
        target_jacobian=lambda x: [[2 * x[0]]],
        start=lambda x: [x[0] ** 2 - 1],
        start_jacobian=lambda x: [[2 * x[0]]],
        num_variables=1,
    )
    tracker = Tracker(homotopy)
    config = EndgameConfig.from_options({"final_tolerance": 1e-9, "num_sample_points": 8})
    start_points = [np.array([1.0]), np.array([-1.0])]

    for name, endgame_class in [("power series", PowerSeriesEndgame), ("Cauchy", CauchyEndgame)]:
        print(f"\nRunning the {name} endgame...")
        start_time = time.time()
        outcomes = solve_endgames(
            tracker,
            lambda: endgame_class(tracker, config=config, random_state=0),
            start_points,
            verbose=True,
        )
        print(f"Completed in {time.time() - start_time:.3f} seconds")

        for i, outcome in enumerate(outcomes):
            print(f"\nPath {i+1}: {outcome.code.name}")
            if outcome.code == SuccessCode.Success:
                print(f"  endpoint     = {complex(outcome.final_approximation[0]):.3e}")
                print(f"  cycle number = {outcome.cycle_number}")

    # Visualize one path of each endgame
    print("\nCreating visualization...")
    boundary = tracker.track_path(1.0, 0.1, start_points[0])

    power_series = PowerSeriesEndgame(tracker, config=config, random_state=0)
    power_series.run(0.1, boundary.sample)
    plot_sample_history(power_series.history, limit=power_series.final_approximation)

    cauchy = CauchyEndgame(tracker, config=config, random_state=0)
    cauchy.run(0.1, boundary.sample)
    plot_cauchy_loop(cauchy.loop_history)

    plt.show()


if __name__ == "__main__":
    main()
