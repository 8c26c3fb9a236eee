"""
Visualization module for PyEndgame.

This module provides functions to visualize the samples an endgame
collects: the geometric approach to t = 0 and the loops of the Cauchy
endgame.
"""

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from pyendgame.history import SampleHistory


def plot_sample_history(history: SampleHistory,
                        var_idx: int = 0,
                        title: Optional[str] = None,
                        figsize: Tuple[int, int] = (10, 8),
                        limit: Optional[np.ndarray] = None) -> plt.Figure:
    """Plot the samples of a history in the complex plane.

    Args:
        history: Samples collected by an endgame
        var_idx: Index of the variable to plot (default: 0)
        title: Plot title (default: auto-generated)
        figsize: Figure size
        limit: Approximation of the endpoint to mark, if any

    Returns:
        The created matplotlib figure
    """
    t_moduli = [abs(complex(t)) for t in history.times]
    var_values = [complex(s[var_idx]) for s in history.samples]

    real_parts = [z.real for z in var_values]
    imag_parts = [z.imag for z in var_values]

    fig, ax = plt.subplots(figsize=figsize)

    scatter = ax.scatter(real_parts, imag_parts, c=np.log10(t_moduli), cmap='viridis',
                         s=30, alpha=0.7)
    cbar = plt.colorbar(scatter, ax=ax)
    cbar.set_label('log10 |t|')

    ax.plot(real_parts, imag_parts, 'k-', alpha=0.3)

    if limit is not None:
        z = complex(limit[var_idx])
        ax.plot(z.real, z.imag, 'r*', markersize=14, label='Approximation at t=0')
        ax.legend()

    ax.set_xlabel('Real Part')
    ax.set_ylabel('Imaginary Part')
    if title is None:
        title = f'Endgame Samples (Variable {var_idx})'
    ax.set_title(title)
    ax.axis('equal')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_cauchy_loop(loop_history: SampleHistory,
                     var_idx: int = 0,
                     title: Optional[str] = None,
                     figsize: Tuple[int, int] = (12, 6)) -> plt.Figure:
    """Plot the stop points of Cauchy loops next to the times they visit.

    Args:
        loop_history: Loop samples from a Cauchy endgame
        var_idx: Index of the variable to plot (default: 0)
        title: Plot title (default: auto-generated)
        figsize: Figure size

    Returns:
        The created matplotlib figure
    """
    times = [complex(t) for t in loop_history.times]
    var_values = [complex(s[var_idx]) for s in loop_history.samples]
    order = np.arange(len(var_values))

    fig, (ax_t, ax_x) = plt.subplots(1, 2, figsize=figsize)

    ax_t.scatter([t.real for t in times], [t.imag for t in times], c=order, cmap='plasma', s=30)
    ax_t.plot(0, 0, 'kx', markersize=10)
    ax_t.set_title('Loop Times')
    ax_t.set_xlabel('Re(t)')
    ax_t.set_ylabel('Im(t)')
    ax_t.axis('equal')
    ax_t.grid(True, alpha=0.3)

    ax_x.scatter([z.real for z in var_values], [z.imag for z in var_values], c=order, cmap='plasma', s=30)
    ax_x.plot([z.real for z in var_values], [z.imag for z in var_values], 'k-', alpha=0.3)
    if var_values:
        mean = np.mean(var_values)
        ax_x.plot(mean.real, mean.imag, 'r*', markersize=14, label='Loop mean')
        ax_x.legend()
    ax_x.set_xlabel('Real Part')
    ax_x.set_ylabel('Imaginary Part')
    ax_x.axis('equal')
    ax_x.grid(True, alpha=0.3)

    if title is None:
        title = f'Cauchy Loops (Variable {var_idx})'
    fig.suptitle(title)

    plt.tight_layout()
    return fig
