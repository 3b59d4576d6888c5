"""
Utilities module: summary statistics and plotting for simulation output.
"""

from .statistics import interval_coverage, summarize_estimates
from .visualization import SimulationVisualizer

__all__ = ['interval_coverage', 'summarize_estimates', 'SimulationVisualizer']
