"""
Visualization utilities for simulation results.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from ..config.settings import FIGURES_DIR, AnalysisConfig

# Set style for consistent plots
plt.style.use('default')
sns.set_palette("husl")


class SimulationVisualizer:
    """
    Plots of estimator behaviour across simulation replicates.
    """

    def __init__(self, save_dir: Optional[Path] = None, figsize: Tuple[int, int] = (12, 5)):
        """
        Initialize the visualizer.

        Args:
            save_dir: Directory to save figures. If None, uses default from config.
            figsize: Default figure size for plots.
        """
        self.save_dir = Path(save_dir) if save_dir is not None else FIGURES_DIR
        self.figsize = figsize

    def estimate_boxplots(self, estimates: pd.DataFrame,
                          true_values: Sequence[float],
                          title: str = "Estimates across simulation replicates",
                          save_name: Optional[str] = None) -> plt.Figure:
        """
        Box plots of b1 and b2 by method with the true values marked.

        Args:
            estimates: Long table with columns 'method', 'b1', 'b2'
            true_values: True (b1, b2)
            title: Figure title
            save_name: Filename to save the plot

        Returns:
            matplotlib Figure object
        """
        fig, axes = plt.subplots(1, 2, figsize=self.figsize, sharey=False)
        order = [m for m in AnalysisConfig.METHOD_LABELS if m in set(estimates['method'])]

        for ax, column, truth in zip(axes, ['b1', 'b2'], true_values):
            sns.boxplot(data=estimates, x='method', y=column, order=order, ax=ax)
            ax.axhline(truth, color='black', linestyle='--', linewidth=1, label='True value')
            ax.set_xlabel('Method', fontsize=12)
            ax.set_ylabel(column, fontsize=12)
            ax.legend(loc='best')

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if save_name:
            self._save_figure(fig, save_name)

        return fig

    def _save_figure(self, fig: plt.Figure, filename: str):
        """Save figure to the configured directory."""
        self.save_dir.mkdir(parents=True, exist_ok=True)
        if not filename.endswith(('.png', '.pdf', '.svg')):
            filename += '.png'
        filepath = self.save_dir / filename
        fig.savefig(filepath, dpi=300, bbox_inches='tight')
        print(f"Figure saved to: {filepath}")
