import numpy as np
import pandas as pd
import pytest

from aftmi.utils.statistics import interval_coverage, summarize_estimates
from aftmi.utils.visualization import SimulationVisualizer


def test_interval_coverage_normal_and_t():
    estimates = np.array([0.7, 0.9, 1.1])
    variances = np.full(3, 0.01)

    assert interval_coverage(estimates, variances, 0.7) == pytest.approx(1 / 3)
    # t(3) critical value 3.18 widens the interval enough to cover the 0.2 deviation
    assert interval_coverage(estimates, variances, 0.7, dof=np.full(3, 3.0)) == pytest.approx(2 / 3)


def test_summarize_estimates():
    summary = summarize_estimates(np.array([0.6, 0.8]), np.array([0.04, 0.04]), 0.7)

    assert summary['n_replicates'] == 2
    assert summary['mean'] == pytest.approx(0.7)
    assert summary['bias'] == pytest.approx(0.0, abs=1e-12)
    assert summary['empirical_sd'] == pytest.approx(np.sqrt(0.02))
    assert summary['mean_se'] == pytest.approx(0.2)
    assert summary['se_sd_ratio'] == pytest.approx(0.2 / np.sqrt(0.02))
    assert summary['mse'] == pytest.approx(0.01)
    assert summary['coverage'] == 1.0


def test_boxplots_saved(tmp_path):
    estimates = pd.DataFrame({
        'method': ['CC', 'CC', 'MI', 'MI'],
        'b1': [0.6, 0.8, 0.65, 0.75],
        'b2': [1.0, 1.1, 0.9, 1.0],
    })
    visualizer = SimulationVisualizer(save_dir=tmp_path / 'figures')

    fig = visualizer.estimate_boxplots(estimates, (0.7, 1.0), save_name='estimates')

    assert len(fig.axes) == 2
    assert (tmp_path / 'figures' / 'estimates.png').exists()
