"""
Statistical summaries of simulation output.
"""

from typing import Dict, Optional

import numpy as np
from scipy import stats

from ..config.settings import AnalysisConfig


def interval_coverage(estimates: np.ndarray, variances: np.ndarray, truth: float,
                      alpha: float = AnalysisConfig.ALPHA,
                      dof: Optional[np.ndarray] = None) -> float:
    """
    Proportion of Wald intervals containing the true value.

    Args:
        estimates: Point estimates across replicates
        variances: Estimated variances across replicates
        truth: True parameter value
        alpha: 1 - nominal level
        dof: Optional per-replicate degrees of freedom (t intervals); normal otherwise

    Returns:
        Empirical coverage in [0, 1]
    """
    estimates = np.asarray(estimates, dtype=float)
    se = np.sqrt(np.asarray(variances, dtype=float))
    if dof is None:
        crit = stats.norm.ppf(1 - alpha / 2)
    else:
        crit = stats.t.ppf(1 - alpha / 2, np.asarray(dof, dtype=float))
    covered = np.abs(estimates - truth) <= crit * se
    return float(np.mean(covered))


def summarize_estimates(estimates: np.ndarray, variances: np.ndarray, truth: float,
                        alpha: float = AnalysisConfig.ALPHA,
                        dof: Optional[np.ndarray] = None) -> Dict[str, float]:
    """
    Bias, variability and coverage of one estimator for one coefficient.

    Returns:
        Dictionary with mean, bias, relative bias, empirical SD, mean estimated
        SE, SE/SD ratio, MSE and coverage
    """
    estimates = np.asarray(estimates, dtype=float)
    variances = np.asarray(variances, dtype=float)

    mean = float(np.mean(estimates))
    bias = mean - truth
    empirical_sd = float(np.std(estimates, ddof=1)) if len(estimates) > 1 else np.nan
    mean_se = float(np.mean(np.sqrt(variances)))

    return {
        'n_replicates': int(len(estimates)),
        'mean': mean,
        'bias': bias,
        'relative_bias': bias / truth if truth != 0 else np.nan,
        'empirical_sd': empirical_sd,
        'mean_se': mean_se,
        'se_sd_ratio': mean_se / empirical_sd if empirical_sd and np.isfinite(empirical_sd) else np.nan,
        'mse': float(np.mean((estimates - truth) ** 2)),
        'coverage': interval_coverage(estimates, variances, truth, alpha=alpha, dof=dof),
    }
