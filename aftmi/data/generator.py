"""
Synthetic data for the censored-covariate simulation study.

    Z            ~ Normal(0, 1)
    X_true | Z   Weibull proportional hazards, H(x) = (x / scale)^k exp(gamma Z)
    C            Weibull with the same shape and hazard multiplier lambda_c
    X, V         X = min(X_true, C), V = 1{X_true <= C}
    log T        = beta0 + beta1 X_true + beta2 Z + sigma eps
    D            ~ Uniform(0, tau)
    Y, Delta     Y = min(T, D), Delta = 1{T <= D}
"""

from typing import Optional

import numpy as np
import pandas as pd

from ..config.settings import SimulationConfig
from ..models.families import sample_errors


def weibull_ph_times(rng: np.random.Generator, shape: float, scale: float,
                     linpred: np.ndarray) -> np.ndarray:
    """
    Inverse-transform draws with ``H(t) = (t / scale)^shape * exp(linpred)``.
    """
    e = rng.standard_exponential(len(linpred))
    return scale * (e * np.exp(-linpred)) ** (1.0 / shape)


def simulate_dataset(config: SimulationConfig,
                     rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
    """
    Generate one dataset.

    Args:
        config: Data-generating settings
        rng: Random generator; defaults to one seeded with ``config.seed``

    Returns:
        DataFrame with Y, Delta, X, V, Z and the simulation-only X_true
    """
    if rng is None:
        rng = np.random.default_rng(config.seed)
    n = config.n

    z = rng.standard_normal(n)

    x_true = weibull_ph_times(rng, config.covariate_shape, config.covariate_scale,
                              config.covariate_effect * z)
    c = weibull_ph_times(rng, config.covariate_shape, config.covariate_scale,
                         np.full(n, np.log(config.covariate_censoring_rate)))
    x = np.minimum(x_true, c)
    v = (x_true <= c).astype(int)

    eps = sample_errors(config.outcome_family, n, rng)
    log_t = config.beta0 + config.beta1 * x_true + config.beta2 * z + config.sigma * eps
    t = np.exp(log_t)
    d = rng.uniform(0.0, config.outcome_censoring_upper, n)
    y = np.minimum(t, d)
    delta = (t <= d).astype(int)

    return pd.DataFrame({
        'Y': y,
        'Delta': delta,
        'X': x,
        'V': v,
        'Z': z,
        'X_true': x_true,
    })
