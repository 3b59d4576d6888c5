"""
Imputation engine for a randomly censored covariate.

One run of the engine produces one imputation replicate:

1. bootstrap the dataset,
2. fit the Cox model of X given Z and the AFT outcome model (complete cases),
3. replace each censored covariate by a draw from its conditional distribution,
4. refit the outcome model on the completed bootstrap sample.
"""

from typing import Optional, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from ..config.settings import ImputationConfig
from ..data.dataset import bootstrap_resample, candidate_levels, iter_incomplete_observations
from ..exceptions import RootNotFoundError
from ..models.aft_models import AuxiliaryModelFit, OutcomeModelFit, fit_auxiliary_model, fit_outcome_model
from .conditional import ConditionalSurvival, build_conditional_survival
from .results import CoefficientEstimate

IMPUTED_COLUMN = 'imputed_X'


def resolve_bracket(config: ImputationConfig, levels: np.ndarray) -> Tuple[float, float]:
    """Search interval for the inversion: configured, or ``(0, 1 + max(levels))``."""
    if config.root_bracket is not None:
        return config.root_bracket
    return 0.0, 1.0 + float(np.max(levels))


def invert_conditional(conditional: ConditionalSurvival, u: float,
                       bracket: Tuple[float, float],
                       tol: float = 1e-10, maxiter: int = 200) -> float:
    """
    Solve ``F(t) = u`` for ``t`` inside ``bracket`` with Brent's method.

    Args:
        conditional: Conditional survival function of the covariate
        u: Uniform draw
        bracket: (lower, upper) search interval
        tol: Absolute tolerance on ``t``
        maxiter: Maximum number of iterations

    Returns:
        The imputed covariate value

    Raises:
        RootNotFoundError: If ``F - u`` has no sign change on the bracket or
            the solver does not converge within ``maxiter`` iterations
    """
    lower, upper = bracket

    def objective(t):
        return float(conditional(t)) - u

    f_lower = objective(lower)
    f_upper = objective(upper)
    if f_lower * f_upper > 0:
        raise RootNotFoundError(
            "Conditional distribution has no sign change in the search bracket",
            {'u': u, 'bracket': (lower, upper), 'f_lower': f_lower, 'f_upper': f_upper},
        )

    try:
        root, info = brentq(objective, lower, upper, xtol=tol, maxiter=maxiter,
                            full_output=True, disp=False)
    except ValueError as e:
        raise RootNotFoundError(str(e), {'u': u, 'bracket': (lower, upper)}) from e

    if not info.converged:
        raise RootNotFoundError(
            "Root finding did not converge",
            {'u': u, 'bracket': (lower, upper), 'iterations': info.iterations},
        )
    return float(root)


def draw_from_candidates(conditional: ConditionalSurvival, u: float) -> float:
    """
    Semiparametric draw: the smallest candidate level with ``F(t) <= u``.

    The imputed value is always one of the observed covariate levels above
    the censoring bound.
    """
    idx = int(np.argmax(conditional.values[1:] <= u)) + 1
    return float(conditional.knots[idx])


def impute_covariates(df: pd.DataFrame,
                      auxiliary: AuxiliaryModelFit,
                      outcome: OutcomeModelFit,
                      rng: np.random.Generator,
                      config: Optional[ImputationConfig] = None) -> pd.DataFrame:
    """
    Draw one imputed value for every censored covariate.

    Args:
        df: Dataset (usually a bootstrap sample) the models were fitted on
        auxiliary: Cox model of X given Z
        outcome: AFT outcome model
        rng: Random generator for the uniform draws
        config: Imputation settings

    Returns:
        Copy of ``df`` with an ``imputed_X`` column; observed values are kept

    Raises:
        RootNotFoundError: If a conditional distribution cannot be inverted
    """
    config = config or ImputationConfig()
    levels = candidate_levels(df)
    bracket = resolve_bracket(config, levels)

    completed = df.copy()
    completed[IMPUTED_COLUMN] = completed['X'].astype(float)

    for label, observation in iter_incomplete_observations(df):
        conditional = build_conditional_survival(observation, auxiliary, outcome, levels)
        u = rng.uniform(0.0, 1.0)
        if config.method == 'resampling':
            value = draw_from_candidates(conditional, u)
        else:
            value = invert_conditional(conditional, u, bracket,
                                       tol=config.root_tol, maxiter=config.root_maxiter)
        completed.at[label, IMPUTED_COLUMN] = value

    return completed


def refit_completed(completed: pd.DataFrame, family: str) -> CoefficientEstimate:
    """Refit the outcome model with the imputed covariate in place of X."""
    frame = completed[['Y', 'Delta', 'Z']].copy()
    frame['X'] = completed[IMPUTED_COLUMN]
    fit = fit_outcome_model(frame, family=family)
    return CoefficientEstimate.from_fit(fit)


def impute_once(df: pd.DataFrame, config: ImputationConfig,
                rng: np.random.Generator) -> CoefficientEstimate:
    """
    Run one imputation replicate.

    Args:
        df: Original dataset
        config: Imputation settings
        rng: Random generator for the bootstrap and the uniform draws

    Returns:
        Coefficients of X and Z and their variances from the refit

    Raises:
        RootNotFoundError: If a conditional distribution cannot be inverted
        ModelFitError: If any of the three model fits fails
    """
    boot = bootstrap_resample(df, rng)

    auxiliary = fit_auxiliary_model(boot)
    outcome = fit_outcome_model(boot, family=config.outcome_family, subset=boot['V'] == 1)

    completed = impute_covariates(boot, auxiliary, outcome, rng, config)
    return refit_completed(completed, config.outcome_family)
