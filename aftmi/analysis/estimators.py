"""
The four estimators compared in the simulation study.

- CC      complete-case analysis: drop units with a censored covariate
- MS      mean substitution: censored covariates replaced by the observed mean
- MI-ind  missing-indicator: censored covariates set to zero plus an indicator
- MI      multiple imputation from the conditional distribution of X
"""

from typing import Dict, Optional, Union

import numpy as np
import pandas as pd

from ..config.settings import ImputationConfig
from ..data.dataset import validate_dataset
from ..models.aft_models import fit_outcome_model
from .pooling import multiple_imputation
from .results import CoefficientEstimate


def substitute_mean(df: pd.DataFrame) -> pd.DataFrame:
    """
    Replace every censored covariate by the mean of the observed covariates.

    ``V`` is left untouched so the substitution remains identifiable.
    """
    substituted = df.copy()
    observed_mean = df.loc[df['V'] == 1, 'X'].mean()
    substituted['X'] = np.where(df['V'] == 1, df['X'], observed_mean)
    return substituted


def add_missing_indicator(df: pd.DataFrame) -> pd.DataFrame:
    """Zero out censored covariates and add the indicator ``R = 1 - V``."""
    augmented = df.copy()
    augmented['X'] = np.where(df['V'] == 1, df['X'], 0.0)
    augmented['R'] = 1 - df['V'].astype(int)
    return augmented


def complete_case_estimate(df: pd.DataFrame, family: str = 'lognormal') -> CoefficientEstimate:
    fit = fit_outcome_model(df, family=family, subset=df['V'] == 1)
    return CoefficientEstimate.from_fit(fit)


def mean_substitution_estimate(df: pd.DataFrame, family: str = 'lognormal') -> CoefficientEstimate:
    fit = fit_outcome_model(substitute_mean(df), family=family)
    return CoefficientEstimate.from_fit(fit)


def missing_indicator_estimate(df: pd.DataFrame, family: str = 'lognormal') -> CoefficientEstimate:
    fit = fit_outcome_model(add_missing_indicator(df), family=family, covariates=('X', 'Z', 'R'))
    return CoefficientEstimate.from_fit(fit)


def multiple_imputation_estimate(df: pd.DataFrame,
                                 config: Optional[ImputationConfig] = None,
                                 seed: Union[int, np.random.SeedSequence, None] = None,
                                 n_workers: Optional[int] = None) -> CoefficientEstimate:
    return multiple_imputation(df, config=config, seed=seed, n_workers=n_workers)


def estimate_all(df: pd.DataFrame,
                 config: Optional[ImputationConfig] = None,
                 seed: Union[int, np.random.SeedSequence, None] = None) -> Dict[str, CoefficientEstimate]:
    """
    Run the four estimators on one dataset.

    Args:
        df: Dataset with censored covariates
        config: Imputation settings; its outcome family is used by every method
        seed: Seed for the multiple-imputation random stream

    Returns:
        Mapping of method label ('CC', 'MS', 'MI-ind', 'MI') to estimate

    Raises:
        ValueError: If the dataset fails schema validation
    """
    validate_dataset(df)
    config = config or ImputationConfig()
    family = config.outcome_family
    return {
        'CC': complete_case_estimate(df, family),
        'MS': mean_substitution_estimate(df, family),
        'MI-ind': missing_indicator_estimate(df, family),
        'MI': multiple_imputation_estimate(df, config, seed=seed),
    }
