"""
Model fitting adapter for the imputation study.

This module wraps the lifelines fitters behind two small result types:

- ``OutcomeModelFit``: a parametric AFT regression of (Y, Delta) on covariates,
  reduced to location coefficients, the log-time scale and their covariance.
- ``AuxiliaryModelFit``: a Cox proportional hazards regression of the censored
  covariate (X, V) on Z, reduced to its coefficient and the uncentred Breslow
  baseline cumulative hazard at the distinct fully observed covariate values.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter
from lifelines.exceptions import ConvergenceError

from ..exceptions import ModelFitError
from .families import AFTFamily, get_family

warnings.filterwarnings('ignore', category=FutureWarning)

_FIT_ERRORS = (ConvergenceError, np.linalg.LinAlgError, ValueError, ZeroDivisionError)


@dataclass(frozen=True)
class OutcomeModelFit:
    """Fitted AFT outcome model: ``log T = coefficients . [1, covariates] + scale * eps``."""
    family: AFTFamily
    coefficients: pd.Series
    scale: float
    covariance: pd.DataFrame
    n_obs: int
    log_likelihood: Optional[float] = None
    model: Any = field(default=None, repr=False, compare=False)

    def linear_predictor(self, x: Union[float, np.ndarray], z: float) -> np.ndarray:
        """Linear predictor with covariate ``X = x`` and ``Z = z``."""
        coef = self.coefficients
        return coef['Intercept'] + coef['X'] * np.asarray(x, dtype=float) + coef['Z'] * z

    def coefficient(self, name: str) -> float:
        return float(self.coefficients[name])

    def variance(self, name: str) -> float:
        return float(self.covariance.loc[name, name])


@dataclass(frozen=True)
class AuxiliaryModelFit:
    """
    Cox model for the covariate given Z.

    ``cumulative_hazard[i]`` is the uncentred baseline cumulative hazard at
    ``event_times[i]``; the step function is right-continuous and zero before
    the first event time.
    """
    coef: float
    event_times: np.ndarray
    cumulative_hazard: np.ndarray
    model: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        times = np.asarray(self.event_times, dtype=float)
        hazard = np.asarray(self.cumulative_hazard, dtype=float)
        if times.ndim != 1 or times.shape != hazard.shape or len(times) == 0:
            raise ValueError("event_times and cumulative_hazard must be non-empty 1-d arrays of equal length")
        if np.any(np.diff(times) <= 0):
            raise ValueError("event_times must be strictly increasing")
        if np.any(np.diff(hazard) < 0) or hazard[0] < 0:
            raise ValueError("cumulative_hazard must be non-negative and non-decreasing")
        object.__setattr__(self, 'event_times', times)
        object.__setattr__(self, 'cumulative_hazard', hazard)

    @property
    def max_event_time(self) -> float:
        return float(self.event_times[-1])

    def baseline_cumulative_hazard(self, t: Union[float, np.ndarray]) -> np.ndarray:
        """Evaluate the baseline step function at ``t``."""
        t = np.asarray(t, dtype=float)
        idx = np.searchsorted(self.event_times, t, side='right') - 1
        values = np.where(idx >= 0, self.cumulative_hazard[np.clip(idx, 0, None)], 0.0)
        return values

    def survival(self, t: Union[float, np.ndarray], z: float) -> np.ndarray:
        """
        ``S(t | z) = exp(-H0(t) exp(coef * z))``, closed at the last event time.

        The Breslow curve never reaches zero on its own; all mass left after
        the next-to-last event time is assigned to the last one, so
        ``S(t | z) = 0`` for ``t >= max_event_time``.
        """
        t = np.asarray(t, dtype=float)
        surv = np.exp(-self.baseline_cumulative_hazard(t) * np.exp(self.coef * z))
        return np.where(t >= self.max_event_time, 0.0, surv)


def _outcome_frame(df: pd.DataFrame, covariates: Sequence[str]) -> pd.DataFrame:
    columns = ['Y', 'Delta'] + list(covariates)
    frame = df[columns].astype(float)
    frame['Delta'] = frame['Delta'].astype(int)
    return frame.reset_index(drop=True)


def fit_outcome_model(df: pd.DataFrame,
                      family: Union[str, AFTFamily] = 'lognormal',
                      covariates: Sequence[str] = ('X', 'Z'),
                      subset: Optional[Union[pd.Series, np.ndarray]] = None) -> OutcomeModelFit:
    """
    Fit a parametric AFT model of (Y, Delta) on the given covariates.

    Args:
        df: Dataset holding Y, Delta and the covariate columns
        family: Outcome family name or object
        covariates: Covariate columns entering the location parameter
        subset: Optional boolean mask selecting the rows to fit on

    Returns:
        OutcomeModelFit with location coefficients, scale and covariance

    Raises:
        ModelFitError: If lifelines fails to fit the model
    """
    if isinstance(family, str):
        family = get_family(family)

    data = df if subset is None else df[np.asarray(subset, dtype=bool)]
    frame = _outcome_frame(data, covariates)

    if len(frame) <= len(covariates) + 2:
        raise ModelFitError(
            "Too few rows to fit the outcome model",
            {'family': family.name, 'n_obs': len(frame)},
        )

    fitter = family.make_fitter()
    try:
        fitter.fit(frame, duration_col='Y', event_col='Delta')
    except _FIT_ERRORS as e:
        raise ModelFitError(
            f"{family.name} AFT fit failed: {e}",
            {'family': family.name, 'n_obs': len(frame)},
        ) from e

    params = fitter.params_
    coefficients = params[family.location_param].copy()
    names = list(coefficients.index)
    keys = [(family.location_param, name) for name in names]
    covariance = pd.DataFrame(
        fitter.variance_matrix_.loc[keys, keys].to_numpy(dtype=float),
        index=names, columns=names,
    )

    if not np.all(np.isfinite(coefficients.to_numpy(dtype=float))) or \
            not np.all(np.isfinite(np.diag(covariance.to_numpy()))):
        raise ModelFitError(
            "Outcome model produced non-finite estimates",
            {'family': family.name, 'n_obs': len(frame)},
        )

    return OutcomeModelFit(
        family=family,
        coefficients=coefficients.astype(float),
        scale=family.scale_from_params(params),
        covariance=covariance,
        n_obs=len(frame),
        log_likelihood=getattr(fitter, 'log_likelihood_', None),
        model=fitter,
    )


def fit_auxiliary_model(df: pd.DataFrame) -> AuxiliaryModelFit:
    """
    Fit the Cox model of the covariate (X, V) on Z.

    The covariate plays the role of a right-censored "time" with V as its
    event indicator.

    Args:
        df: Dataset with X, V and Z

    Returns:
        AuxiliaryModelFit with the Z coefficient and the uncentred baseline
        cumulative hazard at the distinct fully observed X values

    Raises:
        ModelFitError: If there are no fully observed covariates or lifelines fails
    """
    frame = df[['X', 'V', 'Z']].astype(float).reset_index(drop=True)
    frame['V'] = frame['V'].astype(int)

    if frame['V'].sum() < 2:
        raise ModelFitError(
            "Auxiliary model needs at least two fully observed covariates",
            {'n_observed': int(frame['V'].sum())},
        )

    cph = CoxPHFitter()
    try:
        cph.fit(frame, duration_col='X', event_col='V')
    except _FIT_ERRORS as e:
        raise ModelFitError(f"Cox fit of X on Z failed: {e}", {'n_obs': len(frame)}) from e

    coef = float(cph.params_['Z'])

    # lifelines reports the baseline at the mean of Z; rescale it to Z = 0
    log_partial_at_zero = np.asarray(
        cph.predict_log_partial_hazard(pd.DataFrame({'Z': [0.0]})), dtype=float
    ).ravel()[0]

    baseline = cph.baseline_cumulative_hazard_.iloc[:, 0]
    timeline = baseline.index.to_numpy(dtype=float)
    event_times = np.unique(frame.loc[frame['V'] == 1, 'X'].to_numpy())

    idx = np.searchsorted(timeline, event_times, side='right') - 1
    hazard = baseline.to_numpy(dtype=float)[idx] * np.exp(log_partial_at_zero)

    if not np.isfinite(coef) or not np.all(np.isfinite(hazard)):
        raise ModelFitError("Cox fit of X on Z produced non-finite estimates", {'n_obs': len(frame)})

    return AuxiliaryModelFit(
        coef=coef,
        event_times=event_times,
        cumulative_hazard=np.maximum.accumulate(hazard),
        model=cph,
    )


def display_model_summary(fit: OutcomeModelFit, model_name: str, verbose: bool = True):
    """Print coefficients, standard errors and scale of a fitted outcome model."""
    if not verbose:
        return

    print(f"📊 {model_name} ({fit.family.name} AFT, n={fit.n_obs}):")
    print("=" * 50)
    for name, value in fit.coefficients.items():
        se = np.sqrt(fit.variance(name))
        print(f"  {name:>10}: {value: .4f}  (SE {se:.4f})")
    print(f"  {'scale':>10}: {fit.scale: .4f}")
    if fit.log_likelihood is not None:
        print(f"  Log-likelihood: {fit.log_likelihood:.2f}")
