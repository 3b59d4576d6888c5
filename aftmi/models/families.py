"""
Error distributions for AFT outcome models.

An AFT model writes ``log T = eta + sigma * eps``. Each family fixes the
distribution of the standardised error ``eps`` and the lifelines fitter whose
parameterisation matches it:

    lognormal    eps ~ Normal(0, 1)            LogNormalAFTFitter   (mu_, sigma_)
    weibull      eps ~ minimum extreme value   WeibullAFTFitter     (lambda_, rho_ = 1/sigma)
    loglogistic  eps ~ Logistic(0, 1)          LogLogisticAFTFitter (alpha_, beta_ = 1/sigma)
"""

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np
import pandas as pd
from scipy import stats
from lifelines import LogNormalAFTFitter, WeibullAFTFitter, LogLogisticAFTFitter

from ..exceptions import ConfigurationError

# exp(w) overflows beyond ~709; the extreme value density is exactly zero long before
_EXTREME_VALUE_UPPER = 50.0


@dataclass(frozen=True)
class AFTFamily:
    """Standardised error distribution plus the matching lifelines fitter."""
    name: str
    fitter_class: type
    location_param: str
    scale_param: str
    scale_is_precision: bool
    pdf: Callable[[np.ndarray], np.ndarray]
    sf: Callable[[np.ndarray], np.ndarray]

    def make_fitter(self):
        return self.fitter_class()

    def scale_from_params(self, params: pd.Series) -> float:
        """Convert the fitted (log-scale) ancillary parameter into sigma."""
        log_value = float(params[(self.scale_param, 'Intercept')])
        if self.scale_is_precision:
            return float(np.exp(-log_value))
        return float(np.exp(log_value))


def _extreme_value_pdf(w):
    return stats.gumbel_l.pdf(np.minimum(w, _EXTREME_VALUE_UPPER))


def _extreme_value_sf(w):
    return stats.gumbel_l.sf(np.minimum(w, _EXTREME_VALUE_UPPER))


FAMILIES: Dict[str, AFTFamily] = {
    'lognormal': AFTFamily(
        name='lognormal',
        fitter_class=LogNormalAFTFitter,
        location_param='mu_',
        scale_param='sigma_',
        scale_is_precision=False,
        pdf=stats.norm.pdf,
        sf=stats.norm.sf,
    ),
    'weibull': AFTFamily(
        name='weibull',
        fitter_class=WeibullAFTFitter,
        location_param='lambda_',
        scale_param='rho_',
        scale_is_precision=True,
        pdf=_extreme_value_pdf,
        sf=_extreme_value_sf,
    ),
    'loglogistic': AFTFamily(
        name='loglogistic',
        fitter_class=LogLogisticAFTFitter,
        location_param='alpha_',
        scale_param='beta_',
        scale_is_precision=True,
        pdf=stats.logistic.pdf,
        sf=stats.logistic.sf,
    ),
}


def get_family(name: str) -> AFTFamily:
    """Look up an outcome family by name."""
    try:
        return FAMILIES[name]
    except KeyError:
        raise ConfigurationError(
            "Unsupported outcome family",
            {'family': name, 'supported': tuple(FAMILIES)},
        ) from None


def sample_errors(name: str, size: int, rng: np.random.Generator) -> np.ndarray:
    """Draw standardised errors for the data-generating process."""
    family = get_family(name)
    if family.name == 'lognormal':
        return rng.standard_normal(size)
    if family.name == 'weibull':
        # log of a unit exponential has the minimum extreme value distribution
        return np.log(rng.standard_exponential(size))
    return rng.logistic(size=size)


def outcome_likelihood(family: AFTFamily, y: float, delta: int, eta: np.ndarray,
                       sigma: float) -> np.ndarray:
    """
    Likelihood contribution of one outcome as a function of the covariate.

    With ``w = (log y - eta) / sigma``:

        delta == 1:  g = f(w) / (sigma y)   (density of T at y)
        delta == 0:  g = S(w)               (P(T > y))

    Args:
        family: Outcome error distribution
        y: Observed time
        delta: Event indicator
        eta: Linear predictors at the candidate covariate values
        sigma: Scale of the log-time error

    Returns:
        g evaluated at each entry of ``eta``
    """
    w = (np.log(y) - eta) / sigma
    if delta == 1:
        g = family.pdf(w) / (sigma * y)
    else:
        g = family.sf(w)
    return np.asarray(g, dtype=float)
