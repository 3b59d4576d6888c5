"""
Result containers shared by all estimators.

Every estimator reports the two covariate effects of interest and their
variances, so results tabulate uniformly as rows of ``b1, b2, V(b1), V(b2)``.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

import numpy as np
import pandas as pd

from ..config.settings import AnalysisConfig
from ..models.aft_models import OutcomeModelFit


@dataclass(frozen=True)
class CoefficientEstimate:
    """Two coefficient estimates and their variances, labelled by covariate."""
    coefficients: np.ndarray
    variances: np.ndarray
    names: Tuple[str, str] = AnalysisConfig.COVARIATE_NAMES

    def __post_init__(self):
        coefficients = np.asarray(self.coefficients, dtype=float)
        variances = np.asarray(self.variances, dtype=float)
        if coefficients.shape != (2,) or variances.shape != (2,):
            raise ValueError("Expected two coefficients and two variances")
        coefficients.setflags(write=False)
        variances.setflags(write=False)
        object.__setattr__(self, 'coefficients', coefficients)
        object.__setattr__(self, 'variances', variances)
        object.__setattr__(self, 'names', tuple(self.names))

    @classmethod
    def from_fit(cls, fit: OutcomeModelFit,
                 names: Tuple[str, str] = AnalysisConfig.COVARIATE_NAMES) -> 'CoefficientEstimate':
        return cls(
            coefficients=np.array([fit.coefficient(name) for name in names]),
            variances=np.array([fit.variance(name) for name in names]),
            names=names,
        )

    @property
    def standard_errors(self) -> np.ndarray:
        return np.sqrt(self.variances)

    def as_vector(self) -> np.ndarray:
        """``[b1, b2, V(b1), V(b2)]``"""
        return np.concatenate([self.coefficients, self.variances])

    def as_series(self) -> pd.Series:
        return pd.Series(self.as_vector(), index=AnalysisConfig.RESULT_COLUMNS)


@dataclass(frozen=True)
class PooledEstimate(CoefficientEstimate):
    """Rubin-pooled estimate with its variance components."""
    within_variances: np.ndarray = field(default_factory=lambda: np.zeros(2))
    between_variances: np.ndarray = field(default_factory=lambda: np.zeros(2))
    n_imputations: int = 0

    @property
    def degrees_of_freedom(self) -> np.ndarray:
        """
        Large-sample degrees of freedom ``(M - 1) (1 + W / ((1 + 1/M) B))^2``.

        Infinite where the between-imputation variance is zero.
        """
        m = self.n_imputations
        inflated = (1.0 + 1.0 / m) * np.asarray(self.between_variances, dtype=float)
        within = np.asarray(self.within_variances, dtype=float)
        dof = np.full(inflated.shape, np.inf)
        positive = inflated > 0
        dof[positive] = (m - 1) * (1.0 + within[positive] / inflated[positive]) ** 2
        return dof

    @property
    def missing_information(self) -> np.ndarray:
        """Fraction of the total variance due to the imputation, ``(1 + 1/M) B / T``."""
        m = self.n_imputations
        inflated = (1.0 + 1.0 / m) * np.asarray(self.between_variances)
        return inflated / self.variances


def results_table(estimates: Dict[str, CoefficientEstimate]) -> pd.DataFrame:
    """
    Tabulate estimates by method.

    Args:
        estimates: Mapping of method label to estimate

    Returns:
        DataFrame with one row per method and columns b1, b2, V(b1), V(b2)
    """
    rows = {method: estimate.as_series() for method, estimate in estimates.items()}
    table = pd.DataFrame.from_dict(rows, orient='index', columns=AnalysisConfig.RESULT_COLUMNS)
    table.index.name = 'method'
    return table


def stack_vectors(estimates: Iterable[CoefficientEstimate]) -> np.ndarray:
    """Stack estimates into an ``(M, 4)`` array of ``[b1, b2, V(b1), V(b2)]`` rows."""
    return np.vstack([estimate.as_vector() for estimate in estimates])
