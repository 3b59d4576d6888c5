"""
Conditional distribution of a censored covariate.

For a unit whose covariate is only known to exceed its bound ``c``, the
imputation draws from

    P(X > t | Y = y, Delta = delta, Z = z, X > c)
        = N(t) / N(c),    N(t) = integral_t^inf g(x) dF_X(x | z)

where ``g`` is the outcome likelihood of (y, delta) at covariate value x
(event density or survival tail) and ``F_X`` comes from the Cox model of X
given Z. The Breslow curve is a step function on the fully observed
covariate values, so the integral is a finite sum over its jumps:

    N(t_i) = sum_{j > i} g(t_j) (S(t_{j-1}) - S(t_j))

Summing by parts gives the same value as

    N(t_i) = g(t_i) S(t_i) + sum_{j >= i} (g(t_{j+1}) - g(t_j)) S(t_j)

with ``S = 0`` at the last knot. The jump form is used because every term
is non-negative.
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from ..data.dataset import Observation
from ..exceptions import DegenerateDistributionError
from ..models.aft_models import AuxiliaryModelFit, OutcomeModelFit
from ..models.families import outcome_likelihood

MASS_TOLERANCE = np.finfo(float).tiny


@dataclass(frozen=True)
class ConditionalSurvival:
    """
    Piecewise-linear conditional survival function of a censored covariate.

    ``knots[0]`` is the censoring bound (value 1) and ``knots[-1]`` the largest
    candidate level (value 0); the function is constant outside the knots.
    ``mass`` is the unnormalised mass above the bound, ``N(x_bound)``.
    """
    knots: np.ndarray
    values: np.ndarray
    mass: float = 1.0

    @property
    def x_bound(self) -> float:
        return float(self.knots[0])

    @property
    def upper(self) -> float:
        return float(self.knots[-1])

    def __call__(self, t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return np.interp(t, self.knots, self.values, left=1.0, right=0.0)


def build_conditional_survival(observation: Observation,
                               auxiliary: AuxiliaryModelFit,
                               outcome: OutcomeModelFit,
                               levels: Optional[np.ndarray] = None) -> ConditionalSurvival:
    """
    Build the conditional survival function of one censored covariate.

    Args:
        observation: The incomplete unit (bound, outcome, Z, event status)
        auxiliary: Cox model of X given Z
        outcome: AFT model of the outcome given X and Z
        levels: Candidate covariate levels; defaults to the auxiliary event times

    Returns:
        ConditionalSurvival on ``[x_bound, max(levels)]``

    Raises:
        DegenerateDistributionError: If the mass above the bound is zero or not finite
    """
    if levels is None:
        levels = auxiliary.event_times
    levels = np.asarray(levels, dtype=float)
    x_bound = float(observation.x_bound)

    above = levels[levels > x_bound]
    if len(above) == 0:
        raise DegenerateDistributionError(
            "No candidate covariate level above the censoring bound",
            {'x_bound': x_bound, 'max_level': float(levels.max()) if len(levels) else None},
        )
    knots = np.concatenate(([x_bound], above))

    # Outcome likelihood at each candidate level
    eta = outcome.linear_predictor(knots, observation.z)
    lik = outcome_likelihood(
        outcome.family, observation.y, observation.delta, eta, outcome.scale,
    )

    # Probability of each candidate level under the Cox model; the bound sits
    # on the flat step before the first level above it
    surv = auxiliary.survival(knots, observation.z)
    jumps = np.maximum(surv[:-1] - surv[1:], 0.0)

    weighted = lik[1:] * jumps
    mass = np.append(np.cumsum(weighted[::-1])[::-1], 0.0)

    divisor = mass[0]
    if not np.all(np.isfinite(mass)) or divisor < MASS_TOLERANCE:
        raise DegenerateDistributionError(
            "Conditional mass above the censoring bound is zero or not finite",
            {'x_bound': x_bound, 'y': observation.y, 'delta': observation.delta,
             'divisor': float(divisor)},
        )

    values = np.clip(mass / divisor, 0.0, 1.0)
    values[0] = 1.0

    return ConditionalSurvival(knots=knots, values=values, mass=float(divisor))
