import numpy as np
import pandas as pd
import pytest
from scipy import stats

from aftmi.exceptions import ConfigurationError
from aftmi.models.families import FAMILIES, get_family, outcome_likelihood, sample_errors


def scipy_outcome_distribution(name, eta, sigma):
    """T = exp(eta + sigma * eps) as a frozen scipy distribution."""
    scale = np.exp(eta)
    if name == 'lognormal':
        return stats.lognorm(s=sigma, scale=scale)
    if name == 'weibull':
        return stats.weibull_min(c=1.0 / sigma, scale=scale)
    return stats.fisk(c=1.0 / sigma, scale=scale)


@pytest.mark.parametrize("name", sorted(FAMILIES))
def test_likelihood_matches_outcome_distribution(name):
    family = get_family(name)
    y, sigma = 1.5, 0.8
    eta = 0.1 + 0.6 * np.linspace(0.2, 2.0, 7) + 0.2

    density = outcome_likelihood(family, y, 1, eta, sigma)
    tail = outcome_likelihood(family, y, 0, eta, sigma)

    dist = scipy_outcome_distribution(name, eta, sigma)
    np.testing.assert_allclose(density, dist.pdf(y), rtol=1e-8)
    np.testing.assert_allclose(tail, dist.sf(y), rtol=1e-8)
    assert np.all(density > 0) and np.all((tail > 0) & (tail < 1))


def test_likelihood_is_flat_without_covariate_effect():
    family = get_family('lognormal')
    g = outcome_likelihood(family, 2.0, 1, np.full(4, 0.3), 0.5)
    assert np.all(g == g[0])


def test_extreme_value_likelihood_does_not_overflow():
    family = get_family('weibull')
    g = outcome_likelihood(family, 1e6, 1, np.array([-50.0, 0.0]), 0.1)
    assert np.all(np.isfinite(g))
    assert np.all(g >= 0)


@pytest.mark.parametrize("name, param, log_value, expected", [
    ('lognormal', 'sigma_', np.log(0.5), 0.5),
    ('weibull', 'rho_', np.log(2.0), 0.5),
    ('loglogistic', 'beta_', np.log(4.0), 0.25),
])
def test_scale_from_params(name, param, log_value, expected):
    params = pd.Series({(param, 'Intercept'): log_value})
    assert get_family(name).scale_from_params(params) == pytest.approx(expected)


def test_sample_errors_moments():
    rng = np.random.default_rng(0)
    assert np.mean(sample_errors('lognormal', 20000, rng)) == pytest.approx(0.0, abs=0.03)
    # minimum extreme value: mean -Euler's constant
    assert np.mean(sample_errors('weibull', 20000, rng)) == pytest.approx(-np.euler_gamma, abs=0.05)
    assert np.var(sample_errors('loglogistic', 20000, rng)) == pytest.approx(np.pi ** 2 / 3, rel=0.08)


def test_unknown_family_rejected():
    with pytest.raises(ConfigurationError):
        get_family('gamma')
