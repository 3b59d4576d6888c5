import numpy as np
import pandas as pd
import pytest

from aftmi.exceptions import ModelFitError
from aftmi.models.aft_models import AuxiliaryModelFit, fit_auxiliary_model, fit_outcome_model


@pytest.mark.parametrize("family", ["lognormal", "weibull", "loglogistic"])
def test_outcome_fit_exposes_location_coefficients(dataset, family):
    fit = fit_outcome_model(dataset, family=family, subset=dataset['V'] == 1)

    assert list(fit.coefficients.index) == ['Intercept', 'X', 'Z']
    assert fit.n_obs == int((dataset['V'] == 1).sum())
    assert fit.scale > 0

    cov = fit.covariance.to_numpy()
    np.testing.assert_allclose(cov, cov.T, rtol=1e-8)
    assert np.all(np.diag(cov) > 0)
    assert fit.variance('X') == cov[1, 1]


def test_lognormal_fit_close_to_truth(dataset):
    fit = fit_outcome_model(dataset, family='lognormal', subset=dataset['V'] == 1)

    assert fit.coefficient('X') == pytest.approx(0.7, abs=0.35)
    assert fit.coefficient('Z') == pytest.approx(1.0, abs=0.3)
    assert fit.scale == pytest.approx(0.5, abs=0.2)

    eta = fit.linear_predictor(np.array([0.0, 1.0]), 0.5)
    assert eta[1] - eta[0] == pytest.approx(fit.coefficient('X'))


def test_outcome_fit_with_too_few_rows_raises(dataset):
    with pytest.raises(ModelFitError):
        fit_outcome_model(dataset.iloc[:4])


def test_auxiliary_fit_uses_observed_levels(dataset):
    auxiliary = fit_auxiliary_model(dataset)

    observed = np.unique(dataset.loc[dataset['V'] == 1, 'X'])
    np.testing.assert_array_equal(auxiliary.event_times, observed)
    assert np.all(np.diff(auxiliary.cumulative_hazard) >= 0)
    # covariate hazard increases with Z in the simulated data
    assert auxiliary.coef > 0


def test_auxiliary_survival_matches_lifelines_prediction(dataset):
    auxiliary = fit_auxiliary_model(dataset)
    t = auxiliary.event_times[len(auxiliary.event_times) // 2]
    z = 0.7

    expected = auxiliary.model.predict_survival_function(pd.DataFrame({'Z': [z]}), times=[t])
    assert float(auxiliary.survival(t, z)) == pytest.approx(float(expected.iloc[0, 0]), rel=1e-6)


def test_auxiliary_survival_is_closed_at_last_level(toy_auxiliary):
    assert float(toy_auxiliary.survival(0.05, 1.0)) == 1.0
    assert float(toy_auxiliary.survival(toy_auxiliary.max_event_time, 0.0)) == 0.0
    assert float(toy_auxiliary.survival(10.0, -2.0)) == 0.0

    # H0 is a right-continuous step function
    assert float(toy_auxiliary.baseline_cumulative_hazard(0.15)) == pytest.approx(0.1)
    assert float(toy_auxiliary.survival(0.2, 0.0)) == pytest.approx(np.exp(-0.2))


def test_auxiliary_fit_rejects_decreasing_hazard():
    with pytest.raises(ValueError):
        AuxiliaryModelFit(coef=0.0, event_times=np.array([1.0, 2.0]),
                          cumulative_hazard=np.array([0.5, 0.2]))


def test_auxiliary_fit_needs_observed_covariates(dataset):
    df = dataset.copy()
    df['V'] = 0
    with pytest.raises(ModelFitError):
        fit_auxiliary_model(df)
