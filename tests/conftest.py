import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from aftmi.config.settings import SimulationConfig
from aftmi.data.generator import simulate_dataset
from aftmi.models.aft_models import AuxiliaryModelFit, OutcomeModelFit
from aftmi.models.families import get_family


@pytest.fixture
def sim_config():
    return SimulationConfig(n=200, censoring_level=0.4, outcome_family="lognormal", seed=2024)


@pytest.fixture
def dataset(sim_config):
    return simulate_dataset(sim_config, np.random.default_rng(2024))


@pytest.fixture
def trimmed_dataset(dataset):
    """
    Simulated data without censored units near the top of the X range.

    Every censored bound sits below the ten largest observed X, so any bootstrap
    sample almost surely keeps observed levels above each bound. Tests of the
    untouched data use ``dataset``.
    """
    observed = np.sort(dataset.loc[dataset["V"] == 1, "X"].to_numpy())
    threshold = observed[-10]
    keep = (dataset["V"] == 1) | (dataset["X"] < threshold)
    return dataset[keep]


@pytest.fixture
def toy_auxiliary():
    # Exponential covariate: H0(t) = t on a grid of 30 event times
    times = np.round(np.linspace(0.1, 3.0, 30), 10)
    return AuxiliaryModelFit(coef=0.5, event_times=times, cumulative_hazard=times.copy())


def make_outcome(slope=0.7, family="lognormal", scale=0.5):
    names = ["Intercept", "X", "Z"]
    return OutcomeModelFit(
        family=get_family(family),
        coefficients=pd.Series([0.0, slope, 1.0], index=names),
        scale=scale,
        covariance=pd.DataFrame(np.eye(3) * 0.01, index=names, columns=names),
        n_obs=100,
    )


@pytest.fixture
def toy_outcome():
    return make_outcome()
