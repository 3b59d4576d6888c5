import numpy as np
import pandas as pd
import pytest
from lifelines import LogNormalAFTFitter

from aftmi.analysis.monte_carlo import (
    analyze_simulation_results,
    analyze_single_dataset,
    create_simulation_summary_table,
    default_imputation_config,
    estimates_long_table,
    run_single_simulation,
    run_simulation_study,
)
from aftmi.analysis.pooling import run_imputations
from aftmi.config.settings import AnalysisConfig, ImputationConfig, SimulationConfig
from aftmi.data.generator import simulate_dataset


def test_default_imputation_config_matches_family():
    sim_config = SimulationConfig(outcome_family='weibull')
    config = default_imputation_config(sim_config, M=3)

    assert config.outcome_family == 'weibull'
    assert config.M == 3
    assert config.max_resamples == AnalysisConfig.SIMULATION_MAX_RESAMPLES


# Seeded end-to-end scenario: n = 200, 40% covariate censoring, lognormal outcome
SCENARIO = dict(n=200, censoring_level=0.4, outcome_family='lognormal', seed=2024)

# Every table entry must match its recomputation from first principles to this
# relative tolerance
REPRODUCTION_RTOL = 1e-6

# Allowed distance of the consistent estimators from the true (b1, b2)
TRUTH_TOLERANCE = {'CC': (0.35, 0.3), 'MI': (0.4, 0.3)}


def direct_lognormal_fit(frame, covariates):
    """[b1, b2, V(b1), V(b2)] from a plain lifelines fit."""
    data = frame[['Y', 'Delta'] + covariates].astype(float).reset_index(drop=True)
    data['Delta'] = data['Delta'].astype(int)
    fitter = LogNormalAFTFitter().fit(data, duration_col='Y', event_col='Delta')
    keys = [('mu_', 'X'), ('mu_', 'Z')]
    variances = np.diag(fitter.variance_matrix_.loc[keys, keys].to_numpy())
    return np.concatenate([fitter.params_.loc[keys].to_numpy(), variances])


def test_single_dataset_end_to_end():
    sim_config = SimulationConfig(**SCENARIO)

    df, table = analyze_single_dataset(sim_config)

    assert len(df) == 200
    assert list(table.index) == ['CC', 'MS', 'MI-ind', 'MI']
    assert list(table.columns) == ['b1', 'b2', 'V(b1)', 'V(b2)']
    assert np.all(np.isfinite(table.to_numpy()))
    assert np.all(table[['V(b1)', 'V(b2)']].to_numpy() > 0)

    data_seed, imputation_seed = np.random.SeedSequence(SCENARIO['seed']).spawn(2)
    pd.testing.assert_frame_equal(df, simulate_dataset(sim_config, np.random.default_rng(data_seed)))

    observed = df['V'] == 1
    substituted = df.copy()
    substituted.loc[~observed, 'X'] = df.loc[observed, 'X'].mean()
    indicated = df.copy()
    indicated.loc[~observed, 'X'] = 0.0
    indicated['R'] = (~observed).astype(int)

    replicates = run_imputations(df, default_imputation_config(sim_config), seed=imputation_seed)
    vectors = np.array([replicate.as_vector() for replicate in replicates])
    m = len(vectors)
    pooled = np.concatenate([
        vectors[:, :2].mean(axis=0),
        vectors[:, 2:].mean(axis=0) + (1 + 1 / m) * vectors[:, :2].var(axis=0, ddof=1),
    ])

    expected = {
        'CC': direct_lognormal_fit(df[observed], ['X', 'Z']),
        'MS': direct_lognormal_fit(substituted, ['X', 'Z']),
        'MI-ind': direct_lognormal_fit(indicated, ['X', 'Z', 'R']),
        'MI': pooled,
    }
    for method, vector in expected.items():
        np.testing.assert_allclose(table.loc[method].to_numpy(), vector, rtol=REPRODUCTION_RTOL,
                                   err_msg=method)

    for method, (tol_b1, tol_b2) in TRUTH_TOLERANCE.items():
        assert table.loc[method, 'b1'] == pytest.approx(0.7, abs=tol_b1)
        assert table.loc[method, 'b2'] == pytest.approx(1.0, abs=tol_b2)


def test_single_dataset_is_reproducible():
    sim_config = SimulationConfig(n=120, censoring_level=0.2, seed=8)
    imp_config = ImputationConfig(M=2, max_resamples=AnalysisConfig.SIMULATION_MAX_RESAMPLES)

    _, first = analyze_single_dataset(sim_config, imp_config)
    _, second = analyze_single_dataset(sim_config, imp_config)

    pd.testing.assert_frame_equal(first, second)


def test_failed_iteration_is_recorded_not_raised():
    sim_config = SimulationConfig(n=100, censoring_level=0.4)
    imp_config = ImputationConfig(M=2, root_bracket=(0.0, 1e-6))

    result = run_single_simulation((0, sim_config, imp_config, np.random.SeedSequence(1)))

    assert result['success'] is False
    assert result['error_type'] in ('RootNotFoundError', 'DegenerateDistributionError')


def test_small_study_summarises_every_method():
    sim_config = SimulationConfig(n=150, censoring_level=0.2, n_simulations=3, seed=17)
    imp_config = ImputationConfig(M=2, max_resamples=AnalysisConfig.SIMULATION_MAX_RESAMPLES)

    study = run_simulation_study(sim_config, imp_config, verbose=False)

    assert [r['iteration'] for r in study['raw_results']] == [0, 1, 2]
    analysis = study['analysis']
    assert analysis['n_total'] == 3
    assert analysis['n_successful'] >= 1
    assert set(analysis['method_summaries']) == {'CC', 'MS', 'MI-ind', 'MI'}

    summary = create_simulation_summary_table(study, verbose=False)
    assert len(summary) == 8
    assert {'bias', 'empirical_sd', 'mean_se', 'coverage', 'mse'} <= set(summary.columns)


def _fake_result(iteration, b1, success=True):
    if not success:
        return {'iteration': iteration, 'success': False,
                'error_type': 'RootNotFoundError', 'error': 'no root'}
    vector = [b1, 1.0, 0.01, 0.01]
    return {
        'iteration': iteration,
        'success': True,
        'estimates': {'CC': vector, 'MI': vector},
        'mi_dof': [10.0, 10.0],
    }


def test_analyze_results_reports_bias_and_failures():
    results = [
        _fake_result(0, 0.8),
        _fake_result(1, 0.9),
        _fake_result(2, 0.0, success=False),
    ]

    analysis = analyze_simulation_results(results, (0.7, 1.0), verbose=False)

    assert analysis['n_successful'] == 2
    assert analysis['success_rate'] == pytest.approx(2 / 3)
    assert analysis['failures'] == {'RootNotFoundError': 1}
    cc = analysis['method_summaries']['CC']
    assert cc['b1']['bias'] == pytest.approx(0.15)
    assert cc['b2']['bias'] == pytest.approx(0.0)
    assert cc['b1']['mse'] == pytest.approx((0.1 ** 2 + 0.2 ** 2) / 2)
    assert cc['b1']['coverage'] == pytest.approx(0.5)


def test_all_failures_yield_empty_analysis():
    analysis = analyze_simulation_results([_fake_result(0, 0.0, success=False)], (0.7, 1.0),
                                          verbose=False)
    assert analysis['success_rate'] == 0.0
    assert 'method_summaries' not in analysis


def test_long_table_skips_failed_iterations():
    table = estimates_long_table([_fake_result(0, 0.75), _fake_result(1, 0.0, success=False)])

    assert list(table.columns) == ['iteration', 'method', 'b1', 'b2', 'V(b1)', 'V(b2)']
    assert len(table) == 2
    assert set(table['method']) == {'CC', 'MI'}
