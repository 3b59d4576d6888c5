"""
Analysis module: conditional distribution, imputation engine, pooling,
estimators and the Monte Carlo driver.
"""

from .results import CoefficientEstimate, PooledEstimate, results_table
from .conditional import ConditionalSurvival, build_conditional_survival
from .imputation import (
    IMPUTED_COLUMN,
    resolve_bracket,
    invert_conditional,
    draw_from_candidates,
    impute_covariates,
    impute_once,
)
from .pooling import pool_estimates, run_imputations, multiple_imputation
from .estimators import (
    substitute_mean,
    add_missing_indicator,
    complete_case_estimate,
    mean_substitution_estimate,
    missing_indicator_estimate,
    multiple_imputation_estimate,
    estimate_all,
)
from .monte_carlo import (
    default_imputation_config,
    analyze_single_dataset,
    run_single_simulation,
    run_simulation_study,
    estimates_long_table,
    analyze_simulation_results,
    create_simulation_summary_table,
)

__all__ = [
    # Results
    'CoefficientEstimate',
    'PooledEstimate',
    'results_table',

    # Conditional distribution
    'ConditionalSurvival',
    'build_conditional_survival',

    # Imputation engine
    'IMPUTED_COLUMN',
    'resolve_bracket',
    'invert_conditional',
    'draw_from_candidates',
    'impute_covariates',
    'impute_once',

    # Pooling
    'pool_estimates',
    'run_imputations',
    'multiple_imputation',

    # Estimators
    'substitute_mean',
    'add_missing_indicator',
    'complete_case_estimate',
    'mean_substitution_estimate',
    'missing_indicator_estimate',
    'multiple_imputation_estimate',
    'estimate_all',

    # Simulation driver
    'default_imputation_config',
    'analyze_single_dataset',
    'run_single_simulation',
    'run_simulation_study',
    'estimates_long_table',
    'analyze_simulation_results',
    'create_simulation_summary_table',
]
