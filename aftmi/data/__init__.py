"""
Data module: dataset schema, bootstrap resampling and synthetic data generation.
"""

from .dataset import (
    Observation,
    REQUIRED_COLUMNS,
    validate_dataset,
    complete_cases,
    candidate_levels,
    iter_incomplete_observations,
    bootstrap_resample,
    censoring_summary,
)
from .generator import simulate_dataset, weibull_ph_times

__all__ = [
    'Observation',
    'REQUIRED_COLUMNS',
    'validate_dataset',
    'complete_cases',
    'candidate_levels',
    'iter_incomplete_observations',
    'bootstrap_resample',
    'censoring_summary',
    'simulate_dataset',
    'weibull_ph_times',
]
