"""
Configuration module: paths, constants and validated run settings.
"""

from .settings import (
    AnalysisConfig,
    ImputationConfig,
    SimulationConfig,
    CENSORING_RATES,
    SUPPORTED_FAMILIES,
    IMPUTATION_METHODS,
)

__all__ = [
    'AnalysisConfig',
    'ImputationConfig',
    'SimulationConfig',
    'CENSORING_RATES',
    'SUPPORTED_FAMILIES',
    'IMPUTATION_METHODS',
]
