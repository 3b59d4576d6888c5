"""
Models module: lifelines-backed fitting adapter and AFT error families.
"""

from .families import AFTFamily, FAMILIES, get_family, sample_errors, outcome_likelihood
from .aft_models import (
    OutcomeModelFit,
    AuxiliaryModelFit,
    fit_outcome_model,
    fit_auxiliary_model,
    display_model_summary,
)

__all__ = [
    # Families
    'AFTFamily',
    'FAMILIES',
    'get_family',
    'sample_errors',
    'outcome_likelihood',

    # Fitting adapter
    'OutcomeModelFit',
    'AuxiliaryModelFit',
    'fit_outcome_model',
    'fit_auxiliary_model',
    'display_model_summary',
]
