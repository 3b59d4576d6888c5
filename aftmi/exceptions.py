"""
Exception hierarchy for the censored-covariate imputation toolkit.

    AFTMIError (base)
    ├── ConfigurationError          unsupported or malformed settings
    ├── RootNotFoundError           inversion of a conditional distribution failed
    │   └── DegenerateDistributionError   zero / non-finite normalising mass
    ├── InsufficientReplicatesError fewer than two imputations to pool
    └── ModelFitError               a regression fit did not converge

Each class also derives from the closest builtin so callers catching
``ValueError`` or ``RuntimeError`` keep working.
"""

from typing import Any, Dict, Optional


class AFTMIError(Exception):
    """Base class for all errors raised by aftmi."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(AFTMIError, ValueError):
    """Unsupported censoring level or malformed configuration value."""


class RootNotFoundError(AFTMIError, RuntimeError):
    """No root of ``F(t) - u`` could be located inside the search bracket."""


class DegenerateDistributionError(RootNotFoundError):
    """The conditional distribution cannot be normalised (zero or non-finite mass)."""


class InsufficientReplicatesError(AFTMIError, ValueError):
    """Rubin's rules need at least two imputation replicates."""


class ModelFitError(AFTMIError, RuntimeError):
    """The underlying survival regression failed to fit."""
