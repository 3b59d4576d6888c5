"""
Dataset representation, validation and bootstrap resampling.

A dataset is a DataFrame with one row per unit and the columns

    Y      observed event or censoring time (> 0)
    Delta  1 if the event was observed, 0 if Y is censored
    X      covariate value, or its censoring bound when V == 0
    V      1 if X is fully observed, 0 if the true covariate exceeds X
    Z      fully observed covariate
"""

from dataclasses import dataclass
from typing import Iterator

import numpy as np
import pandas as pd

REQUIRED_COLUMNS = ['Y', 'Delta', 'X', 'V', 'Z']


@dataclass(frozen=True)
class Observation:
    """A single unit whose covariate is known only to exceed ``x_bound``."""
    x_bound: float
    y: float
    z: float
    delta: int


def validate_dataset(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check the column schema and value ranges of a dataset.

    Args:
        df: Candidate dataset

    Returns:
        The same DataFrame, for chaining

    Raises:
        ValueError: If columns are missing or values are out of range
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Dataset is missing required columns: {missing}")

    if len(df) == 0:
        raise ValueError("Dataset is empty")

    values = df[REQUIRED_COLUMNS]
    if values.isnull().any().any():
        raise ValueError("Dataset contains missing values")

    if (df['Y'] <= 0).any():
        raise ValueError("Observed times Y must be positive")
    if (df['X'] <= 0).any():
        raise ValueError("Covariate values X must be positive")

    for indicator in ('Delta', 'V'):
        if not df[indicator].isin([0, 1]).all():
            raise ValueError(f"{indicator} must be a 0/1 indicator")

    return df


def complete_cases(df: pd.DataFrame) -> pd.DataFrame:
    """Units with a fully observed covariate."""
    return df[df['V'] == 1]


def candidate_levels(df: pd.DataFrame) -> np.ndarray:
    """Sorted distinct fully observed covariate values."""
    return np.unique(complete_cases(df)['X'].to_numpy(dtype=float))


def iter_incomplete_observations(df: pd.DataFrame) -> Iterator[tuple]:
    """
    Yield ``(row_label, Observation)`` for every unit with a censored covariate.
    """
    incomplete = df[df['V'] == 0]
    for label, row in zip(incomplete.index, incomplete.itertuples(index=False)):
        yield label, Observation(
            x_bound=float(row.X),
            y=float(row.Y),
            z=float(row.Z),
            delta=int(row.Delta),
        )


def bootstrap_resample(df: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
    """
    Draw a bootstrap sample of the same size, with replacement.

    Rows are selected independently and uniformly; the result gets a fresh
    RangeIndex so duplicated units stay distinct.

    Args:
        df: Dataset to resample
        rng: Random generator supplying the draw

    Returns:
        Resampled DataFrame
    """
    boot_indices = rng.integers(0, len(df), size=len(df))
    return df.iloc[boot_indices].reset_index(drop=True)


def censoring_summary(df: pd.DataFrame) -> dict:
    """Proportions of censored covariates and censored outcomes."""
    return {
        'n': int(len(df)),
        'covariate_censored': float(1.0 - df['V'].mean()),
        'outcome_censored': float(1.0 - df['Delta'].mean()),
    }
