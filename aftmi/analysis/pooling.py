"""
Pooling of imputation replicates with Rubin's rules.

The M replicates are independent given their random streams, so they are
fanned out over a process pool when ``n_workers > 1``. Each replicate owns
one child of the caller's ``SeedSequence``; results are identical whether
they run sequentially or in parallel.
"""

import warnings
from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..config.settings import ImputationConfig
from ..exceptions import InsufficientReplicatesError, RootNotFoundError
from .imputation import impute_once
from .results import CoefficientEstimate, PooledEstimate, stack_vectors


def pool_estimates(results: Sequence[CoefficientEstimate]) -> PooledEstimate:
    """
    Combine imputation replicates.

    Pooled coefficient = mean of the M estimates; pooled variance =
    mean within-replicate variance + (1 + 1/M) * sample variance of the estimates.

    Args:
        results: M replicate results

    Returns:
        PooledEstimate

    Raises:
        InsufficientReplicatesError: If fewer than two replicates are given
    """
    m = len(results)
    if m < 2:
        raise InsufficientReplicatesError(
            "Rubin's rules need at least two imputation replicates", {'M': m}
        )

    names = results[0].names
    vectors = stack_vectors(results)
    estimates = vectors[:, :2]
    within = vectors[:, 2:].mean(axis=0)
    between = estimates.var(axis=0, ddof=1)

    return PooledEstimate(
        coefficients=estimates.mean(axis=0),
        variances=within + (1.0 + 1.0 / m) * between,
        names=names,
        within_variances=within,
        between_variances=between,
        n_imputations=m,
    )


def _run_replicate(args: Tuple[int, pd.DataFrame, ImputationConfig, np.random.SeedSequence]) -> Tuple[int, CoefficientEstimate, int]:
    """
    Run one replicate, retrying with a fresh bootstrap after a RootNotFoundError.

    Attempt ``k`` draws from the ``k``-th child of the replicate's seed, so the
    retries are reproducible as well.
    A retried replicate is conditioned on a bootstrap sample in which every
    censored unit has a candidate level above its bound.
    """
    replicate_idx, df, config, seed_seq = args
    attempt_seeds = seed_seq.spawn(config.max_resamples + 1)

    for attempt, attempt_seed in enumerate(attempt_seeds):
        rng = np.random.default_rng(attempt_seed)
        try:
            return replicate_idx, impute_once(df, config, rng), attempt
        except RootNotFoundError:
            if attempt == config.max_resamples:
                raise


def run_imputations(df: pd.DataFrame,
                    config: ImputationConfig,
                    seed: Union[int, np.random.SeedSequence, None] = None,
                    n_workers: Optional[int] = None) -> List[CoefficientEstimate]:
    """
    Run the imputation engine ``config.M`` times.

    Args:
        df: Dataset with censored covariates
        config: Imputation settings
        seed: Integer seed or SeedSequence; split into one child per replicate
        n_workers: Number of worker processes (None or 1 runs sequentially);
            defaults to ``config.n_workers``

    Returns:
        Replicate results in replicate order
    """
    seed_seq = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    children = seed_seq.spawn(config.M)
    args_list = [(i, df, config, child) for i, child in enumerate(children)]

    n_workers = n_workers if n_workers is not None else config.n_workers

    if n_workers is None or n_workers == 1:
        outputs = [_run_replicate(args) for args in args_list]
    else:
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            outputs = list(executor.map(_run_replicate, args_list))

    outputs.sort(key=lambda item: item[0])

    n_retried = sum(1 for _, _, attempts in outputs if attempts > 0)
    if n_retried:
        warnings.warn(f"{n_retried}/{config.M} imputation replicates needed a fresh bootstrap sample")

    return [result for _, result, _ in outputs]


def multiple_imputation(df: pd.DataFrame,
                        config: Optional[ImputationConfig] = None,
                        seed: Union[int, np.random.SeedSequence, None] = None,
                        n_workers: Optional[int] = None) -> PooledEstimate:
    """Run M imputation replicates and pool them with Rubin's rules."""
    config = config or ImputationConfig()
    return pool_estimates(run_imputations(df, config, seed=seed, n_workers=n_workers))
