"""
Monte Carlo simulation driver.

Each simulation replicate generates one dataset, runs the four estimators and
records their estimates. Replicates can be distributed over a process pool;
every replicate draws from its own child of the study's SeedSequence, so the
output does not depend on the number of workers.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..config.settings import AnalysisConfig, ImputationConfig, SimulationConfig
from ..data.dataset import censoring_summary
from ..data.generator import simulate_dataset
from ..exceptions import AFTMIError
from ..utils.statistics import summarize_estimates
from .estimators import estimate_all
from .results import PooledEstimate, results_table


def default_imputation_config(sim_config: SimulationConfig, M: int = AnalysisConfig.DEFAULT_M,
                              method: str = 'predictive_density') -> ImputationConfig:
    """Imputation settings matched to the data-generating family."""
    return ImputationConfig(
        M=M,
        outcome_family=sim_config.outcome_family,
        method=method,
        max_resamples=AnalysisConfig.SIMULATION_MAX_RESAMPLES,
    )


def analyze_single_dataset(sim_config: SimulationConfig,
                           imp_config: Optional[ImputationConfig] = None,
                           seed: Optional[np.random.SeedSequence] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Generate one dataset and tabulate the four estimators on it.

    Args:
        sim_config: Data-generating settings
        imp_config: Imputation settings
        seed: SeedSequence for the run; defaults to ``SeedSequence(sim_config.seed)``

    Returns:
        Tuple of (dataset, results table with rows CC, MS, MI-ind, MI)
    """
    imp_config = imp_config or default_imputation_config(sim_config)
    seed = seed if seed is not None else np.random.SeedSequence(sim_config.seed)
    data_seed, imputation_seed = seed.spawn(2)

    df = simulate_dataset(sim_config, np.random.default_rng(data_seed))
    estimates = estimate_all(df, imp_config, seed=imputation_seed)
    return df, results_table(estimates)


def run_single_simulation(args: Tuple) -> Dict[str, Any]:
    """
    Run a single Monte Carlo iteration.

    Args:
        args: Tuple containing (iteration_idx, sim_config, imp_config, seed_seq)

    Returns:
        Dictionary with iteration results
    """
    iteration_idx, sim_config, imp_config, seed_seq = args

    try:
        data_seed, imputation_seed = seed_seq.spawn(2)
        df = simulate_dataset(sim_config, np.random.default_rng(data_seed))
        estimates = estimate_all(df, imp_config, seed=imputation_seed)
    except AFTMIError as e:
        return {
            'iteration': iteration_idx,
            'success': False,
            'error_type': type(e).__name__,
            'error': str(e),
        }

    mi = estimates['MI']
    return {
        'iteration': iteration_idx,
        'success': True,
        'censoring': censoring_summary(df),
        'estimates': {method: est.as_vector().tolist() for method, est in estimates.items()},
        'mi_dof': mi.degrees_of_freedom.tolist() if isinstance(mi, PooledEstimate) else None,
    }


def run_simulation_study(sim_config: SimulationConfig,
                         imp_config: Optional[ImputationConfig] = None,
                         n_workers: Optional[int] = None,
                         verbose: bool = True) -> Dict[str, Any]:
    """
    Run the full simulation study.

    Args:
        sim_config: Data-generating settings, including n_simulations and seed
        imp_config: Imputation settings (defaults matched to sim_config)
        n_workers: Number of parallel workers (None for single-process)
        verbose: Whether to print progress

    Returns:
        Dictionary with parameters, raw per-iteration results and analysis
    """
    imp_config = imp_config or default_imputation_config(sim_config)
    n_simulations = sim_config.n_simulations

    if verbose:
        print(f"🎲 Running censored-covariate simulation study...")
        print(f"  Simulations: {n_simulations}")
        print(f"  Sample size: {sim_config.n}, covariate censoring: {100 * sim_config.censoring_level:.0f}%")
        print(f"  Outcome family: {sim_config.outcome_family} (fitted: {imp_config.outcome_family})")
        print(f"  Imputations: M={imp_config.M}, method={imp_config.method}")

    children = np.random.SeedSequence(sim_config.seed).spawn(n_simulations)
    args_list = [(i, sim_config, imp_config, child) for i, child in enumerate(children)]

    sim_results = []

    if n_workers is None or n_workers == 1:
        if verbose:
            print("🔄 Running simulations (single-process)...")

        for i, args in enumerate(args_list):
            sim_results.append(run_single_simulation(args))
            if verbose and (i + 1) % max(1, n_simulations // 10) == 0:
                print(f"  Progress: {i + 1}/{n_simulations} ({100 * (i + 1) / n_simulations:.1f}%)")

    else:
        if verbose:
            print(f"🔄 Running simulations (parallel with {n_workers} workers)...")

        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(run_single_simulation, args) for args in args_list]

            completed = 0
            for future in as_completed(futures):
                sim_results.append(future.result())
                completed += 1
                if verbose and completed % max(1, n_simulations // 10) == 0:
                    print(f"  Progress: {completed}/{n_simulations} ({100 * completed / n_simulations:.1f}%)")

    sim_results.sort(key=lambda r: r['iteration'])

    if verbose:
        print("📊 Analyzing simulation results...")

    analysis = analyze_simulation_results(sim_results, sim_config.true_coefficients, verbose=verbose)

    return {
        'parameters': {
            'n_simulations': n_simulations,
            'n': sim_config.n,
            'censoring_level': sim_config.censoring_level,
            'outcome_family': sim_config.outcome_family,
            'fitted_family': imp_config.outcome_family,
            'M': imp_config.M,
            'method': imp_config.method,
            'seed': sim_config.seed,
            'true_coefficients': sim_config.true_coefficients,
        },
        'raw_results': sim_results,
        'analysis': analysis,
    }


def estimates_long_table(sim_results: List[Dict[str, Any]]) -> pd.DataFrame:
    """One row per (iteration, method) with columns b1, b2, V(b1), V(b2)."""
    rows = []
    for result in sim_results:
        if not result['success']:
            continue
        for method, vector in result['estimates'].items():
            row = {'iteration': result['iteration'], 'method': method}
            row.update(dict(zip(AnalysisConfig.RESULT_COLUMNS, vector)))
            rows.append(row)
    return pd.DataFrame(rows, columns=['iteration', 'method'] + AnalysisConfig.RESULT_COLUMNS)


def analyze_simulation_results(sim_results: List[Dict[str, Any]],
                               true_values: Tuple[float, float],
                               alpha: float = AnalysisConfig.ALPHA,
                               verbose: bool = True) -> Dict[str, Any]:
    """
    Summarise bias, variability and coverage per method and coefficient.

    Args:
        sim_results: Per-iteration results from run_single_simulation
        true_values: True (b1, b2)
        alpha: 1 - nominal coverage
        verbose: Whether to print the analysis

    Returns:
        Dictionary with success counts, failure reasons and method summaries
    """
    successful = [r for r in sim_results if r['success']]
    n_successful = len(successful)
    n_total = len(sim_results)

    failures: Dict[str, int] = {}
    for r in sim_results:
        if not r['success']:
            failures[r['error_type']] = failures.get(r['error_type'], 0) + 1

    if verbose:
        print(f"✅ Simulation Analysis:")
        print(f"  Successful iterations: {n_successful}/{n_total} ({100 * n_successful / max(n_total, 1):.1f}%)")
        for error_type, count in failures.items():
            print(f"  ⚠️ {error_type}: {count}")

    if n_successful == 0:
        if verbose:
            print("❌ No successful iterations to analyze")
        return {'success_rate': 0.0, 'n_successful': 0, 'n_total': n_total,
                'failures': failures, 'error': 'No successful iterations'}

    long_table = estimates_long_table(successful)
    mi_dof = np.array([r['mi_dof'] for r in successful if r['mi_dof'] is not None])

    method_summaries = {}
    for method in AnalysisConfig.METHOD_LABELS:
        subset = long_table[long_table['method'] == method]
        if subset.empty:
            continue

        method_summary = {}
        for k, (coef_col, var_col) in enumerate([('b1', 'V(b1)'), ('b2', 'V(b2)')]):
            dof = mi_dof[:, k] if method == 'MI' and len(mi_dof) == len(subset) else None
            method_summary[coef_col] = summarize_estimates(
                subset[coef_col].to_numpy(), subset[var_col].to_numpy(), true_values[k],
                alpha=alpha, dof=dof,
            )
        method_summaries[method] = method_summary

        if verbose:
            print(f"\n  📊 {AnalysisConfig.METHOD_LABELS[method]} ({method}):")
            for coef_col, summary in method_summary.items():
                print(f"    {coef_col}: mean {summary['mean']:.4f}, bias {summary['bias']:+.4f}, "
                      f"SD {summary['empirical_sd']:.4f}, SE {summary['mean_se']:.4f}, "
                      f"coverage {100 * summary['coverage']:.1f}%")

    return {
        'success_rate': n_successful / n_total,
        'n_successful': n_successful,
        'n_total': n_total,
        'failures': failures,
        'method_summaries': method_summaries,
    }


def create_simulation_summary_table(study_results: Dict[str, Any],
                                    verbose: bool = True) -> pd.DataFrame:
    """
    Create a summary table of the simulation study.

    Args:
        study_results: Results from run_simulation_study()
        verbose: Whether to print the summary table

    Returns:
        DataFrame with one row per (method, coefficient)
    """
    method_summaries = study_results['analysis'].get('method_summaries', {})

    summary_data = []
    for method, coefficients in method_summaries.items():
        for coef_col, summary in coefficients.items():
            row = {'method': method, 'coefficient': coef_col}
            row.update(summary)
            summary_data.append(row)

    summary_df = pd.DataFrame(summary_data)

    if verbose and not summary_df.empty:
        parameters = study_results['parameters']
        print("📋 Simulation Summary:")
        print("=" * 80)
        print(summary_df.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
        print(f"\n📊 Study settings:")
        print(f"  n={parameters['n']}, censoring={parameters['censoring_level']}, "
              f"family={parameters['outcome_family']}, M={parameters['M']}")
        print(f"  True coefficients: b1={parameters['true_coefficients'][0]}, "
              f"b2={parameters['true_coefficients'][1]}")
        print(f"  Success rate: {100 * study_results['analysis']['success_rate']:.1f}%")

    return summary_df
