"""
aftmi
=====

Monte Carlo comparison of estimators for Accelerated Failure Time regression
when a covariate is randomly censored and the outcome is right-censored.

Structure:
- data/: dataset schema, bootstrap resampling, synthetic data generation
- models/: lifelines fitting adapter (AFT outcome model, Cox covariate model)
- analysis/: conditional distribution, imputation, pooling, estimators, driver
- utils/: summary statistics and plots
- config/: paths, constants and run settings

Estimators compared:
1. Complete-case analysis
2. Mean substitution
3. Missing-indicator adjustment
4. Multiple imputation from the conditional distribution of the covariate
"""

__version__ = "1.0.0"
