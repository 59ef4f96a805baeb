"""
Error Handling and Validation Utilities for the Samplers

This module provides validation functions and diagnostic tools for MCMC sampling.
Validation failures are the only fatal errors in the package: they raise a
single ValueError listing every problem found, before any sampling begins.
Numerical degeneracies met during sampling (out-of-support proposals, empty
mixture components) are handled in-line by the samplers and never raise.
"""

from typing import Any, Dict

import numpy as np

import logging
logger = logging.getLogger('mcpost')


def _raise_if_errors(errors, context):
    if errors:
        raise ValueError(f"{context}:\n  " + "\n  ".join(errors))


def _is_int(value):
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def validate_chain_length(num_iterations) -> None:
    """Chain length N must be a positive integer."""
    errors = []
    if not _is_int(num_iterations):
        errors.append(f"num_iterations must be an integer, got {type(num_iterations).__name__}")
    elif num_iterations < 1:
        errors.append(f"num_iterations must be >= 1, got {num_iterations}")
    _raise_if_errors(errors, "Invalid chain length")


def validate_mixture_inputs(observations, num_components, num_iterations) -> None:
    """
    Validates inputs to the mixture Gibbs sampler.

    Args:
        observations: Observed sample (n,)
        num_components: Number of mixture components k
        num_iterations: Chain length N

    Raises:
        ValueError: If any input is invalid
    """
    errors = []
    x = np.asarray(observations, dtype=float)

    if x.ndim != 1:
        errors.append(f"observations must be one-dimensional, got shape {x.shape}")
    elif x.size == 0:
        errors.append("observations must not be empty")
    elif not np.all(np.isfinite(x)):
        errors.append("observations contain NaN or Inf values")

    if not _is_int(num_components) or num_components < 1:
        errors.append(f"num_components must be an integer >= 1, got {num_components}")

    if not _is_int(num_iterations) or num_iterations < 1:
        errors.append(f"num_iterations must be an integer >= 1, got {num_iterations}")

    _raise_if_errors(errors, "Invalid mixture sampler input")


def validate_hybrid_inputs(successes, trials, num_iterations, prior_shape, prior_rate, walk_scale) -> None:
    """
    Validates inputs to the hybrid Beta-Binomial Gibbs sampler.

    Raises:
        ValueError: If any input is invalid
    """
    errors = []
    x = np.asarray(successes)
    n = np.asarray(trials)

    if x.ndim != 1 or x.size == 0:
        errors.append(f"successes must be a non-empty 1-D array, got shape {x.shape}")
    if x.shape != n.shape:
        errors.append(f"successes and trials must have the same shape, got {x.shape} and {n.shape}")
    elif x.size > 0:
        if np.any(x < 0):
            errors.append("successes must be >= 0")
        if np.any(n < 1):
            errors.append("trials must be >= 1")
        if np.any(x > n):
            errors.append("successes cannot exceed trials")

    if not _is_int(num_iterations) or num_iterations < 1:
        errors.append(f"num_iterations must be an integer >= 1, got {num_iterations}")
    if prior_shape <= 0:
        errors.append(f"prior_shape must be > 0, got {prior_shape}")
    if prior_rate <= 0:
        errors.append(f"prior_rate must be > 0, got {prior_rate}")
    if walk_scale <= 0:
        errors.append(f"walk_scale must be > 0, got {walk_scale}")

    _raise_if_errors(errors, "Invalid hybrid sampler input")


def validate_credible_level(level) -> None:
    """Credible level 1 - alpha must lie strictly inside (0, 1)."""
    if not 0.0 < level < 1.0:
        raise ValueError(f"Credible level must be in (0, 1), got {level}")


def validate_mcmc_config(mcmc_config: Dict[str, Any]) -> None:
    """
    Validates that MCMC configuration is sensible.

    Args:
        mcmc_config: Configuration dictionary (after clean_config)

    Raises:
        ValueError: If configuration is invalid
    """
    # Deferred: mcmc.config imports this module
    from .mcmc.config import SamplerType

    errors = []

    required_keys = ['sampler', 'num_iterations', 'rng_seed']
    for key in required_keys:
        if key not in mcmc_config:
            errors.append(f"Missing required config key: '{key}'")

    if 'sampler' in mcmc_config:
        try:
            SamplerType.from_config(mcmc_config['sampler'])
        except ValueError as e:
            errors.append(str(e))

    if 'num_iterations' in mcmc_config:
        n_iter = mcmc_config['num_iterations']
        if not _is_int(n_iter) or n_iter < 1:
            errors.append(f"num_iterations must be an integer >= 1, got {n_iter}")

    if 'burn_iter' in mcmc_config:
        if mcmc_config['burn_iter'] < 0:
            errors.append("burn_iter must be >= 0")
        elif 'num_iterations' in mcmc_config and _is_int(mcmc_config['num_iterations']):
            if mcmc_config['burn_iter'] >= mcmc_config['num_iterations']:
                errors.append(
                    f"burn_iter ({mcmc_config['burn_iter']}) must be smaller than "
                    f"num_iterations ({mcmc_config['num_iterations']})"
                )

    if 'thin_iteration' in mcmc_config:
        if mcmc_config['thin_iteration'] < 1:
            errors.append("thin_iteration must be >= 1")

    if 'num_components' in mcmc_config:
        k = mcmc_config['num_components']
        if not _is_int(k) or k < 1:
            errors.append(f"num_components must be an integer >= 1, got {k}")

    for key in ('walk_scale', 'prior_shape', 'prior_rate'):
        if key in mcmc_config and mcmc_config[key] <= 0:
            errors.append(f"{key} must be > 0, got {mcmc_config[key]}")

    _raise_if_errors(errors, "Invalid MCMC configuration")


def diagnose_sampler_issues(chain, diagnostics: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Analyzes a finished chain to identify common issues.

    Args:
        chain: Chain returned by any sampler
        diagnostics: Existing diagnostics dict to extend

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = (diagnostics or {}) | {
        'issues': [],
        'warnings': [],
        'info': []
    }

    for name, values in chain.draws.items():
        if not np.issubdtype(values.dtype, np.floating):
            continue
        if not np.all(np.isfinite(values)):
            diagnostics['issues'].append(
                f"'{name}' contains NaN or Inf values - sampler became unstable"
            )
        flat = values.reshape(values.shape[0], -1)
        stuck = int(np.sum(np.var(flat, axis=0) < 1e-12)) if flat.shape[0] > 1 else 0
        if stuck > 0:
            diagnostics['warnings'].append(
                f"'{name}': {stuck} column(s) appear stuck (near-zero variance)"
            )

    if chain.accepted:
        for name, flags in chain.accepted.items():
            rate = float(np.nanmean(flags))
            if rate < 0.05:
                diagnostics['warnings'].append(
                    f"'{name}' acceptance rate {rate:.3f} is very low - proposal may be poorly scaled"
                )
            elif rate > 0.95:
                diagnostics['warnings'].append(
                    f"'{name}' acceptance rate {rate:.3f} is very high - random walk steps may be too small"
                )
            diagnostics['info'].append(f"Acceptance rate '{name}': {rate:.3f}")

    diagnostics['info'].append(f"Sampler: {chain.sampler}")
    diagnostics['info'].append(f"Total iterations: {len(chain)}")
    diagnostics['info'].append(f"Tracked variables: {', '.join(chain.names)}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Pretty-print diagnostics from diagnose_sampler_issues."""
    if diagnostics['issues']:
        logger.error("\n[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("\n[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("\n[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("\n[OK] No issues detected")
