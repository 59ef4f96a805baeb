"""
MCMC Diagnostics.

Informal convergence checks for finished chains:
- acceptance_rate: Fraction of accepted MH proposals
- running_mean: Cumulative mean trajectory (for spotting pseudo-convergence)
- compare_chain_means: Spread of point estimates across independent runs
- print_acceptance_summary: Log MH acceptance rate statistics
"""

from typing import Dict, Sequence

import numpy as np

from .types import Chain

import logging
logger = logging.getLogger('mcpost')


def acceptance_rate(chain: Chain, name: str = None) -> float:
    """
    Fraction of accepted Metropolis-Hastings proposals.

    Args:
        chain: Chain with acceptance records
        name: Variable to report; the first recorded variable if None

    Returns:
        Acceptance rate in [0, 1]
    """
    if not chain.accepted:
        raise ValueError(f"Chain from '{chain.sampler}' has no acceptance record")
    if name is None:
        name = next(iter(chain.accepted))
    if name not in chain.accepted:
        raise KeyError(f"No acceptance record for '{name}'. Available: {list(chain.accepted)}")
    return float(np.nanmean(chain.accepted[name]))


def running_mean(samples) -> np.ndarray:
    """
    Cumulative mean of a trajectory along the iteration axis.

    A chain that is still drifting, or several chains whose running means
    settle at different values, point to missing convergence or to a chain
    trapped in one mode.
    """
    values = np.asarray(samples, dtype=float)
    counts = np.arange(1, values.shape[0] + 1).reshape((-1,) + (1,) * (values.ndim - 1))
    return np.cumsum(values, axis=0) / counts


def compare_chain_means(chains: Sequence[Chain], name: str) -> Dict[str, np.ndarray]:
    """
    Point estimates of one variable across independent chains.

    Returns:
        Dict with 'means' (n_chains, ...) and their 'spread' (max - min per column)
    """
    if not chains:
        raise ValueError("No chains provided")
    means = np.stack([chain.point_estimate(name) for chain in chains])
    return {'means': means, 'spread': np.max(means, axis=0) - np.min(means, axis=0)}


def print_acceptance_summary(chain: Chain) -> None:
    """Log acceptance rates for every MH-updated variable of a chain."""
    if not chain.accepted:
        logger.info(f"--- {chain.sampler}: no Metropolis-Hastings steps ---")
        return

    logger.info(f"\n--- Acceptance Rates ({chain.sampler}) ---")
    for name, flags in chain.accepted.items():
        flags = np.asarray(flags, dtype=float)
        n_steps = int(np.sum(~np.isnan(flags)))
        rate = float(np.nanmean(flags))
        logger.info(f"  {name}: {rate:.3f} over {n_steps} proposals")
