"""
History processing utilities for MCMC output.

This module provides functions for:
- Applying burn-in filtering
- Thinning a chain
- Pooling one marginal across several independent chains

Every function returns new arrays or a new Chain; the input chain is never
modified.
"""

import numpy as np

from .mcmc.types import Chain, build_chain

import logging
logger = logging.getLogger('mcpost')


def _subset(chain: Chain, index, note):
    draws = {name: values[index] for name, values in chain.draws.items()}
    accepted = None
    if chain.accepted is not None:
        accepted = {name: flags[index] for name, flags in chain.accepted.items()}
    metadata = dict(chain.metadata)
    metadata.setdefault('post_processing', [])
    metadata['post_processing'] = list(metadata['post_processing']) + [note]
    return build_chain(draws, sampler=chain.sampler, accepted=accepted, metadata=metadata)


def apply_burnin(chain: Chain, burn_iter: int) -> Chain:
    """
    Drop the first burn_iter states (burn-in removal).

    Args:
        chain: Chain from any sampler
        burn_iter: Number of leading states to discard (0 <= burn_iter < len(chain))

    Returns:
        Chain with len(chain) - burn_iter states
    """
    if burn_iter < 0 or burn_iter >= len(chain):
        raise ValueError(f"burn_iter must be in [0, {len(chain)}), got {burn_iter}")

    logger.info(f"Burn-in filter (burn_iter={burn_iter}):")
    logger.info(f"  Dropped: {burn_iter} states, kept: {len(chain) - burn_iter}")
    return _subset(chain, slice(burn_iter, None), f"burnin({burn_iter})")


def thin_chain(chain: Chain, thin_iteration: int) -> Chain:
    """
    Keep every thin_iteration-th state, starting with the first.

    Args:
        chain: Chain from any sampler
        thin_iteration: Thinning interval (>= 1)

    Returns:
        Thinned Chain
    """
    if thin_iteration < 1:
        raise ValueError(f"thin_iteration must be >= 1, got {thin_iteration}")
    if thin_iteration == 1:
        return chain
    return _subset(chain, slice(None, None, thin_iteration), f"thin({thin_iteration})")


def pool_marginals(chains, name, index=None):
    """
    Concatenate one marginal across independent chains.

    Args:
        chains: Iterable of Chains, e.g. runs from different seeds
        name: Variable name
        index: Optional component index

    Returns:
        1-D (or stacked) NumPy array of all draws
    """
    pieces = [np.asarray(chain.marginal(name, index)) for chain in chains]
    if not pieces:
        raise ValueError("No chains provided")
    return np.concatenate(pieces, axis=0)
