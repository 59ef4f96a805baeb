"""
Random Walk Proposal for MCMC Sampling

Simple isotropic Gaussian random walk centered on the current state.

Proposal: x' ~ N(x_current, scale^2 * I)

Hastings ratio: 0 (symmetric proposal, q(x'|x) = q(x|x'))

The step size is fixed for the whole run; nothing is adapted from the chain
history. Small scales give high acceptance but slow exploration, large scales
the reverse.
"""

import jax.numpy as jnp
import jax.random as random

from .common import ProposalSpec, ProposalType


def rand_walk_step(key, current, scale):
    """
    Draw one random-walk candidate.

    Args:
        key: JAX random key
        current: Current state (scalar or vector)
        scale: Standard deviation of the Gaussian step

    Returns:
        proposal: Proposed state, same shape as current
        log_hastings_ratio: 0.0 (symmetric proposal)
        new_key: Updated random key
    """
    new_key, proposal_key = random.split(key)
    current = jnp.asarray(current)
    noise = random.normal(proposal_key, shape=current.shape)
    proposal = current + noise * scale
    return proposal, 0.0, new_key


def random_walk_proposal(scale=1.0):
    """
    Build a symmetric Gaussian random-walk ProposalSpec.

    Args:
        scale: Standard deviation of each step (must be > 0)

    Returns:
        ProposalSpec of kind RANDOM_WALK
    """
    if scale <= 0:
        raise ValueError(f"Random walk scale must be > 0, got {scale}")

    def propose(key, current):
        return rand_walk_step(key, current, scale)

    return ProposalSpec(
        kind=ProposalType.RANDOM_WALK,
        propose=propose,
        symmetric=True,
        label=f"random_walk(scale={scale})",
    )
