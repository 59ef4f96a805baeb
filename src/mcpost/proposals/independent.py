"""
Independent Proposal for MCMC Sampling

Asymmetric proposal whose distribution does not depend on the current state.

Proposal: x' ~ g(x')

Hastings ratio: log g(x) - log g(x')

An independent proposal with lighter tails than the target is still a valid
MH kernel, it just converges slowly: the chain sticks in the tails for long
stretches because those states are rarely proposed and hard to leave.
"""

import jax.random as random

from ..densities import gamma_log_density
from .common import ProposalSpec, ProposalType


def independent_proposal(draw, log_density, label='independent'):
    """
    Build an independent ProposalSpec from a sampler and its log density.

    Args:
        draw: fn(key) -> candidate, a JAX-traceable sampler for g
        log_density: fn(y) -> log g(y), JAX-traceable
        label: Human-readable name for logging

    Returns:
        ProposalSpec of kind INDEPENDENT
    """
    def propose(key, current):
        new_key, proposal_key = random.split(key)
        candidate = draw(proposal_key)
        log_hastings_ratio = log_density(current) - log_density(candidate)
        return candidate, log_hastings_ratio, new_key

    return ProposalSpec(
        kind=ProposalType.INDEPENDENT,
        propose=propose,
        symmetric=False,
        label=label,
    )


def gamma_independent_proposal(shape, rate):
    """
    Independent Gamma(shape, rate) proposal for positive scalar targets.

    Args:
        shape: Gamma shape parameter (> 0)
        rate: Gamma rate parameter (> 0)

    Returns:
        ProposalSpec of kind INDEPENDENT
    """
    if shape <= 0 or rate <= 0:
        raise ValueError(f"Gamma proposal needs shape > 0 and rate > 0, got ({shape}, {rate})")

    def draw(key):
        return random.gamma(key, shape) / rate

    return independent_proposal(
        draw,
        gamma_log_density(shape, rate),
        label=f"gamma(shape={shape}, rate={rate})",
    )
