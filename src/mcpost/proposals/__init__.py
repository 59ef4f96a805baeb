"""
Proposal Distributions for MCMC Sampling

This package implements proposal distributions for Metropolis-Hastings sampling.

To add a new proposal:
1. Create new file in proposals/ directory with a builder returning ProposalSpec
2. Make sure its propose function returns (candidate, log_hastings_ratio, new_key)
3. Export from this __init__.py

Each proposal computes its own Hastings ratio - there's no separate
symmetric/asymmetric handling needed in the sampler.
"""

from .common import ProposalSpec, ProposalType
from .rand_walk import rand_walk_step, random_walk_proposal
from .independent import independent_proposal, gamma_independent_proposal

__all__ = [
    'ProposalSpec',
    'ProposalType',
    'rand_walk_step',
    'random_walk_proposal',
    'independent_proposal',
    'gamma_independent_proposal',
]
