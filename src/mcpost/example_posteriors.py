"""
Example Posteriors - Targets and Synthetic Data with Known Answers

This module contains the small models used to check the samplers end to end:
- A Gamma(4.3, 6.2) target sampled by an independent Gamma(5, 6) proposal
- Synthetic Gaussian mixture samples
- Synthetic Binomial counts for the hierarchical Beta-Binomial model

These are for validation and demonstration; real analyses register their
own targets and bring their own data.
"""

import numpy as np

from .densities import gamma_log_density, positive_support
from .proposals import gamma_independent_proposal
from .registry import _REGISTRY, register_posterior


# ============================================================================
# GAMMA TARGET - Independent MH
# ============================================================================

GAMMA_TARGET_SHAPE = 4.3
GAMMA_TARGET_RATE = 6.2
GAMMA_PROPOSAL_SHAPE = 5.0
GAMMA_PROPOSAL_RATE = 6.0


def gamma_target_config():
    """
    Gamma(4.3, 6.2) target with an independent Gamma(5, 6) proposal.

    The proposal has a slightly lighter right tail than the target; the chain
    is still valid, it just revisits the far tail slowly.
    """
    return {
        'log_target': gamma_log_density(GAMMA_TARGET_SHAPE, GAMMA_TARGET_RATE),
        'proposal': gamma_independent_proposal(GAMMA_PROPOSAL_SHAPE, GAMMA_PROPOSAL_RATE),
        'initial_state': GAMMA_PROPOSAL_SHAPE / GAMMA_PROPOSAL_RATE,
        'support': positive_support,
    }


def gamma_target_analytical_mean():
    """Mean of the Gamma(4.3, 6.2) target, shape / rate."""
    return GAMMA_TARGET_SHAPE / GAMMA_TARGET_RATE


EXAMPLE_POSTERIORS = {
    'gamma_4.3_6.2': gamma_target_config,
}


def register_example_posteriors():
    """Register every example target that is not registered yet."""
    for name, build in EXAMPLE_POSTERIORS.items():
        if name not in _REGISTRY:
            register_posterior(name, build())


# ============================================================================
# SYNTHETIC DATA
# ============================================================================

def generate_mixture_data(n_obs=100, weights=(0.7, 0.3), means=(0.0, 2.5), sds=(1.0, 1.0), seed=42):
    """
    Draw a sample from a finite Gaussian mixture.

    Returns:
        observations: (n_obs,) sample
        labels: (n_obs,) generating component of each observation
    """
    rng = np.random.default_rng(seed)
    weights = np.asarray(weights, dtype=float)
    labels = rng.choice(len(weights), size=n_obs, p=weights / weights.sum())
    observations = rng.normal(np.asarray(means)[labels], np.asarray(sds)[labels])
    return observations, labels


def generate_binomial_data(trials, probabilities, seed=42):
    """
    Draw Binomial success counts for the hierarchical Beta-Binomial model.

    Returns:
        successes: (np,) counts
        trials: (np,) trial numbers
    """
    rng = np.random.default_rng(seed)
    trials = np.asarray(trials, dtype=int)
    successes = rng.binomial(trials, np.asarray(probabilities, dtype=float))
    return successes, trials
