"""
MCMC Subpackage - Core sampling implementation.

This package contains the core MCMC sampling logic:
- backend: Config-driven entry point (rmcmc)
- sampling: Metropolis-Hastings accept/reject, step and chain driver
- mixture_gibbs: Gibbs sampler with latent allocations for Gaussian mixtures
- hybrid_gibbs: Gibbs sampler with embedded random-walk MH steps
- config: Configuration defaults and RNG keys
- diagnostics: Acceptance rates and running means
- types: Core data structures (Chain)
"""

# Import types first (needed by other modules)
from .types import Chain, build_chain

from .sampling import mh_accept, metropolis_step, run_metropolis_hastings
from .mixture_gibbs import (
    MixturePrior,
    MixtureState,
    align_labels,
    binning_initialization,
    default_mixture_prior,
    run_mixture_gibbs,
)
from .hybrid_gibbs import beta_posterior_parameters, log_hyper_conditional, run_hybrid_gibbs
from .config import SamplerType, clean_config, configure_precision, gen_rng_keys
from .diagnostics import (
    acceptance_rate,
    compare_chain_means,
    print_acceptance_summary,
    running_mean,
)

# Main entry point
from .backend import rmcmc

__all__ = [
    # Main entry points
    'rmcmc',
    'run_metropolis_hastings',
    'run_mixture_gibbs',
    'run_hybrid_gibbs',
    # Types
    'Chain',
    'build_chain',
    'MixturePrior',
    'MixtureState',
    # Steps
    'mh_accept',
    'metropolis_step',
    'log_hyper_conditional',
    # Mixture helpers
    'align_labels',
    'binning_initialization',
    'default_mixture_prior',
    'beta_posterior_parameters',
    # Config
    'SamplerType',
    'clean_config',
    'configure_precision',
    'gen_rng_keys',
    # Diagnostics
    'acceptance_rate',
    'compare_chain_means',
    'print_acceptance_summary',
    'running_mean',
]
