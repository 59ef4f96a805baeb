"""
MCMC Configuration.

This module handles setting up MCMC runs from plain config dicts:
- SamplerType: Enum of the available samplers
- clean_config: Fill in defaults
- gen_rng_keys: Generate JAX random keys from a seed
- configure_precision: Switch JAX between 32- and 64-bit floats

All config keys use lowercase with underscores (e.g., 'num_iterations', 'rng_seed').
"""

from enum import IntEnum
from typing import Any, Dict, Tuple

import jax
import jax.random as random


class SamplerType(IntEnum):
    """
    Enumeration of available sampler types.
    """
    METROPOLIS_HASTINGS = 0  # MH chain for a registered target density
    MIXTURE_GIBBS = 1        # Gibbs with latent allocations for Gaussian mixtures
    HYBRID_GIBBS = 2         # Gibbs with random-walk MH steps for Beta hyperparameters

    def __str__(self):
        return self.name.replace('_', ' ').title()

    @classmethod
    def from_config(cls, value):
        """Accept a SamplerType, its integer value, or its name in any case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace('-', '_').replace(' ', '_')
            if key in cls.__members__:
                return cls[key]
        elif isinstance(value, int) and value in cls._value2member_map_:
            return cls(value)
        options = [m.name.lower() for m in cls]
        raise ValueError(f"Unknown sampler '{value}'. Available: {options}")


def clean_config(mcmc_config):
    """
    Cleans the config dict and sets defaults.
    All config keys use lowercase with underscores.
    """
    mcmc_config = dict(mcmc_config)

    mcmc_config.setdefault('sampler', 'metropolis_hastings')
    mcmc_config.setdefault('num_iterations', 10000)
    mcmc_config.setdefault('rng_seed', 42)
    mcmc_config.setdefault('use_double', True)
    mcmc_config.setdefault('burn_iter', 0)
    mcmc_config.setdefault('thin_iteration', 1)

    sampler = mcmc_config['sampler']
    try:
        sampler = SamplerType.from_config(sampler)
    except ValueError:
        # Left for validate_mcmc_config to report with the other errors
        return mcmc_config

    if sampler == SamplerType.METROPOLIS_HASTINGS:
        mcmc_config.setdefault('posterior_id', 'gamma_4.3_6.2')
    elif sampler == SamplerType.MIXTURE_GIBBS:
        mcmc_config.setdefault('num_components', 2)
        mcmc_config.setdefault('save_allocations', True)
    elif sampler == SamplerType.HYBRID_GIBBS:
        mcmc_config.setdefault('prior_shape', 6.25)
        mcmc_config.setdefault('prior_rate', 0.025)
        mcmc_config.setdefault('walk_scale', 20.0)

    return mcmc_config


def configure_precision(use_double: bool = True) -> None:
    """Enable or disable 64-bit floats in JAX."""
    jax.config.update("jax_enable_x64", bool(use_double))


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (master_key, init_key): Tuple of JAX PRNGKeys
    """
    mkey = jax.random.PRNGKey(rng_seed)
    master_key, init_key = random.split(mkey, 2)
    return master_key, init_key


def summarize_config(mcmc_config: Dict[str, Any]) -> str:
    """One-line description of a cleaned config, for logging."""
    keys = sorted(k for k in mcmc_config if not callable(mcmc_config[k]))
    return ", ".join(f"{k}={mcmc_config[k]}" for k in keys)
