"""
Target Registration System

This module provides a registry for Metropolis-Hastings targets that can be
run by name through the config-driven entry point (rmcmc). User code registers
targets via register_posterior(), and the backend retrieves them via
get_posterior().

Example usage:
    from mcpost import register_posterior, gamma_log_density, random_walk_proposal

    register_posterior('my_model', {
        'log_target': gamma_log_density(2.0, 1.0),
        'proposal': random_walk_proposal(0.5),
        'initial_state': 1.0,
        # optional:
        'support': positive_support,
    })
"""

_REGISTRY = {}


def register_posterior(name, config):
    """
    Register an MH target with the MCMC system.

    Args:
        name: Unique model identifier string (e.g., 'gamma_4.3_6.2')
        config: Dict containing model functions with keys:

            Required:
                log_target: fn(x) -> scalar
                    Log of the unnormalized target density (JAX-traceable).

                proposal: ProposalSpec
                    How candidates are generated.

                initial_state: scalar or array
                    Starting point of the chain.

            Optional:
                support: fn(x) -> bool
                    False outside the target support; such proposals are
                    rejected without evaluating the acceptance ratio.

    Raises:
        ValueError: If required keys are missing or name is already registered.
    """
    if name in _REGISTRY:
        raise ValueError(f"Posterior '{name}' is already registered")

    required_keys = ['log_target', 'proposal', 'initial_state']
    missing = [k for k in required_keys if k not in config]
    if missing:
        raise ValueError(f"Missing required keys for posterior '{name}': {missing}")

    _REGISTRY[name] = config


def get_posterior(name):
    """
    Get a registered target configuration by name.

    Raises:
        KeyError: If the posterior is not registered
    """
    if name not in _REGISTRY:
        available = list(_REGISTRY.keys())
        raise KeyError(f"Unknown posterior '{name}'. Available: {available}")
    return _REGISTRY[name]


def list_posteriors():
    """
    List all registered posterior names.

    Returns:
        List of registered posterior name strings
    """
    return list(_REGISTRY.keys())
