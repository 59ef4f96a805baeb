"""
MCMC Sampling Functions.

Core Metropolis-Hastings functions shared by every sampler:
- mh_accept: Log-domain accept/reject decision
- metropolis_step: One MH transition for a DensityOracle
- run_metropolis_hastings: Full chain of N MH transitions
"""

import time
from datetime import timedelta

import jax
import jax.numpy as jnp
import jax.random as random
import numpy as np

from ..densities import DensityOracle
from ..error_handling import validate_chain_length
from .types import build_chain

import logging
logger = logging.getLogger('mcpost')


def mh_accept(key, log_rho):
    """
    Metropolis-Hastings accept/reject in log space.

    Accepts iff log(u) < min(0, log_rho) with u ~ Uniform(0, 1). A log_rho of
    -inf (candidate outside the support) can never be accepted, so that case
    is a deterministic rejection whatever u turns out to be.

    Args:
        key: JAX random key
        log_rho: Log acceptance ratio (NaN is treated as -inf)

    Returns:
        accept: Boolean scalar
        new_key: Updated random key
    """
    safe_ratio = jnp.nan_to_num(log_rho, nan=-jnp.inf)
    new_key, accept_key = random.split(key)
    log_uniform = jnp.log(random.uniform(accept_key, shape=()))
    accept = log_uniform < jnp.minimum(0.0, safe_ratio)
    return accept, new_key


def metropolis_step(key, current, lp_current, oracle: DensityOracle):
    """
    Perform one Metropolis-Hastings transition.

    log_rho = log f(y) - log f(x) + [log g(x|y) - log g(y|x)]

    The bracketed Hastings term comes from the proposal itself (0 for
    symmetric random walks, log g(x) - log g(y) for independent proposals).

    Args:
        key: JAX random key
        current: Current state x
        lp_current: log f(x), carried from the previous step
        oracle: DensityOracle with target, proposal and support

    Returns:
        next_state, next_lp, accepted (float 0/1), new_key
    """
    candidate, log_hastings_ratio, key = oracle.propose(key, current)
    candidate = jnp.asarray(candidate, dtype=current.dtype)
    lp_candidate = oracle.log_f(candidate)

    log_rho = lp_candidate - lp_current + log_hastings_ratio
    # Out-of-support candidates are rejected before the ratio can be inflated
    # by an infinite Hastings term
    log_rho = jnp.where(jnp.isfinite(lp_candidate), log_rho, -jnp.inf)

    accept, key = mh_accept(key, log_rho)
    next_state = jnp.where(accept, candidate, current)
    next_lp = jnp.where(accept, lp_candidate, lp_current)
    return next_state, next_lp, jnp.asarray(accept, dtype=float), key


def run_metropolis_hastings(log_target, proposal, x0, num_iterations, key, support=None):
    """
    Run a Metropolis-Hastings chain.

    Args:
        log_target: fn(x) -> log of the unnormalized target density (JAX-traceable)
        proposal: ProposalSpec (independent or random walk)
        x0: Initial state (scalar or vector)
        num_iterations: Number of transitions N (>= 1)
        key: JAX random key; the chain is a deterministic function of it
        support: Optional fn(x) -> bool marking the target support

    Returns:
        Chain with draws['x'] of length N + 1 (x0 first) and accepted['x']
        holding 0/1 per transition (NaN for the initial state)
    """
    validate_chain_length(num_iterations)
    oracle = DensityOracle(log_target=log_target, proposal=proposal, support=support)

    x0 = jnp.asarray(x0, dtype=float)
    if not bool(jnp.all(jnp.isfinite(x0))):
        raise ValueError(f"Initial state must be finite, got {x0}")
    lp0 = oracle.log_f(x0)
    if not bool(jnp.isfinite(lp0)):
        logger.warning("Initial state has zero target density; the chain will move on its first accepted proposal")

    def scan_body(carry, _):
        current_key, current, lp_current = carry
        next_state, next_lp, accepted, new_key = metropolis_step(current_key, current, lp_current, oracle)
        return (new_key, next_state, next_lp), (next_state, accepted)

    @jax.jit
    def run(run_key, init_state, init_lp):
        _, (states, accepted) = jax.lax.scan(
            scan_body, (run_key, init_state, init_lp), None, length=num_iterations
        )
        return states, accepted

    label = getattr(proposal, 'label', '') or 'custom'
    logger.info(f"Metropolis-Hastings: {num_iterations} iterations, proposal {label}")
    start = time.perf_counter()
    states, accepted = run(key, x0, lp0)
    states = jax.block_until_ready(states)
    wall_time = time.perf_counter() - start

    history = jnp.concatenate([x0[None], states], axis=0)
    accepted = np.concatenate([[np.nan], np.asarray(jax.device_get(accepted))])
    logger.info(f"  Wall time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")
    logger.info(f"  Acceptance rate: {np.nanmean(accepted):.3f}")

    return build_chain(
        {'x': history},
        sampler='metropolis_hastings',
        accepted={'x': accepted},
        metadata={'proposal': label, 'num_iterations': num_iterations},
    )
