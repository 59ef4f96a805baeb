"""
Hybrid Gibbs Sampler for the Hierarchical Beta-Binomial Model.

Model, for i = 1..np groups sharing hyperparameters (a, b):

    a, b ~ Gamma(alpha, beta)          (shape, rate)
    p_i  ~ Beta(a, b)
    x_i  ~ Binomial(n_i, p_i)

p_i has a closed-form conditional; a and b do not, so each is updated by a
random-walk Metropolis-Hastings step inside the Gibbs sweep. The order within
an iteration is a, then b (using the new a), then every p_i (using the new a
and b).

The log full conditional of a is

    log pi(a | b, p) = -np * logBeta(a, b) + (alpha - 1) log a - beta * a + a * sum(log p_i)

and the conditional of b is the same function with the roles swapped,
(b, a, sum(log(1 - p_i))), since logBeta is symmetric.
"""

import time
from datetime import timedelta

import jax
import jax.numpy as jnp
import jax.random as random
import jax.scipy.special as special
import numpy as np

from ..conjugate import BetaParams, beta_binomial_update
from ..densities import DensityOracle, positive_support
from ..error_handling import validate_hybrid_inputs
from ..proposals import random_walk_proposal
from .sampling import metropolis_step
from .types import Chain, build_chain

import logging
logger = logging.getLogger('mcpost')


def log_hyper_conditional(value, other, log_p_sum, num_params, prior_shape, prior_rate):
    """
    Shared log full conditional of one Beta hyperparameter, up to a constant.

    For a: (value, other, log_p_sum) = (a, b, sum(log p_i)).
    For b: (value, other, log_p_sum) = (b, a, sum(log(1 - p_i))).
    """
    return (-num_params * special.betaln(value, other)
            + (prior_shape - 1.0) * jnp.log(value)
            - prior_rate * value
            + value * log_p_sum)


def run_hybrid_gibbs(successes, trials, num_iterations, key,
                     prior_shape=6.25, prior_rate=0.025, walk_scale=20.0, init=None):
    """
    Run the hybrid Gibbs / Metropolis-Hastings sampler.

    Args:
        successes: Observed successes x_i (np,)
        trials: Numbers of trials n_i (np,)
        num_iterations: Number of sweeps N
        key: JAX random key
        prior_shape: Gamma shape alpha shared by the a and b priors
        prior_rate: Gamma rate beta shared by the a and b priors
        walk_scale: Standard deviation of the random-walk proposals for a and b
        init: Optional dict with 'p', 'a', 'b'. Defaults: p_i = (x_i + 1) / (n_i + 2),
              a = b = prior mean alpha / beta

    Returns:
        Chain of length N + 1 (initial state first) with draws 'p' (N+1, np),
        'a' and 'b' (N+1,), and accepted['a'], accepted['b']
    """
    validate_hybrid_inputs(successes, trials, num_iterations, prior_shape, prior_rate, walk_scale)
    x = jnp.asarray(successes, dtype=float)
    n = jnp.asarray(trials, dtype=float)
    num_params = x.shape[0]
    walk = random_walk_proposal(walk_scale)

    init = dict(init or {})
    p0 = jnp.asarray(init.get('p', (x + 1.0) / (n + 2.0)), dtype=float)
    a0 = jnp.asarray(init.get('a', prior_shape / prior_rate), dtype=float)
    b0 = jnp.asarray(init.get('b', prior_shape / prior_rate), dtype=float)
    if p0.shape != x.shape:
        raise ValueError(f"init['p'] must have shape {x.shape}, got {p0.shape}")
    if not (bool(jnp.all((p0 > 0) & (p0 < 1))) and float(a0) > 0 and float(b0) > 0):
        raise ValueError("Initial state must have 0 < p_i < 1 and a, b > 0")

    def hyper_step(step_key, value, other, log_p_sum):
        oracle = DensityOracle(
            log_target=lambda v: log_hyper_conditional(v, other, log_p_sum, num_params, prior_shape, prior_rate),
            proposal=walk,
            support=positive_support,
        )
        next_value, _, accepted, step_key = metropolis_step(step_key, value, oracle.log_f(value), oracle)
        return next_value, accepted, step_key

    def scan_body(carry, _):
        current_key, p, a, b = carry
        a, accepted_a, current_key = hyper_step(current_key, a, b, jnp.sum(jnp.log(p)))
        b, accepted_b, current_key = hyper_step(current_key, b, a, jnp.sum(jnp.log1p(-p)))

        post = beta_binomial_update(BetaParams(a, b), x, n)
        current_key, p_key = random.split(current_key)
        p = random.beta(p_key, post.a, post.b)
        return (current_key, p, a, b), (p, a, b, accepted_a, accepted_b)

    @jax.jit
    def run(run_key, p_init, a_init, b_init):
        _, history = jax.lax.scan(scan_body, (run_key, p_init, a_init, b_init), None, length=num_iterations)
        return history

    logger.info(f"Hybrid Gibbs: {num_params} probabilities, {num_iterations} iterations, walk scale {walk_scale}")
    start = time.perf_counter()
    p_hist, a_hist, b_hist, acc_a, acc_b = jax.block_until_ready(run(key, p0, a0, b0))
    wall_time = time.perf_counter() - start

    acc_a = np.concatenate([[np.nan], np.asarray(jax.device_get(acc_a))])
    acc_b = np.concatenate([[np.nan], np.asarray(jax.device_get(acc_b))])
    logger.info(f"  Wall time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")
    logger.info(f"  Acceptance rate: a={np.nanmean(acc_a):.3f}, b={np.nanmean(acc_b):.3f}")

    return build_chain(
        {
            'p': jnp.concatenate([p0[None], p_hist], axis=0),
            'a': jnp.concatenate([a0[None], a_hist], axis=0),
            'b': jnp.concatenate([b0[None], b_hist], axis=0),
        },
        sampler='hybrid_gibbs',
        accepted={'a': acc_a, 'b': acc_b},
        metadata={
            'num_iterations': num_iterations,
            'prior_shape': prior_shape,
            'prior_rate': prior_rate,
            'walk_scale': walk_scale,
        },
    )


def beta_posterior_parameters(chain: Chain, successes, trials, index):
    """
    Per-iteration Beta posterior parameters of one success probability.

    p_index | a_t, b_t, x ~ Beta(a_t + x_index, b_t + n_index - x_index), one
    replicate per chain iteration. These replicates feed the credible-set
    estimators that average over posterior parameterizations.

    Args:
        chain: Chain from run_hybrid_gibbs
        successes: Observed successes (np,)
        trials: Numbers of trials (np,)
        index: Which probability p_index

    Returns:
        BetaParams of (n_iter,) NumPy arrays
    """
    x = np.asarray(successes, dtype=float)[index]
    n = np.asarray(trials, dtype=float)[index]
    prior = BetaParams(np.asarray(chain.marginal('a')), np.asarray(chain.marginal('b')))
    post = beta_binomial_update(prior, x, n)
    return BetaParams(np.asarray(post.a, dtype=float), np.asarray(post.b, dtype=float))
