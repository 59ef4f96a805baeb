"""
Target and proposal densities.

Only the densities the samplers need are provided; every builder returns a
JAX-traceable function of one argument computing a log density, so it can be
evaluated inside jax.lax.scan.

Functions:
    gamma_log_density: Gamma(shape, rate) log density
    beta_log_density: Beta(a, b) log density
    normal_log_density: Normal(mean, sd) log density
    positive_support: Support predicate for strictly positive states

Classes:
    DensityOracle: Target log density + proposal + support, pure evaluation
"""

from dataclasses import dataclass
from typing import Callable, Optional

import jax.numpy as jnp
import jax.scipy.stats as stats


def gamma_log_density(shape, rate):
    """Gamma(shape, rate) log density; -inf for non-positive arguments."""
    def log_density(x):
        x = jnp.asarray(x)
        lp = stats.gamma.logpdf(x, shape, scale=1.0 / rate)
        return jnp.sum(jnp.where(x > 0, lp, -jnp.inf))
    return log_density


def beta_log_density(a, b):
    """Beta(a, b) log density; -inf outside (0, 1)."""
    def log_density(x):
        x = jnp.asarray(x)
        lp = stats.beta.logpdf(x, a, b)
        return jnp.sum(jnp.where((x > 0) & (x < 1), lp, -jnp.inf))
    return log_density


def normal_log_density(mean=0.0, sd=1.0):
    """Normal(mean, sd^2) log density, summed over the components of x."""
    def log_density(x):
        return jnp.sum(stats.norm.logpdf(x, loc=mean, scale=sd))
    return log_density


def positive_support(x):
    """True when every component of x is strictly positive."""
    return jnp.all(jnp.asarray(x) > 0)


@dataclass(frozen=True)
class DensityOracle:
    """
    Pure evaluation wrapper for an MH target and its proposal.

    Fields:
        log_target: fn(x) -> log f(x) up to an additive constant
        proposal: ProposalSpec (or any fn(key, x) -> (y, log_hastings_ratio, key))
        support: Optional fn(x) -> bool; False marks x outside the target support

    log_f never returns NaN or +inf: any non-finite value, and any state
    outside the support, is reported as -inf so that the acceptance ratio
    rejects it.
    """
    log_target: Callable
    proposal: Callable
    support: Optional[Callable] = None

    def log_f(self, x):
        lp = jnp.asarray(self.log_target(x), dtype=float)
        lp = jnp.nan_to_num(lp, nan=-jnp.inf, posinf=-jnp.inf, neginf=-jnp.inf)
        if self.support is not None:
            lp = jnp.where(self.support(x), lp, -jnp.inf)
        return lp

    def propose(self, key, current):
        return self.proposal(key, current)
