"""
Credible Interval Estimators

Interval estimates of a scalar parameter in (0, 1) from MCMC output. Two
kinds of input are used:

    sample      - the pooled marginal draws of the parameter (ordered chain output)
    post_a/b    - per-iteration Beta posterior parameters of the parameter,
                  one replicate per iteration (see beta_posterior_parameters)

Estimators:
    naive_interval              - average of per-replicate Beta quantiles
    order_statistic_interval    - empirical alpha/2 and 1-alpha/2 order statistics
    cmde_interval               - minimum-distance: average coverage equal to 1-alpha
    weighted_average_interval   - density-weighted average of per-replicate bounds
    chen_shao_interval          - shortest window of sorted draws (HPD approximation)
    analytic_hpd_interval       - HPD of a single closed-form Beta posterior

The two optimization-based estimators use scipy.optimize.minimize (Nelder-Mead
with box bounds [0, 1] x [0, 1]). A failed optimization still returns an
interval, flagged with converged=False.
"""

from dataclasses import dataclass

import numpy as np
from scipy import optimize
from scipy import stats

from .error_handling import validate_credible_level

import logging
logger = logging.getLogger('mcpost')


# Absolute tolerance on endpoints and objective for the bounded optimizer
OPTIMIZER_TOL = 1e-8
# Largest |coverage - (1 - alpha)| accepted from an optimizer result
COVERAGE_TOL = 1e-3
UNIT_BOX = [(0.0, 1.0), (0.0, 1.0)]


@dataclass(frozen=True)
class CredibleInterval:
    """
    Interval estimate (lower, upper) covering `level` posterior probability.

    Fields:
        lower, upper: Endpoints, lower <= upper
        method: Name of the estimator that produced the interval
        level: Target coverage 1 - alpha
        converged: False when an optimizer did not reach its tolerance;
                   the interval is then unreliable and should be cross-checked
                   against the order-statistic interval
    """
    lower: float
    upper: float
    method: str
    level: float
    converged: bool = True

    def __post_init__(self):
        if not self.lower <= self.upper:
            raise ValueError(f"Credible interval needs lower <= upper, got ({self.lower}, {self.upper})")

    @property
    def width(self):
        return self.upper - self.lower

    def contains(self, value):
        return self.lower <= value <= self.upper


def _check_sample(sample):
    draws = np.asarray(sample, dtype=float).ravel()
    if draws.size == 0:
        raise ValueError("Credible interval needs a non-empty sample")
    if not np.all(np.isfinite(draws)):
        raise ValueError("Sample contains NaN or Inf values")
    return draws


def _check_replicates(post_a, post_b):
    a = np.atleast_1d(np.asarray(post_a, dtype=float))
    b = np.atleast_1d(np.asarray(post_b, dtype=float))
    errors = []
    if a.shape != b.shape:
        errors.append(f"post_a and post_b must have the same shape, got {a.shape} and {b.shape}")
    if a.size == 0:
        errors.append("At least one posterior replicate is required")
    if np.any(~(a > 0)) or np.any(~(b > 0)):
        errors.append("Beta posterior parameters must be > 0")
    if errors:
        raise ValueError("Invalid posterior replicates:\n  " + "\n  ".join(errors))
    return a, b


def interval_coverage(lower, upper, post_a, post_b):
    """Posterior probability of [lower, upper] averaged over Beta replicates."""
    a, b = _check_replicates(post_a, post_b)
    return float(np.mean(stats.beta.cdf(upper, a, b) - stats.beta.cdf(lower, a, b)))


def naive_interval(post_a, post_b, level=0.95):
    """
    Per-replicate equal-tailed Beta quantiles, averaged across replicates.
    """
    validate_credible_level(level)
    a, b = _check_replicates(post_a, post_b)
    alpha = 1.0 - level
    lowers = stats.beta.ppf(alpha / 2, a, b)
    uppers = stats.beta.ppf(1 - alpha / 2, a, b)
    return CredibleInterval(float(np.mean(lowers)), float(np.mean(uppers)), 'naive', level)


def order_statistic_interval(sample, level=0.95):
    """
    Empirical alpha/2 and 1-alpha/2 order statistics of the pooled sample.

    With N sorted draws the bounds are the draws at (0-based) positions
    floor(N alpha / 2) and ceil(N (1 - alpha / 2)) - 1, so both lie inside
    [min(sample), max(sample)].
    """
    validate_credible_level(level)
    draws = np.sort(_check_sample(sample))
    size = draws.shape[0]
    alpha = 1.0 - level
    lo = int(np.floor(size * alpha / 2))
    hi = int(np.ceil(size * (1 - alpha / 2))) - 1
    lo = min(max(lo, 0), size - 1)
    hi = min(max(hi, lo), size - 1)
    return CredibleInterval(float(draws[lo]), float(draws[hi]), 'order_statistic', level)


def chen_shao_interval(sample, level=0.95):
    """
    Chen-Shao HPD estimate: the shortest interval spanning round(N (1 - alpha))
    consecutive sorted draws.
    """
    validate_credible_level(level)
    draws = np.sort(_check_sample(sample))
    size = draws.shape[0]
    span = int(round(size * level))
    span = min(max(span, 1), size)
    widths = draws[span - 1:] - draws[:size - span + 1]
    start = int(np.argmin(widths))
    return CredibleInterval(float(draws[start]), float(draws[start + span - 1]), 'chen_shao', level)


def _bounded_minimize(objective, start, restarts=1):
    """Bounded Nelder-Mead, restarted from its own result to undo early simplex collapse."""
    options = {'xatol': OPTIMIZER_TOL, 'fatol': OPTIMIZER_TOL, 'maxiter': 5000, 'maxfev': 10000}
    result = optimize.minimize(
        objective,
        x0=np.clip(np.asarray(start, dtype=float), 0.0, 1.0),
        method='Nelder-Mead',
        bounds=UNIT_BOX,
        options=options,
    )
    for _ in range(restarts):
        result = optimize.minimize(objective, x0=result.x, method='Nelder-Mead',
                                   bounds=UNIT_BOX, options=options)
    return result


def cmde_interval(post_a, post_b, sample, level=0.95):
    """
    Minimum-distance credible interval (CMDE).

    Finds (l, u) in [0, 1]^2 minimizing |mean_t [F_t(u) - F_t(l)] - (1 - alpha)|,
    where F_t is the Beta CDF of replicate t, starting from the order-statistic
    interval of the pooled sample.
    """
    validate_credible_level(level)
    a, b = _check_replicates(post_a, post_b)
    start = order_statistic_interval(sample, level)

    def objective(theta):
        lower, upper = theta
        coverage = np.mean(stats.beta.cdf(upper, a, b) - stats.beta.cdf(lower, a, b))
        return abs(coverage - level)

    result = _bounded_minimize(objective, [start.lower, start.upper])
    lower, upper = sorted(float(v) for v in result.x)
    # Judged on the coverage gap: every interval with the right coverage is a minimizer
    converged = bool(objective([lower, upper]) <= COVERAGE_TOL)
    if not converged:
        logger.warning(f"CMDE optimization did not converge ({result.message}); interval is unreliable")
    elif not result.success:
        logger.debug(f"CMDE optimizer stopped early ({result.message}) with coverage within tolerance")
    return CredibleInterval(lower, upper, 'cmde', level, converged=converged)


def weighted_average_interval(post_a, post_b, sample, level=0.95):
    """
    Weighted-average credible interval (Eberly & Casella).

    Starts from the order-statistic bounds of the pooled sample. Each bound is
    then replaced by sum_t w_t c_t / sum_t w_t over the per-replicate naive
    bounds c_t, with w_t the Beta density of c_t at the pooled posterior
    parameters (mean of the replicate parameters). A bound whose weights sum
    to zero keeps its starting value.
    """
    validate_credible_level(level)
    a, b = _check_replicates(post_a, post_b)
    start = order_statistic_interval(sample, level)
    alpha = 1.0 - level
    pooled_a, pooled_b = float(np.mean(a)), float(np.mean(b))

    bounds = []
    for q, fallback in ((alpha / 2, start.lower), (1 - alpha / 2, start.upper)):
        replicate_bounds = stats.beta.ppf(q, a, b)
        weights = stats.beta.pdf(replicate_bounds, pooled_a, pooled_b)
        total = np.sum(weights)
        if total > 0 and np.isfinite(total):
            bounds.append(float(np.sum(weights * replicate_bounds) / total))
        else:
            bounds.append(float(fallback))

    lower, upper = sorted(bounds)
    return CredibleInterval(lower, upper, 'weighted_average', level)


def analytic_hpd_interval(a, b, level=0.95):
    """
    HPD interval of a Beta(a, b) posterior.

    Minimizes |f(u) - f(l)| + |F(u) - F(l) - (1 - alpha)| over [0, 1]^2: at the
    HPD interval both endpoints have equal density and the interval has the
    required coverage. Starts from the equal-tailed interval.

    A density that is monotone on [0, 1] (a <= 1 or b <= 1) has no interior
    point of equal density, so the search cannot converge. The result is then
    flagged converged=False and the interval falls back to the one-sided
    [0, F^-1(level)] on the heavier-at-zero side (a <= 1, a <= b), to
    [F^-1(alpha), 1] when b <= 1, and to the equal-tailed interval otherwise.
    """
    validate_credible_level(level)
    if not (a > 0 and b > 0):
        raise ValueError(f"Beta parameters must be > 0, got ({a}, {b})")
    alpha = 1.0 - level
    dist = stats.beta(a, b)

    def objective(theta):
        lower, upper = theta
        density_gap = abs(dist.pdf(upper) - dist.pdf(lower))
        coverage_gap = abs(dist.cdf(upper) - dist.cdf(lower) - level)
        return density_gap + coverage_gap

    equal_tailed = [float(dist.ppf(alpha / 2)), float(dist.ppf(1 - alpha / 2))]
    result = _bounded_minimize(objective, equal_tailed)
    lower, upper = sorted(float(v) for v in result.x)
    converged = bool(objective([lower, upper]) <= COVERAGE_TOL)
    if not converged:
        if a <= 1 and a <= b:
            lower, upper = 0.0, float(dist.ppf(level))
        elif b <= 1:
            lower, upper = float(dist.ppf(alpha)), 1.0
        else:
            lower, upper = equal_tailed
        logger.warning(f"Analytic HPD optimization did not converge ({result.message}); "
                       f"falling back to [{lower:.6g}, {upper:.6g}]")
    return CredibleInterval(lower, upper, 'analytic_hpd', level, converged=converged)


def all_credible_intervals(sample, post_a, post_b, level=0.95):
    """
    Every chain-based estimator on the same input, keyed by method name.
    """
    return {
        'naive': naive_interval(post_a, post_b, level),
        'order_statistic': order_statistic_interval(sample, level),
        'cmde': cmde_interval(post_a, post_b, sample, level),
        'weighted_average': weighted_average_interval(post_a, post_b, sample, level),
        'chen_shao': chen_shao_interval(sample, level),
    }
