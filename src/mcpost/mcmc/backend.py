"""
MCMC Backend - Config-driven entry point.

rmcmc runs one chain for one of the three samplers described by a plain
config dict:

    chain = rmcmc({'sampler': 'mixture_gibbs', 'num_components': 3,
                   'num_iterations': 500, 'rng_seed': 7},
                  {'observations': x})

Steps: clean_config -> validate_mcmc_config -> sampler -> burn-in -> thinning.
"""

import time
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ..error_handling import validate_mcmc_config
from ..history_processing import apply_burnin, thin_chain
from ..registry import get_posterior
from .config import SamplerType, clean_config, configure_precision, gen_rng_keys, summarize_config
from .hybrid_gibbs import run_hybrid_gibbs
from .mixture_gibbs import run_mixture_gibbs
from .sampling import run_metropolis_hastings
from .types import Chain

import logging
logger = logging.getLogger('mcpost')

# Data keys each sampler needs
REQUIRED_DATA = {
    SamplerType.METROPOLIS_HASTINGS: (),
    SamplerType.MIXTURE_GIBBS: ('observations',),
    SamplerType.HYBRID_GIBBS: ('successes', 'trials'),
}


def _check_data(sampler: SamplerType, data: Dict[str, Any]) -> None:
    missing = [k for k in REQUIRED_DATA[sampler] if k not in data]
    if missing:
        raise ValueError(f"Missing data for sampler '{sampler.name.lower()}': {missing}")


def rmcmc(mcmc_config: Dict[str, Any], data: Optional[Dict[str, Any]] = None) -> Chain:
    """
    Run one MCMC chain described by a config dict.

    Args:
        mcmc_config: Config with 'sampler', 'num_iterations', 'rng_seed' and
            sampler-specific keys ('posterior_id'; 'num_components';
            'prior_shape', 'prior_rate', 'walk_scale'), plus optional
            'burn_iter' and 'thin_iteration'
        data: Sampler inputs: nothing for MH (optional 'initial_state'),
            'observations' (optional 'prior', 'init') for the mixture sampler,
            'successes' and 'trials' (optional 'init') for the hybrid sampler

    Returns:
        Chain after burn-in removal and thinning

    Raises:
        ValueError: If the config or the data is invalid
        KeyError: If an MH posterior_id is not registered
    """
    data = dict(data or {})
    config = clean_config(mcmc_config)
    logger.info("Validating MCMC configuration...")
    validate_mcmc_config(config)
    sampler = SamplerType.from_config(config['sampler'])
    _check_data(sampler, data)

    configure_precision(config['use_double'])
    master_key, _ = gen_rng_keys(config['rng_seed'])
    n_iter = config['num_iterations']

    logger.info(f"Starting {sampler} at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"  Config: {summarize_config(config)}")
    start = time.perf_counter()

    if sampler == SamplerType.METROPOLIS_HASTINGS:
        target = get_posterior(config['posterior_id'])
        chain = run_metropolis_hastings(
            target['log_target'],
            target['proposal'],
            data.get('initial_state', target['initial_state']),
            n_iter,
            master_key,
            support=target.get('support'),
        )
    elif sampler == SamplerType.MIXTURE_GIBBS:
        chain = run_mixture_gibbs(
            data['observations'],
            config['num_components'],
            n_iter,
            master_key,
            prior=data.get('prior'),
            init=data.get('init'),
            save_allocations=config['save_allocations'],
        )
    else:
        chain = run_hybrid_gibbs(
            data['successes'],
            data['trials'],
            n_iter,
            master_key,
            prior_shape=config['prior_shape'],
            prior_rate=config['prior_rate'],
            walk_scale=config['walk_scale'],
            init=data.get('init'),
        )

    if config['burn_iter'] > 0:
        chain = apply_burnin(chain, config['burn_iter'])
    chain = thin_chain(chain, config['thin_iteration'])

    wall_time = time.perf_counter() - start
    logger.info(f"\n--- MCMC Run Summary ---")
    logger.info(f"  Total Wall Time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")
    logger.info(f"  States kept: {len(chain)}")
    return chain
