"""
MCMC Data Structures and Type Definitions.

This module contains the core data structures shared by all samplers:
- Chain: Immutable, iteration-indexed record of every tracked variable
- build_chain: Factory that moves scan output to host and freezes it
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import jax
import numpy as np


@dataclass(frozen=True)
class Chain:
    """
    Ordered sequence of sampler states.

    Each entry of `draws` is an array whose first axis is the iteration index,
    so `draws['means'][t]` is the vector of component means at iteration t.
    All arrays live on the host and are read-only; post-processing (burn-in,
    thinning) returns a new Chain rather than editing this one.

    Fields:
        draws: Mapping variable name -> (n_iter, ...) array
        sampler: Name of the sampler that produced the chain
        accepted: Optional mapping name -> (n_iter,) 0/1 acceptance indicators
                  for variables updated by an MH step
        metadata: Free-form run information (seed, proposal label, ...)
    """
    draws: Dict[str, np.ndarray]
    sampler: str
    accepted: Optional[Dict[str, np.ndarray]] = None
    metadata: Dict[str, object] = field(default_factory=dict)

    def __len__(self):
        first = next(iter(self.draws.values()))
        return first.shape[0]

    def __getitem__(self, t):
        """State at iteration t as a dict of name -> value."""
        return {name: values[t] for name, values in self.draws.items()}

    @property
    def names(self):
        return tuple(self.draws.keys())

    def marginal(self, name, index=None):
        """
        Marginal trajectory of one variable.

        Args:
            name: Variable name
            index: Optional component index for vector-valued variables

        Returns:
            (n_iter,) or (n_iter, ...) array
        """
        if name not in self.draws:
            raise KeyError(f"Unknown variable '{name}'. Available: {list(self.draws)}")
        values = self.draws[name]
        if index is None:
            return values
        return values[:, index]

    def point_estimate(self, name=None):
        """
        Per-column mean over iterations (Bayes estimator under squared-error loss).

        Args:
            name: Variable name; if None, estimates for every float variable

        Returns:
            Array for a single name, otherwise dict name -> array
        """
        if name is not None:
            return np.mean(self.marginal(name), axis=0)
        return {
            n: np.mean(v, axis=0)
            for n, v in self.draws.items()
            if np.issubdtype(v.dtype, np.floating)
        }


def _freeze(array):
    host = np.array(jax.device_get(array))
    host.flags.writeable = False
    return host


def build_chain(draws, sampler, accepted=None, metadata=None):
    """
    Build a read-only Chain from device (or host) arrays.

    Args:
        draws: Mapping name -> array with iteration as first axis
        sampler: Sampler name
        accepted: Optional mapping name -> acceptance indicators
        metadata: Optional run information

    Returns:
        Chain
    """
    if not draws:
        raise ValueError("A chain needs at least one tracked variable")
    frozen = {name: _freeze(values) for name, values in draws.items()}
    lengths = {values.shape[0] for values in frozen.values()}
    if len(lengths) != 1:
        raise ValueError(f"All tracked variables must share the iteration axis, got lengths {sorted(lengths)}")
    frozen_accepted = None
    if accepted is not None:
        frozen_accepted = {name: _freeze(values) for name, values in accepted.items()}
    return Chain(
        draws=frozen,
        sampler=sampler,
        accepted=frozen_accepted,
        metadata=dict(metadata or {}),
    )
