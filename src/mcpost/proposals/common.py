"""
Common definitions for proposal distributions.

Every proposal is a callable with the signature

    propose(key, current) -> (candidate, log_hastings_ratio, new_key)

where log_hastings_ratio = log g(current | candidate) - log g(candidate | current).
Each proposal computes its own Hastings ratio, so the MH step never needs to
know whether the proposal was symmetric.

Classes:
    ProposalType: Enum of supported proposal families
    ProposalSpec: Frozen description of a proposal mechanism
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable


class ProposalType(IntEnum):
    """
    Enumeration of proposal distribution strategies.

    INDEPENDENT proposals draw y ~ g(y) regardless of the current state.
    RANDOM_WALK proposals draw y ~ g(y | x) centered on the current state.
    """
    INDEPENDENT = 0
    RANDOM_WALK = 1

    def __str__(self):
        return self.name.replace('_', ' ').title()


@dataclass(frozen=True)
class ProposalSpec:
    """
    Specification of how candidates are generated from the current state.

    Fields:
        kind: ProposalType of the proposal
        propose: fn(key, current) -> (candidate, log_hastings_ratio, new_key)
        symmetric: True when g(y|x) = g(x|y), so the Hastings ratio is 0
        label: Human-readable name for logging

    The proposal must put positive density everywhere the target does,
    otherwise the chain is not guaranteed to converge to the target.
    """
    kind: ProposalType
    propose: Callable
    symmetric: bool = False
    label: str = ''

    def __post_init__(self):
        if not isinstance(self.kind, (ProposalType, int)):
            raise ValueError(f"kind must be ProposalType or int, got {type(self.kind)}")
        if isinstance(self.kind, int):
            object.__setattr__(self, 'kind', ProposalType(self.kind))
        if not callable(self.propose):
            raise ValueError("propose must be callable")

    def __call__(self, key, current):
        return self.propose(key, current)
