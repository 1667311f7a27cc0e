"""Per-proof groups of challenges and accumulator endpoints.

A proof's challenges come out of the sponge as one flat vector of FF3
values; from_flat() splits it per table in a fixed order so prover and
verifier address the same value by the same name.
"""

from dataclasses import dataclass, fields
from typing import Sequence

import numpy as np

from .errors import ShapeMismatch
from .jump_stack_table import JumpStackTableChallenges, JumpStackTableEndpoints


def _split(cls, values: Sequence):
    """Build cls from a flat vector, one group per field, in declaration order."""
    values = list(values)
    group_types = [f.type for f in fields(cls)]
    expected = sum(len(t.names()) for t in group_types)
    if len(values) != expected:
        raise ShapeMismatch(
            f"wrong number of values for {cls.__name__}", expected=expected, actual=len(values),
        )
    groups = []
    start = 0
    for group_type in group_types:
        end = start + len(group_type.names())
        groups.append(group_type.from_flat(values[start:end]))
        start = end
    return cls(*groups)


def _sample(cls, seed):
    group_types = [f.type for f in fields(cls)]
    seeds = np.random.SeedSequence(seed).spawn(len(group_types))
    return cls(*(t.sample(s) for t, s in zip(group_types, seeds)))


@dataclass(frozen=True)
class AllChallenges:
    jump_stack_table_challenges: JumpStackTableChallenges

    TOTAL_CHALLENGES = len(JumpStackTableChallenges.names())

    @classmethod
    def from_flat(cls, weights: Sequence) -> "AllChallenges":
        return _split(cls, weights)

    @classmethod
    def sample(cls, seed=None) -> "AllChallenges":
        return _sample(cls, seed)

    @classmethod
    def names(cls) -> dict:
        """Challenge name -> index into the flat vector."""
        return {name: i for i, name in enumerate(JumpStackTableChallenges.names())}


@dataclass(frozen=True)
class AllEndpoints:
    """Initials before extension, terminals after."""
    jump_stack_table_endpoints: JumpStackTableEndpoints

    TOTAL_ENDPOINTS = len(JumpStackTableEndpoints.names())

    @classmethod
    def from_flat(cls, values: Sequence) -> "AllEndpoints":
        return _split(cls, values)

    @classmethod
    def sample(cls, seed=None) -> "AllEndpoints":
        return _sample(cls, seed)

    @classmethod
    def names(cls) -> dict:
        return {name: i for i, name in enumerate(JumpStackTableEndpoints.names())}


AllInitials = AllEndpoints
AllTerminals = AllEndpoints
