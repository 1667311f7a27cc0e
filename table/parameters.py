"""Proof parameters shared by every table of one proof."""

import json
from dataclasses import dataclass
from typing import Optional

from primitives.domain import EvaluationDomain

from .base import is_power_of_two, pad_height


@dataclass
class ProofParameters:
    """Knobs fixed before proving.

    Fields:
        num_randomizers: Random coefficients added to every interpolant (0 = none)
        expansion_factor: Outer domain size / trace-domain size (power of two)
        coset_offset: Shift of the outer evaluation domain
        max_workers: Thread pool size for per-table work (None = executor default)
        randomizer_seed: Seed of the trace randomizers, one stream per table
    """
    num_randomizers: int = 1
    expansion_factor: int = 4
    coset_offset: int = 7
    max_workers: Optional[int] = None
    randomizer_seed: int = 0

    def __post_init__(self):
        if self.num_randomizers < 0:
            raise ValueError(f"num_randomizers must be >= 0, got {self.num_randomizers}")
        if not is_power_of_two(self.expansion_factor):
            raise ValueError(f"expansion_factor must be a power of two, got {self.expansion_factor}")
        if self.coset_offset == 0:
            raise ValueError("coset_offset must be non-zero")
        if self.randomizer_seed < 0:
            raise ValueError(f"randomizer_seed must be >= 0, got {self.randomizer_seed}")

    @classmethod
    def from_json(cls, path: str) -> 'ProofParameters':
        """Load from a JSON file.

        Example JSON structure:
        {
          "numRandomizers": 1,
          "expansionFactor": 4,
          "cosetOffset": 7,
          "maxWorkers": 4,
          "randomizerSeed": 0
        }
        """
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            num_randomizers=data.get('numRandomizers', 1),
            expansion_factor=data.get('expansionFactor', 4),
            coset_offset=data.get('cosetOffset', 7),
            max_workers=data.get('maxWorkers'),
            randomizer_seed=data.get('randomizerSeed', 0),
        )

    def fri_domain_size(self, max_padded_height: int) -> int:
        """Outer domain size: expansion_factor times the interpolant degree bound."""
        return self.expansion_factor * pad_height(max(max_padded_height + self.num_randomizers, 1))

    def fri_domain(self, max_padded_height: int) -> EvaluationDomain:
        return EvaluationDomain.from_size(self.fri_domain_size(max_padded_height), self.coset_offset)
