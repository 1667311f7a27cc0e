"""The sibling tables of one proof, processed in parallel.

Padding, extension and low-degree extension of different tables are
independent, so each step is mapped over the tables with a thread pool.
Within one table the steps run in order. Exceptions raised in a worker
propagate to the caller.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from primitives.domain import EvaluationDomain

from .base import Table, pad_height
from .challenges_initials import AllChallenges, AllEndpoints, AllTerminals
from .errors import InvalidUsage
from .extension import ExtensionTable
from .parameters import ProofParameters

logger = logging.getLogger(__name__)


# Randomizer streams of the base and the extension commitment rounds
BASE_ROUND = 0
EXTENSION_ROUND = 1


def _spawn_seeds(seed, count: int, round_index: int) -> list:
    """One independent seed per table and round; all None when seed is None."""
    if seed is None:
        return [None] * count
    return np.random.SeedSequence([round_index, seed]).spawn(count)


class _Collection:
    def __init__(self, tables: Sequence[Table], max_workers: Optional[int] = None, seed: Optional[int] = None):
        self.tables = list(tables)
        self.max_workers = max_workers
        self.seed = seed

    def _map(self, fn: Callable, *args: Sequence) -> list:
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(fn, self.tables, *args))

    def __iter__(self):
        return iter(self.tables)

    def __len__(self):
        return len(self.tables)

    def names(self) -> List[str]:
        return [t.name() for t in self.tables]

    def max_padded_height(self) -> int:
        return max((t.padded_height for t in self.tables), default=0)

    def _seeds(self, seed, round_index: int) -> list:
        return _spawn_seeds(self.seed if seed is None else seed, len(self), round_index)


class BaseTableCollection(_Collection):
    """Base tables of one proof, all sharing one outer domain."""

    @classmethod
    def new_prover(cls, parameters: ProofParameters, traces: Dict[str, Sequence]) -> "BaseTableCollection":
        """Build prover-side tables from {table name: trace rows}.

        The outer domain is sized from the tallest padded trace.
        """
        from . import get_table_class

        max_height = max((pad_height(len(rows)) for rows in traces.values()), default=0)
        domain = parameters.fri_domain(max_height)
        tables = [
            get_table_class(name).new_prover(domain.generator, domain.size, parameters.num_randomizers, rows)
            for name, rows in traces.items()
        ]
        return cls(tables, parameters.max_workers, parameters.randomizer_seed)

    @classmethod
    def new_verifier(cls, parameters: ProofParameters, padded_heights: Dict[str, int]) -> "BaseTableCollection":
        """Build verifier-side tables from {table name: padded height}."""
        from . import get_table_class

        domain = parameters.fri_domain(max(padded_heights.values(), default=0))
        tables = [
            get_table_class(name).new_verifier(domain.generator, domain.size, parameters.num_randomizers, height)
            for name, height in padded_heights.items()
        ]
        return cls(tables, parameters.max_workers)

    def pad_all(self) -> None:
        self._map(lambda t: t.pad())
        logger.debug("padded %d tables, max padded height %d", len(self), self.max_padded_height())

    def codeword_tables(self, domain: EvaluationDomain, seed=None) -> List[Table]:
        """Base codewords of every table; seed defaults to the collection's randomizer seed."""
        seeds = self._seeds(seed, BASE_ROUND)
        return self._map(lambda t, s: t.codeword_table(domain, s), seeds)

    def extend_all(self, all_challenges: AllChallenges, all_initials: AllEndpoints) -> "ExtTableCollection":
        extended = self._map(lambda t: t.extend(all_challenges, all_initials))
        logger.debug("extended %d tables", len(extended))
        return ExtTableCollection(extended, self.max_workers, self.seed)


class ExtTableCollection(_Collection):
    """Extended tables of one proof; only exists once every table is extended."""

    def __init__(self, tables: Sequence[ExtensionTable], max_workers: Optional[int] = None,
                 seed: Optional[int] = None):
        super().__init__(tables, max_workers, seed)

    @classmethod
    def new_verifier(cls, parameters: ProofParameters, padded_heights: Dict[str, int],
                     all_initials: AllEndpoints) -> "ExtTableCollection":
        """Build verifier-side extended tables from padded heights and the disclosed initials."""
        from . import get_ext_table_class

        domain = parameters.fri_domain(max(padded_heights.values(), default=0))
        tables = [
            get_ext_table_class(name).new_verifier(
                domain.generator, domain.size, parameters.num_randomizers, height, all_initials,
            )
            for name, height in padded_heights.items()
        ]
        return cls(tables, parameters.max_workers)

    def ext_codeword_tables(self, domain: EvaluationDomain, seed=None) -> List[ExtensionTable]:
        """Extended codewords of every table; seed defaults to the collection's randomizer seed."""
        seeds = self._seeds(seed, EXTENSION_ROUND)
        return self._map(lambda t, s: t.ext_codeword_table(domain, s), seeds)

    def terminals(self) -> AllEndpoints:
        """Terminals of every accumulator, in table order."""
        flat = []
        for table in self.tables:
            if table.terminals is None:
                raise InvalidUsage("terminals are only known on the prover side", table=table.name())
            flat.extend(table.terminals)
        return AllTerminals.from_flat(flat)

    def all_boundary_constraints(self, challenges: AllChallenges) -> list:
        return [t.ext_boundary_constraints(challenges) for t in self.tables]

    def all_transition_constraints(self, challenges: AllChallenges) -> list:
        return [t.ext_transition_constraints(challenges) for t in self.tables]

    def all_terminal_constraints(self, challenges: AllChallenges, terminals: AllEndpoints) -> list:
        return [t.ext_terminal_constraints(challenges, terminals) for t in self.tables]
