"""Running arguments and the extended-table contract.

A running argument folds every row of a table into one accumulator column.
Two tables that share an argument end with equal terminals exactly when
they contain the same rows (permutation) or the same sequence (evaluation).

Column i of an accumulator holds acc_i, the value *before* row i is folded
in; the terminal is the value after the last row:

    permutation: acc_{i+1} = acc_i * (gamma - compressed(row_i))
    evaluation:  acc_{i+1} = acc_i * beta + compressed(row_i)

where compressed(row) = sum_c weight_c * row[c].
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import List, Sequence, Tuple

from primitives.domain import EvaluationDomain
from primitives.field import FF3, lift, random_ff3
from primitives.mpolynomial import MPolynomial

from .base import Table, TableShape, first_row, last_row
from .errors import InvalidUsage, ShapeMismatch

logger = logging.getLogger(__name__)


class ArgumentKind(Enum):
    PERMUTATION = "permutation"
    EVALUATION = "evaluation"


@dataclass(frozen=True)
class RunningArgument:
    """One accumulator column.

    Attributes:
        name: Identifier of the argument (e.g. 'processor_perm')
        kind: Permutation or evaluation
        columns: Base columns folded into the accumulator
        weights: Challenge names of the per-column weights, same order as columns
        combiner: Challenge name of gamma (permutation) or beta (evaluation)
        initial: Name of the initial value in the table's initials
    """
    name: str
    kind: ArgumentKind
    columns: Tuple[int, ...]
    weights: Tuple[str, ...]
    combiner: str
    initial: str

    def weight_values(self, challenges) -> list:
        return [getattr(challenges, w) for w in self.weights]

    def combiner_value(self, challenges):
        return getattr(challenges, self.combiner)

    def compress(self, row, weights):
        """sum_c weights[c] * row[columns[c]].

        row is indexable by column and may hold scalars, whole columns or
        polynomials.
        """
        total = None
        for column, weight in zip(self.columns, weights):
            term = row[column] * weight
            total = term if total is None else total + term
        return total

    def step(self, accumulator, compressed, combiner):
        """Fold one compressed row into the accumulator."""
        if self.kind is ArgumentKind.PERMUTATION:
            return accumulator * (combiner - compressed)
        return accumulator * combiner + compressed

    def fold(self, lifted: FF3, challenges, initial: FF3):
        """Run the accumulator over all rows of `lifted`.

        Returns (column, terminal): column[i] is the accumulator before row i.
        """
        columns = [lifted[:, i] for i in range(lifted.shape[1])]
        compressed = self.compress(columns, self.weight_values(challenges))
        combiner = self.combiner_value(challenges)

        column = FF3.Zeros(len(lifted))
        accumulator = initial
        for i in range(len(lifted)):
            column[i] = accumulator
            accumulator = self.step(accumulator, compressed[i], combiner)
        return column, accumulator


# --- Named scalar groups ---

class ScalarGroup:
    """Mixin for frozen dataclasses of named FF3 scalars.

    Iteration and from_flat() follow field declaration order, which is the
    documented name -> index mapping shared by prover and verifier.
    """

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, lift(getattr(self, f.name)))

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_flat(cls, values: Sequence):
        values = list(values)
        if len(values) != len(cls.names()):
            raise ShapeMismatch(
                f"wrong number of values for {cls.__name__}",
                expected=len(cls.names()), actual=len(values),
            )
        return cls(*values)

    @classmethod
    def sample(cls, seed=None):
        """Fresh uniformly random values (stand-in for sponge output)."""
        return cls.from_flat(list(random_ff3(len(cls.names()), seed)))

    def __iter__(self):
        return (getattr(self, name) for name in self.names())

    def __len__(self):
        return len(self.names())


# --- Extended table contract ---

class ExtensionTable(Table):
    """A table with its accumulator columns appended.

    Holds the initials the accumulators started from (needed by the boundary
    constraints) and, on the prover side, the terminals they ended with.
    """

    def __init__(self, shape: TableShape, data=None, is_codeword: bool = False,
                 initials: Sequence = None, terminals: Sequence = None):
        super().__init__(shape, data, is_codeword)
        self.initials = None if initials is None else [lift(v) for v in initials]
        self.terminals = None if terminals is None else [lift(v) for v in terminals]
        self._extended = True

    def pad(self) -> None:
        raise InvalidUsage("an extended table cannot be padded", table=self.name())

    # --- Constraint builders ---

    def _accumulator_columns(self) -> List[int]:
        return [self.base_width + k for k in range(len(self.running_arguments()))]

    def accumulator_boundary_constraints(self) -> List[MPolynomial]:
        """Row 0: every accumulator equals its initial."""
        if self.initials is None:
            raise InvalidUsage("initials unknown; boundary constraints need them", table=self.name())
        x = MPolynomial.variables(self.full_width, FF3)
        return [
            x[column] - MPolynomial.constant(initial, FF3)
            for column, initial in zip(self._accumulator_columns(), self.initials)
        ]

    def lifted_transition_constraints(self) -> List[MPolynomial]:
        """Base transition rules, re-expressed over the full-width row pair."""
        x = MPolynomial.variables(2 * self.full_width, FF3)
        current, nxt = x[:self.base_width], x[self.full_width:self.full_width + self.base_width]
        return self.transition_constraints_afo_named_variables(current, nxt)

    def accumulator_transition_constraints(self, challenges) -> List[MPolynomial]:
        """acc' = step(acc, compressed(row)) for every running argument."""
        x = MPolynomial.variables(2 * self.full_width, FF3)
        current, nxt = x[:self.full_width], x[self.full_width:]
        polynomials = []
        for column, argument in zip(self._accumulator_columns(), self.running_arguments()):
            compressed, combiner = self._symbolic_compression(argument, current, challenges)
            polynomials.append(nxt[column] - argument.step(current[column], compressed, combiner))
        return polynomials

    def accumulator_terminal_constraints(self, challenges, terminals: Sequence) -> List[MPolynomial]:
        """Folding the last row into each accumulator yields its terminal."""
        terminals = list(terminals)
        if len(terminals) != len(self.running_arguments()):
            raise ShapeMismatch(
                "number of terminals does not match running arguments", table=self.name(),
                expected=len(self.running_arguments()), actual=len(terminals),
            )
        x = MPolynomial.variables(self.full_width, FF3)
        polynomials = []
        for column, argument, terminal in zip(self._accumulator_columns(), self.running_arguments(), terminals):
            compressed, combiner = self._symbolic_compression(argument, x, challenges)
            polynomials.append(
                argument.step(x[column], compressed, combiner) - MPolynomial.constant(lift(terminal), FF3)
            )
        return polynomials

    @staticmethod
    def _symbolic_compression(argument: RunningArgument, row, challenges):
        weights = [MPolynomial.constant(w, FF3) for w in argument.weight_values(challenges)]
        combiner = MPolynomial.constant(argument.combiner_value(challenges), FF3)
        return argument.compress(row, weights), combiner

    # --- Constraint checking ---

    def _require_rows(self):
        if self.data is None or self.is_codeword:
            raise InvalidUsage("table holds no extended rows", table=self.name())
        if len(self.data) == 0:
            raise InvalidUsage("table has no rows to check", table=self.name())

    def boundary_residuals(self, constraints: Sequence[MPolynomial]) -> list:
        """Evaluate single-row constraints on the first row."""
        self._require_rows()
        row = first_row(self.data)
        return [c.evaluate(row) for c in constraints]

    def terminal_residuals(self, constraints: Sequence[MPolynomial]) -> list:
        """Evaluate single-row constraints on the last row."""
        self._require_rows()
        row = last_row(self.data)
        return [c.evaluate(row) for c in constraints]

    # --- Low-degree extension ---

    def ext_codeword_table(self, domain: EvaluationDomain, seed=None) -> "ExtensionTable":
        """Low-degree extend every extended column over `domain`.

        Same shape, codewords of shape (domain.size, full_width) in place
        of rows. A table with padded height 0 yields all-zero codewords.
        """
        if self.data is None or self.is_codeword:
            raise InvalidUsage("no extended trace to low-degree extend", table=self.name())
        codewords = self._low_degree_extend(self.data, self.full_width, FF3, domain, seed)
        return type(self)(self.shape, codewords, is_codeword=True,
                          initials=self.initials, terminals=self.terminals)

