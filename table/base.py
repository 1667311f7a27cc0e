"""Table contract shared by every base and extended table.

A table is a shape (widths, padded height, trace and outer domains) plus,
on the prover side, a matrix of rows. The verifier builds the same table
from the shape alone and must get identical answers to every shape and
constraint query.

Lifecycle of a prover-side table:
    new_prover(trace) -> pad() -> extend(challenges, initials) -> ext_codeword_table(domain)

Example:
    table = JumpStackTable.new_prover(generator, order, 0, rows)
    table.pad()
    ext = table.extend(all_challenges, all_initials)
    codewords = ext.ext_codeword_table(EvaluationDomain(generator, order, SHIFT))
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Sequence

import numpy as np

from primitives.domain import EvaluationDomain
from primitives.field import FF, FF3, get_omega, lift, log2_exact, random_ff, random_ff3, to_ff
from primitives.mpolynomial import MPolynomial
from primitives.polynomial import add_vanishing_multiple, to_coefficients

from .errors import DomainMismatch, InvalidUsage, ShapeMismatch

if TYPE_CHECKING:
    from .extension import RunningArgument

logger = logging.getLogger(__name__)


# --- Heights and trace domains ---

def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def pad_height(height: int) -> int:
    """Smallest power of two >= height; 0 stays 0."""
    if height == 0:
        return 0
    return 1 << (height - 1).bit_length()


def derive_omicron(padded_height: int) -> FF:
    """Generator of the trace domain: a root of unity of order exactly padded_height.

    A table that never executed (padded_height 0) gets omicron = 1.
    """
    if padded_height == 0:
        return FF(1)
    return FF(get_omega(log2_exact(padded_height)))


def has_exact_order(element: FF, order: int) -> bool:
    """True if element^order == 1 and no smaller power-of-two power is 1."""
    if order == 0:
        return int(element) == 1
    if int(element ** order) != 1:
        return False
    return order == 1 or int(element ** (order // 2)) != 1


def pad_by_repeating_last_row(data: FF, clk_column: int) -> FF:
    """Return data grown to the next power of two.

    Each appended row copies the last row and sets its clock to
    (height before the append - 1). Empty and already padded data is
    returned unchanged.
    """
    height = len(data)
    target = pad_height(height)
    if target == height:
        return data
    padded = FF.Zeros((target, data.shape[1]))
    padded[:height] = data
    padded[height:] = data[height - 1]
    padded[height:, clk_column] = FF(np.arange(height - 1, target - 1, dtype=np.uint64))
    return padded


# --- Shape ---

@dataclass(frozen=True)
class TableShape:
    """Everything the verifier knows about a table."""
    base_width: int
    full_width: int
    padded_height: int
    num_randomizers: int
    omicron: FF
    generator: FF
    order: int


# --- Table contract ---

class Table(ABC):
    """One base or extended table.

    Subclasses set BASE_WIDTH, FULL_WIDTH and CLK_COLUMN and implement name(),
    pad() and the transition constraints. `data` is None on the verifier
    side; after low-degree extension it holds codewords instead of rows.
    """

    BASE_WIDTH: int
    FULL_WIDTH: int
    CLK_COLUMN: int = 0

    def __init__(self, shape: TableShape, data=None, is_codeword: bool = False):
        self.shape = shape
        self.data = data
        self.is_codeword = is_codeword
        self._extended = False

    # --- Construction ---

    @classmethod
    def _check_outer_domain(cls, generator, order: int, num_randomizers: int):
        if num_randomizers < 0:
            raise ShapeMismatch(
                "num_randomizers must be non-negative", table=cls.__name__,
                expected=">= 0", actual=num_randomizers,
            )
        if not is_power_of_two(order):
            raise DomainMismatch(
                "outer domain order must be a power of two", table=cls.__name__,
                expected="power of two", actual=order,
            )

    @classmethod
    def _shape_for(cls, generator, order: int, num_randomizers: int, padded_height: int) -> TableShape:
        return TableShape(
            base_width=cls.BASE_WIDTH,
            full_width=cls.FULL_WIDTH,
            padded_height=padded_height,
            num_randomizers=num_randomizers,
            omicron=derive_omicron(padded_height),
            generator=FF(int(generator)),
            order=int(order),
        )

    @classmethod
    def new_prover(cls, generator, order: int, num_randomizers: int, trace):
        """Build a prover-side table owning `trace` (rows of BASE_WIDTH values)."""
        cls._check_outer_domain(generator, order, num_randomizers)
        data = _as_trace(trace, cls.BASE_WIDTH, cls.__name__)
        shape = cls._shape_for(generator, order, num_randomizers, pad_height(len(data)))
        logger.debug("%s: prover table with %d rows, padded height %d",
                     cls.__name__, len(data), shape.padded_height)
        return cls(shape, data)

    @classmethod
    def new_verifier(cls, generator, order: int, num_randomizers: int, padded_height: int):
        """Build a verifier-side table from its shape; holds no rows."""
        cls._check_outer_domain(generator, order, num_randomizers)
        if padded_height != 0 and not is_power_of_two(padded_height):
            raise ShapeMismatch(
                "padded height must be 0 or a power of two", table=cls.__name__,
                expected="0 or power of two", actual=padded_height,
            )
        return cls(cls._shape_for(generator, order, num_randomizers, padded_height))

    # --- Contract ---

    @abstractmethod
    def name(self) -> str:
        """Human-readable identifier, used in diagnostics only."""

    @abstractmethod
    def pad(self) -> None:
        """Grow the trace to padded_height rows."""

    @abstractmethod
    def base_transition_constraints(self) -> List[MPolynomial]:
        """Constraints over 2 * base_width variables (current row, next row)."""

    @staticmethod
    @abstractmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        """Transition constraints as a function of the base columns of two rows.

        `current` and `nxt` are sequences of BASE_WIDTH polynomials, so the
        same rules serve the base table (FF variables) and the extended
        table (FF3 variables of the wider row).
        """

    def running_arguments(self) -> List["RunningArgument"]:
        """Running arguments this table takes part in, in column order."""
        return []

    # --- Shape accessors ---

    @property
    def base_width(self) -> int:
        return self.shape.base_width

    @property
    def full_width(self) -> int:
        return self.shape.full_width

    @property
    def padded_height(self) -> int:
        return self.shape.padded_height

    @property
    def num_randomizers(self) -> int:
        return self.shape.num_randomizers

    @property
    def omicron(self) -> FF:
        return self.shape.omicron

    @property
    def generator(self) -> FF:
        return self.shape.generator

    @property
    def order(self) -> int:
        return self.shape.order

    @property
    def height(self) -> int:
        """Number of rows currently held (0 on the verifier side)."""
        return 0 if self.data is None else len(self.data)

    def has_data(self) -> bool:
        return self.data is not None

    def is_extended(self) -> bool:
        return self._extended

    def assert_same_domain(self, other: "Table") -> None:
        """Raise DomainMismatch unless other agrees on omicron and outer domain.

        Only tables of the same name and padded height are compared.
        """
        if other.name() != self.name() or other.padded_height != self.padded_height:
            return
        mine = (int(self.omicron), int(self.generator), self.order)
        theirs = (int(other.omicron), int(other.generator), other.order)
        if mine != theirs:
            raise DomainMismatch(
                "tables disagree on (omicron, generator, order)", table=self.name(),
                expected=mine, actual=theirs,
            )

    # --- Padding ---

    def _pad_rows(self) -> None:
        if self.data is None or self.is_codeword:
            logger.debug("%s: nothing to pad", self.name())
            return
        before = len(self.data)
        self.data = pad_by_repeating_last_row(self.data, self.CLK_COLUMN)
        logger.debug("%s: padded %d -> %d rows", self.name(), before, len(self.data))

    # --- Constraint checking ---

    def _check_rows(self, width: int):
        if self.data is None or self.is_codeword:
            raise InvalidUsage("table holds no trace rows", table=self.name())
        if self.data.shape[1] != width:
            raise ShapeMismatch(
                "row width does not match constraint width", table=self.name(),
                expected=width, actual=self.data.shape[1],
            )

    def transition_residuals(self, constraints: Sequence[MPolynomial]) -> list:
        """Evaluate transition constraints on every (row, next row) pair.

        Returns one array of length height - 1 per constraint; a trace
        satisfies the constraints iff every entry is zero.
        """
        if self.data is None or self.is_codeword:
            raise InvalidUsage("table holds no trace rows", table=self.name())
        width = self.data.shape[1]
        point = [self.data[:-1, i] for i in range(width)] + [self.data[1:, i] for i in range(width)]
        return [c.evaluate(point) for c in constraints]

    def base_transition_residuals(self) -> list:
        self._check_rows(self.base_width)
        return self.transition_residuals(self.base_transition_constraints())

    # --- Low-degree extension ---

    def _check_evaluation_domain(self, domain: EvaluationDomain) -> None:
        if int(domain.generator) != int(self.generator) or domain.size != self.order:
            raise DomainMismatch(
                "evaluation domain differs from the declared outer domain", table=self.name(),
                expected=(int(self.generator), self.order),
                actual=(int(domain.generator), domain.size),
            )
        needed = self.padded_height + self.num_randomizers
        if self.padded_height > 0 and domain.size < needed:
            raise DomainMismatch(
                "evaluation domain too small for padded height plus randomizers",
                table=self.name(), expected=f">= {needed}", actual=domain.size,
            )
        if not has_exact_order(self.omicron, self.padded_height):
            raise DomainMismatch(
                "omicron does not generate the trace domain", table=self.name(),
                expected=self.padded_height, actual=int(self.omicron),
            )

    def interpolate_columns(self, data, seed=None):
        """Coefficients of the trace-domain interpolants of every column.

        With num_randomizers > 0 each column polynomial gets a random multiple
        of the trace-domain vanishing polynomial added, so it still agrees
        with the trace on {omicron^i} but has degree < padded_height +
        num_randomizers. The randomizers are drawn from `seed`, which is
        required then: equal traces must give equal codewords.
        """
        coefficients = to_coefficients(data, self.omicron)
        if self.num_randomizers == 0:
            return coefficients
        if seed is None:
            raise InvalidUsage(
                "randomized low-degree extension needs a seed", table=self.name(),
                expected="seed", actual=None,
            )
        shape = (self.num_randomizers, data.shape[1])
        randomizers = random_ff3(shape, seed) if isinstance(data, FF3) else random_ff(shape, seed)
        return add_vanishing_multiple(coefficients, randomizers)

    def _low_degree_extend(self, data, width: int, field, domain: EvaluationDomain, seed=None):
        self._check_evaluation_domain(domain)
        if self.padded_height == 0:
            return field.Zeros((domain.size, width))
        if len(data) != self.padded_height:
            raise InvalidUsage(
                "trace must be padded before low-degree extension", table=self.name(),
                expected=self.padded_height, actual=len(data),
            )
        codewords = domain.evaluate(self.interpolate_columns(data, seed))
        logger.debug("%s: %d columns extended to %d points", self.name(), width, domain.size)
        return codewords

    def codeword_table(self, domain: EvaluationDomain, seed=None) -> "Table":
        """Low-degree extend the base columns over `domain`.

        Returns a new table of the same shape holding codewords of shape
        (domain.size, base_width).
        """
        if self.data is None or self.is_codeword:
            raise InvalidUsage("no base trace to low-degree extend", table=self.name())
        codewords = self._low_degree_extend(self.data, self.base_width, FF, domain, seed)
        return type(self)(self.shape, codewords, is_codeword=True)

    def ext_codeword_table(self, domain: EvaluationDomain, seed=None) -> "Table":
        """Extended codewords; only an extended table has any."""
        raise InvalidUsage("table has not been extended", table=self.name())

    # --- Extension ---

    def _extend_trace(self, challenges, initials: Sequence):
        """Append one accumulator column per running argument.

        Returns (extended rows as FF3 of shape (height, full_width), initials
        as FF3, terminals).
        """
        arguments = self.running_arguments()
        if self.is_extended():
            raise InvalidUsage("table was already extended", table=self.name())
        if self.data is None or self.is_codeword:
            raise InvalidUsage("extension needs the prover-side trace", table=self.name())
        initials = [lift(v) for v in initials]
        if len(initials) != len(arguments):
            raise ShapeMismatch(
                "number of initials does not match running arguments", table=self.name(),
                expected=len(arguments), actual=len(initials),
            )
        if len(self.data) != self.padded_height:
            raise InvalidUsage(
                "trace must be padded before extension", table=self.name(),
                expected=self.padded_height, actual=len(self.data),
            )

        lifted = lift(self.data)
        extended = FF3.Zeros((len(lifted), self.full_width))
        extended[:, :self.base_width] = lifted

        terminals = []
        for offset, (argument, initial) in enumerate(zip(arguments, initials)):
            column, terminal = argument.fold(lifted, challenges, initial)
            extended[:, self.base_width + offset] = column
            terminals.append(terminal)
            logger.debug("%s: %s argument %s folded over %d rows",
                         self.name(), argument.kind.value, argument.name, len(lifted))

        self._extended = True
        return extended, initials, terminals


def _as_trace(trace, width: int, table: str) -> FF:
    """Copy trace rows into an FF array of shape (height, width)."""
    if isinstance(trace, FF):
        if trace.ndim != 2 or trace.shape[1] != width:
            raise ShapeMismatch(
                "trace width does not match base width", table=table,
                expected=width, actual=trace.shape[-1] if trace.ndim else None,
            )
        return trace.copy()
    rows = [list(row) for row in trace]
    for row in rows:
        if len(row) != width:
            raise ShapeMismatch(
                "trace width does not match base width", table=table,
                expected=width, actual=len(row),
            )
    if not rows:
        return FF.Zeros((0, width))
    return to_ff(rows)


def first_row(data) -> list:
    return [data[0, i] for i in range(data.shape[1])]


def last_row(data) -> list:
    return [data[-1, i] for i in range(data.shape[1])]

