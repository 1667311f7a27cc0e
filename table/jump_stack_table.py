"""Jump stack table: the call/return stack of the VM.

Each row records one clock cycle of the jump stack: the clock, the current
instruction, the jump stack pointer, and the origin and destination of the
jump on top of the stack. The table is sorted by jsp, then clk.

The table declares no local transition constraints. Its discipline is
certified by a single permutation argument with the processor table, which
compresses (clk, ci, jsp, jso, jsd) into one value per row.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, List, Sequence

from primitives.field import FF, FF3
from primitives.mpolynomial import MPolynomial

from .base import Table
from .errors import ShapeMismatch
from .extension import ArgumentKind, ExtensionTable, RunningArgument, ScalarGroup

if TYPE_CHECKING:
    from .challenges_initials import AllChallenges, AllEndpoints


class JumpStackTableColumn(IntEnum):
    CLK = 0
    CI = 1
    JSP = 2
    JSO = 3
    JSD = 4
    PROCESSOR_PERM = 5


JUMP_STACK_TABLE_PERMUTATION_ARGUMENTS_COUNT = 1
JUMP_STACK_TABLE_EVALUATION_ARGUMENT_COUNT = 0
JUMP_STACK_TABLE_INITIALS_COUNT = (
    JUMP_STACK_TABLE_PERMUTATION_ARGUMENTS_COUNT + JUMP_STACK_TABLE_EVALUATION_ARGUMENT_COUNT
)

# clk, ci, jsp, jso, jsd weights plus the row weight
JUMP_STACK_TABLE_EXTENSION_CHALLENGE_COUNT = 6

BASE_WIDTH = 5
FULL_WIDTH = BASE_WIDTH + JUMP_STACK_TABLE_INITIALS_COUNT


@dataclass(frozen=True)
class JumpStackTableChallenges(ScalarGroup):
    """Challenges of the jump stack table, in JUMP_STACK_CHALLENGE_NAMES order.

    processor_perm_row_weight is the gamma of the permutation argument with
    the processor table; the other five condense a row into one value.
    """
    processor_perm_row_weight: FF3
    clk_weight: FF3
    ci_weight: FF3
    jsp_weight: FF3
    jso_weight: FF3
    jsd_weight: FF3


@dataclass(frozen=True)
class JumpStackTableEndpoints(ScalarGroup):
    """Initials (random, chosen by the prover) or terminals of the accumulators."""
    processor_perm_initial: FF3


JumpStackTableInitials = JumpStackTableEndpoints
JumpStackTableTerminals = JumpStackTableEndpoints

JUMP_STACK_CHALLENGE_NAMES = JumpStackTableChallenges.names()

PROCESSOR_PERMUTATION = RunningArgument(
    name="processor_perm",
    kind=ArgumentKind.PERMUTATION,
    columns=(
        JumpStackTableColumn.CLK,
        JumpStackTableColumn.CI,
        JumpStackTableColumn.JSP,
        JumpStackTableColumn.JSO,
        JumpStackTableColumn.JSD,
    ),
    weights=("clk_weight", "ci_weight", "jsp_weight", "jso_weight", "jsd_weight"),
    combiner="processor_perm_row_weight",
    initial="processor_perm_initial",
)


def _table_challenges(challenges) -> JumpStackTableChallenges:
    """Accept AllChallenges, the per-table group, or a flat sequence."""
    if isinstance(challenges, JumpStackTableChallenges):
        return challenges
    if hasattr(challenges, "jump_stack_table_challenges"):
        return challenges.jump_stack_table_challenges
    return JumpStackTableChallenges.from_flat(challenges)


def _table_endpoints(endpoints) -> Sequence:
    """Accept AllEndpoints, the per-table group, or a plain sequence."""
    if hasattr(endpoints, "jump_stack_table_endpoints"):
        return endpoints.jump_stack_table_endpoints
    return endpoints


class JumpStackTable(Table):
    BASE_WIDTH = BASE_WIDTH
    FULL_WIDTH = FULL_WIDTH
    CLK_COLUMN = JumpStackTableColumn.CLK

    def name(self) -> str:
        return "JumpStackTable"

    def pad(self) -> None:
        """Repeat the last row, with the same clk padding as the processor table."""
        self._pad_rows()

    def running_arguments(self) -> List[RunningArgument]:
        return [PROCESSOR_PERMUTATION]

    @staticmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        # Checked through the processor permutation instead.
        return []

    def base_transition_constraints(self) -> List[MPolynomial]:
        x = MPolynomial.variables(2 * self.base_width, FF)
        return self.transition_constraints_afo_named_variables(x[:self.base_width], x[self.base_width:])

    def extend(self, all_challenges: "AllChallenges", all_initials: "AllEndpoints") -> "ExtJumpStackTable":
        """Append the processor permutation column.

        Returns a new prover-side ExtJumpStackTable; this table is unchanged
        but cannot be extended again.
        """
        challenges = _table_challenges(all_challenges)
        extended, initials, terminals = self._extend_trace(challenges, _table_endpoints(all_initials))
        return ExtJumpStackTable(self.shape, extended, initials=initials, terminals=terminals)


class ExtJumpStackTable(ExtensionTable):
    BASE_WIDTH = BASE_WIDTH
    FULL_WIDTH = FULL_WIDTH
    CLK_COLUMN = JumpStackTableColumn.CLK

    @classmethod
    def new_verifier(cls, generator, order: int, num_randomizers: int, padded_height: int,
                     all_initials=None) -> "ExtJumpStackTable":
        """Shape-only extended table; initials are the ones disclosed by the prover."""
        table = super().new_verifier(generator, order, num_randomizers, padded_height)
        if all_initials is None:
            return table
        initials = list(_table_endpoints(all_initials))
        if len(initials) != JUMP_STACK_TABLE_INITIALS_COUNT:
            raise ShapeMismatch(
                "number of initials does not match running arguments", table=table.name(),
                expected=JUMP_STACK_TABLE_INITIALS_COUNT, actual=len(initials),
            )
        return cls(table.shape, initials=initials)

    def name(self) -> str:
        return "ExtJumpStackTable"

    def running_arguments(self) -> List[RunningArgument]:
        return [PROCESSOR_PERMUTATION]

    @staticmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        return JumpStackTable.transition_constraints_afo_named_variables(current, nxt)

    def base_transition_constraints(self) -> List[MPolynomial]:
        return self.lifted_transition_constraints()

    def ext_boundary_constraints(self, all_challenges: "AllChallenges") -> List[MPolynomial]:
        """Single-row constraints on row 0, over FULL_WIDTH variables."""
        return self.accumulator_boundary_constraints()

    def ext_transition_constraints(self, all_challenges: "AllChallenges") -> List[MPolynomial]:
        """Constraints over 2 * FULL_WIDTH variables (current row, next row)."""
        challenges = _table_challenges(all_challenges)
        return self.lifted_transition_constraints() + self.accumulator_transition_constraints(challenges)

    def ext_terminal_constraints(self, all_challenges: "AllChallenges",
                                 all_terminals: "AllEndpoints") -> List[MPolynomial]:
        """Single-row constraints on the last row, over FULL_WIDTH variables."""
        challenges = _table_challenges(all_challenges)
        return self.accumulator_terminal_constraints(challenges, _table_endpoints(all_terminals))
