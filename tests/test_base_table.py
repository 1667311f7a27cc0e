"""Tests for the table contract: shapes, padding, domains and base codewords.

Uses a small four-column clock table whose only rule is that the clock
either stays or advances by one between adjacent rows.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
import pytest

from primitives.domain import EvaluationDomain
from primitives.field import FF, FF3, SHIFT
from primitives.mpolynomial import MPolynomial
from primitives.polynomial import evaluate_on_subgroup
from table import DomainMismatch, InvalidUsage, ShapeMismatch, derive_omicron, pad_height
from table.base import Table, has_exact_order, pad_by_repeating_last_row
from table.extension import ArgumentKind, ExtensionTable, RunningArgument, ScalarGroup
from tests.conftest import all_zero


class ClockTable(Table):
    BASE_WIDTH = 4
    FULL_WIDTH = 4
    CLK_COLUMN = 0

    def name(self) -> str:
        return "ClockTable"

    def pad(self) -> None:
        self._pad_rows()

    @staticmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        clk, clk_next = current[0], nxt[0]
        return [(clk_next - clk) * (clk_next - clk - 1)]

    def base_transition_constraints(self) -> List[MPolynomial]:
        x = MPolynomial.variables(2 * self.base_width, FF)
        return self.transition_constraints_afo_named_variables(x[:self.base_width], x[self.base_width:])


CLOCK_ROWS = [
    [0, 10, 20, 30],
    [1, 11, 21, 31],
    [2, 12, 22, 32],
]


def clock_column(table: Table) -> List[int]:
    return [int(v) for v in table.data[:, 0]]


@pytest.fixture
def clock_table(domain) -> ClockTable:
    return ClockTable.new_prover(domain.generator, domain.size, 0, CLOCK_ROWS)


class TestHeights:

    @pytest.mark.parametrize("height,expected", [(0, 0), (1, 1), (2, 2), (3, 4), (5, 8), (8, 8), (17, 32)])
    def test_pad_height(self, height: int, expected: int) -> None:
        assert pad_height(height) == expected

    def test_derive_omicron(self) -> None:
        assert derive_omicron(0) == FF(1)
        assert derive_omicron(1) == FF(1)
        for padded_height in [2, 8, 256]:
            assert has_exact_order(derive_omicron(padded_height), padded_height)


class TestPadding:

    def test_repeats_last_row_with_previous_clock(self, clock_table) -> None:
        clock_table.pad()
        assert clock_table.height == 4
        assert clock_column(clock_table) == [0, 1, 2, 2]
        assert [int(v) for v in clock_table.data[3]] == [2, 12, 22, 32]

    def test_clock_keeps_counting_over_several_padding_rows(self, domain) -> None:
        rows = [[i, 0, 0, 0] for i in range(5)]
        table = ClockTable.new_prover(domain.generator, domain.size, 0, rows)
        table.pad()
        assert clock_column(table) == [0, 1, 2, 3, 4, 4, 5, 6]

    def test_idempotent(self, clock_table) -> None:
        clock_table.pad()
        once = clock_table.data.copy()
        clock_table.pad()
        assert np.array_equal(clock_table.data, once)

    def test_height_matches_declared_padded_height(self, domain) -> None:
        for height in range(1, 18):
            rows = [[i, 0, 0, 0] for i in range(height)]
            table = ClockTable.new_prover(domain.generator, domain.size, 0, rows)
            table.pad()
            assert table.height == table.padded_height == pad_height(height)

    def test_empty_trace_is_noop(self, domain) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, 0, [])
        table.pad()
        assert table.height == 0
        assert table.padded_height == 0
        assert table.omicron == FF(1)

    def test_padded_trace_satisfies_transition_constraints(self, domain) -> None:
        rows = [[i, 0, 0, 0] for i in range(5)]
        table = ClockTable.new_prover(domain.generator, domain.size, 0, rows)
        table.pad()
        assert all_zero(table.base_transition_residuals())

    def test_violation_is_detected(self, domain) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, 0, [[0, 0, 0, 0], [2, 0, 0, 0]])
        (residual,) = table.base_transition_residuals()
        assert residual[0] == FF(2)

    def test_helper_leaves_padded_data_alone(self) -> None:
        data = FF([[0, 1], [1, 1]])
        assert pad_by_repeating_last_row(data, 0) is data


class TestConstruction:

    def test_prover_and_verifier_agree(self, clock_table, domain) -> None:
        verifier = ClockTable.new_verifier(domain.generator, domain.size, 0, 4)
        assert verifier.padded_height == clock_table.padded_height
        assert verifier.omicron == clock_table.omicron
        assert not verifier.has_data()
        assert verifier.base_transition_constraints() == clock_table.base_transition_constraints()
        verifier.assert_same_domain(clock_table)

    def test_verifier_rejects_non_power_of_two_height(self, domain) -> None:
        with pytest.raises(ShapeMismatch):
            ClockTable.new_verifier(domain.generator, domain.size, 0, 6)
        assert ClockTable.new_verifier(domain.generator, domain.size, 0, 0).omicron == FF(1)

    def test_prover_rejects_wrong_width(self, domain) -> None:
        with pytest.raises(ShapeMismatch) as excinfo:
            ClockTable.new_prover(domain.generator, domain.size, 0, [[0, 1, 2]])
        assert excinfo.value.table == "ClockTable"
        assert excinfo.value.expected == 4
        assert excinfo.value.actual == 3

    def test_outer_domain_order_must_be_power_of_two(self, domain) -> None:
        with pytest.raises(DomainMismatch):
            ClockTable.new_prover(domain.generator, 24, 0, CLOCK_ROWS)

    def test_same_domain_check(self, clock_table) -> None:
        other_domain = EvaluationDomain.from_size(64)
        other = ClockTable.new_verifier(other_domain.generator, other_domain.size, 0, 4)
        with pytest.raises(DomainMismatch):
            clock_table.assert_same_domain(other)


class TestCodewords:

    @pytest.mark.parametrize("num_randomizers", [0, 2])
    def test_roundtrip_recovers_trace(self, domain, num_randomizers: int) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, num_randomizers, CLOCK_ROWS)
        table.pad()
        codewords = table.codeword_table(domain, seed=11)
        assert codewords.data.shape == (domain.size, 4)
        assert codewords.shape == table.shape
        assert codewords.is_codeword

        coefficients = domain.interpolate(codewords.data)
        assert np.count_nonzero(coefficients[table.padded_height + num_randomizers:]) == 0
        recovered = evaluate_on_subgroup(coefficients, table.omicron, table.padded_height)
        assert np.array_equal(recovered, table.data)

    def test_deterministic(self, domain) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, 0, CLOCK_ROWS)
        table.pad()
        assert np.array_equal(table.codeword_table(domain).data, table.codeword_table(domain).data)

        randomized = ClockTable.new_prover(domain.generator, domain.size, 1, CLOCK_ROWS)
        randomized.pad()
        first = randomized.codeword_table(domain, seed=3).data
        assert np.array_equal(first, randomized.codeword_table(domain, seed=3).data)
        assert not np.array_equal(first, randomized.codeword_table(domain, seed=4).data)

    def test_empty_table_gives_zero_codewords(self, domain) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, 1, [])
        codewords = table.codeword_table(domain)
        assert codewords.data.shape == (domain.size, 4)
        assert np.count_nonzero(codewords.data) == 0

    def test_wrong_domain(self, clock_table, domain) -> None:
        clock_table.pad()
        with pytest.raises(DomainMismatch):
            clock_table.codeword_table(EvaluationDomain.from_size(64))

    def test_domain_too_small(self) -> None:
        small = EvaluationDomain.from_size(4, SHIFT)
        table = ClockTable.new_prover(small.generator, small.size, 1, CLOCK_ROWS)
        table.pad()
        with pytest.raises(DomainMismatch):
            table.codeword_table(small)

    def test_randomizers_require_seed(self, domain) -> None:
        table = ClockTable.new_prover(domain.generator, domain.size, 1, CLOCK_ROWS)
        table.pad()
        with pytest.raises(InvalidUsage):
            table.codeword_table(domain)

    def test_requires_padding(self, clock_table, domain) -> None:
        with pytest.raises(InvalidUsage):
            clock_table.codeword_table(domain)

    def test_verifier_has_no_trace(self, domain) -> None:
        verifier = ClockTable.new_verifier(domain.generator, domain.size, 0, 4)
        with pytest.raises(InvalidUsage):
            verifier.codeword_table(domain)


# --- A table with one permutation and one evaluation argument ---

@dataclass(frozen=True)
class PairChallenges(ScalarGroup):
    gamma: FF3
    beta: FF3
    a_weight: FF3
    b_weight: FF3


@dataclass(frozen=True)
class PairEndpoints(ScalarGroup):
    perm_initial: FF3
    eval_initial: FF3


PAIR_ARGUMENTS = [
    RunningArgument("perm", ArgumentKind.PERMUTATION, (0, 1), ("a_weight", "b_weight"), "gamma", "perm_initial"),
    RunningArgument("eval", ArgumentKind.EVALUATION, (0, 1), ("a_weight", "b_weight"), "beta", "eval_initial"),
]


class PairTable(Table):
    BASE_WIDTH = 2
    FULL_WIDTH = 4
    CLK_COLUMN = 0

    def name(self) -> str:
        return "PairTable"

    def pad(self) -> None:
        self._pad_rows()

    def running_arguments(self) -> List[RunningArgument]:
        return PAIR_ARGUMENTS

    @staticmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        return [(nxt[0] - current[0]) * (nxt[0] - current[0] - 1)]

    def base_transition_constraints(self) -> List[MPolynomial]:
        x = MPolynomial.variables(2 * self.base_width, FF)
        return self.transition_constraints_afo_named_variables(x[:self.base_width], x[self.base_width:])

    def extend(self, challenges: PairChallenges, initials: PairEndpoints) -> "ExtPairTable":
        extended, initials, terminals = self._extend_trace(challenges, list(initials))
        return ExtPairTable(self.shape, extended, initials=initials, terminals=terminals)


class ExtPairTable(ExtensionTable):
    BASE_WIDTH = 2
    FULL_WIDTH = 4
    CLK_COLUMN = 0

    def name(self) -> str:
        return "ExtPairTable"

    def running_arguments(self) -> List[RunningArgument]:
        return PAIR_ARGUMENTS

    @staticmethod
    def transition_constraints_afo_named_variables(current, nxt) -> List[MPolynomial]:
        return PairTable.transition_constraints_afo_named_variables(current, nxt)

    def base_transition_constraints(self) -> List[MPolynomial]:
        return self.lifted_transition_constraints()


# gamma = 13, beta = 5, weights (2, 3); rows compress to 5 and 10
PAIR_ROWS = [[1, 1], [2, 2]]
PAIR_CHALLENGES = PairChallenges.from_flat([13, 5, 2, 3])
PAIR_INITIALS = PairEndpoints.from_flat([1, 1])


@pytest.fixture
def pair_table(domain) -> ExtPairTable:
    table = PairTable.new_prover(domain.generator, domain.size, 0, PAIR_ROWS)
    table.pad()
    return table.extend(PAIR_CHALLENGES, PAIR_INITIALS)


class TestRunningArguments:

    def test_one_column_per_argument(self, pair_table) -> None:
        assert pair_table.full_width == 4
        assert pair_table.data.shape == (2, 4)
        assert np.array_equal(pair_table.data[:, :2], FF3(PAIR_ROWS))

    def test_permutation_column(self, pair_table) -> None:
        # 1 -> 1 * (13 - 5) = 8 -> 8 * (13 - 10) = 24
        assert np.array_equal(pair_table.data[:, 2], FF3([1, 8]))
        assert pair_table.terminals[0] == FF3(24)

    def test_evaluation_column(self, pair_table) -> None:
        # 1 -> 1 * 5 + 5 = 10 -> 10 * 5 + 10 = 60
        assert np.array_equal(pair_table.data[:, 3], FF3([1, 10]))
        assert pair_table.terminals[1] == FF3(60)

    def test_all_constraints_hold(self, pair_table) -> None:
        boundary = pair_table.accumulator_boundary_constraints()
        transition = (pair_table.lifted_transition_constraints()
                      + pair_table.accumulator_transition_constraints(PAIR_CHALLENGES))
        terminal = pair_table.accumulator_terminal_constraints(PAIR_CHALLENGES, pair_table.terminals)
        assert (len(boundary), len(transition), len(terminal)) == (2, 3, 2)
        assert all_zero(pair_table.boundary_residuals(boundary))
        assert all_zero(pair_table.transition_residuals(transition))
        assert all_zero(pair_table.terminal_residuals(terminal))

    def test_swapped_rows_change_only_the_evaluation_terminal(self, domain) -> None:
        table = PairTable.new_prover(domain.generator, domain.size, 0, [[1, 2], [0, 1]])
        table.pad()
        swapped = PairTable.new_prover(domain.generator, domain.size, 0, [[0, 1], [1, 2]])
        swapped.pad()
        a = table.extend(PAIR_CHALLENGES, PAIR_INITIALS).terminals
        b = swapped.extend(PAIR_CHALLENGES, PAIR_INITIALS).terminals
        assert a[0] == b[0]
        assert a[1] != b[1]

    def test_wrong_evaluation_terminal_is_detected(self, pair_table) -> None:
        terminals = [pair_table.terminals[0], pair_table.terminals[1] + FF3(1)]
        terminal = pair_table.accumulator_terminal_constraints(PAIR_CHALLENGES, terminals)
        residuals = pair_table.terminal_residuals(terminal)
        assert residuals[0] == FF3(0)
        assert residuals[1] != FF3(0)

    def test_base_table_records_extension(self, domain) -> None:
        table = PairTable.new_prover(domain.generator, domain.size, 0, PAIR_ROWS)
        table.pad()
        assert not table.is_extended()
        table.extend(PAIR_CHALLENGES, PAIR_INITIALS)
        assert table.is_extended()
        with pytest.raises(InvalidUsage):
            table.extend(PAIR_CHALLENGES, PAIR_INITIALS)
