"""Shared fixtures for table tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# tests/ sits next to the packages, so the parent is the repository root
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from primitives.domain import EvaluationDomain  # noqa: E402
from primitives.field import SHIFT  # noqa: E402
from table import AllChallenges, AllInitials, JumpStackTable  # noqa: E402

ORDER = 32

# (clk, ci, jsp, jso, jsd), sorted by jsp then clk
JUMP_STACK_ROWS = [
    [0, 7, 0, 0, 0],
    [3, 9, 1, 4, 12],
    [5, 2, 1, 4, 12],
    [4, 9, 2, 13, 20],
    [6, 2, 2, 13, 20],
]


def all_zero(values) -> bool:
    """True if every residual (scalar or array) is zero."""
    return all(np.count_nonzero(v) == 0 for v in values)


@pytest.fixture
def domain() -> EvaluationDomain:
    return EvaluationDomain.from_size(ORDER, SHIFT)


@pytest.fixture
def challenges() -> AllChallenges:
    return AllChallenges.sample(seed=1)


@pytest.fixture
def initials() -> AllInitials:
    return AllInitials.sample(seed=2)


@pytest.fixture
def jump_stack_table(domain) -> JumpStackTable:
    """Prover-side table over JUMP_STACK_ROWS, not yet padded."""
    return JumpStackTable.new_prover(domain.generator, domain.size, 0, JUMP_STACK_ROWS)


@pytest.fixture
def padded_jump_stack_table(jump_stack_table) -> JumpStackTable:
    jump_stack_table.pad()
    return jump_stack_table
