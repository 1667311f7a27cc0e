"""VM tables: base traces, running-argument extension and low-degree extension.

Each table kind registers under its name() so collections can be built from
{name: trace} or {name: padded height} maps.
"""

from .base import Table, TableShape, derive_omicron, is_power_of_two, pad_height
from .challenges_initials import AllChallenges, AllEndpoints, AllInitials, AllTerminals
from .collection import BaseTableCollection, ExtTableCollection
from .errors import ArithmetizationError, DomainMismatch, InvalidUsage, ShapeMismatch
from .extension import ArgumentKind, ExtensionTable, RunningArgument
from .jump_stack_table import (
    JUMP_STACK_CHALLENGE_NAMES,
    ExtJumpStackTable,
    JumpStackTable,
    JumpStackTableChallenges,
    JumpStackTableColumn,
    JumpStackTableEndpoints,
    JumpStackTableInitials,
)
from .parameters import ProofParameters

# Registry mapping table names to base table classes
TABLE_REGISTRY: dict[str, type[Table]] = {
    "JumpStackTable": JumpStackTable,
}


def get_table_class(name: str) -> type[Table]:
    """Get the base table class registered under `name`.

    Raises:
        KeyError: If no table is registered under that name
    """
    if name in TABLE_REGISTRY:
        return TABLE_REGISTRY[name]
    raise KeyError(
        f"No table registered as '{name}'. "
        f"Available: {list(TABLE_REGISTRY.keys())}"
    )


# Registry mapping base table names to their extended table classes
EXT_TABLE_REGISTRY: dict[str, type[ExtensionTable]] = {
    "JumpStackTable": ExtJumpStackTable,
}


def get_ext_table_class(name: str) -> type[ExtensionTable]:
    """Get the extended table class of the base table registered under `name`.

    Raises:
        KeyError: If no table is registered under that name
    """
    if name in EXT_TABLE_REGISTRY:
        return EXT_TABLE_REGISTRY[name]
    raise KeyError(
        f"No extended table registered as '{name}'. "
        f"Available: {list(EXT_TABLE_REGISTRY.keys())}"
    )


__all__ = [
    "Table",
    "TableShape",
    "ExtensionTable",
    "RunningArgument",
    "ArgumentKind",
    "derive_omicron",
    "pad_height",
    "is_power_of_two",
    "JumpStackTable",
    "ExtJumpStackTable",
    "JumpStackTableColumn",
    "JumpStackTableChallenges",
    "JumpStackTableEndpoints",
    "JumpStackTableInitials",
    "JUMP_STACK_CHALLENGE_NAMES",
    "AllChallenges",
    "AllEndpoints",
    "AllInitials",
    "AllTerminals",
    "BaseTableCollection",
    "ExtTableCollection",
    "ProofParameters",
    "ArithmetizationError",
    "ShapeMismatch",
    "DomainMismatch",
    "InvalidUsage",
    "TABLE_REGISTRY",
    "get_table_class",
    "EXT_TABLE_REGISTRY",
    "get_ext_table_class",
]
