"""Shared opcode definitions for the IntCode machine.

Keeping the canonical table in a single module prevents drift between the
decoder, the execution engine and the disassembler. Tests assert that every
consumer reads these tables unchanged.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple


class Operation(IntEnum):
    ADD = 1
    MULTIPLY = 2
    READ = 3
    WRITE = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    SET_RELATIVE_BASE = 9
    TERMINATE = 99


class ParameterMode(IntEnum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


# (mnemonic, operation, length in cells, value operands, writes a destination)
# Ordered so docs and tooling can iterate in a stable order.
OPCODE_LIST: Tuple[Tuple[str, Operation, int, int, bool], ...] = (
    ("ADD", Operation.ADD, 4, 2, True),
    ("MUL", Operation.MULTIPLY, 4, 2, True),
    ("IN", Operation.READ, 2, 0, True),
    ("OUT", Operation.WRITE, 2, 1, False),
    ("JNZ", Operation.JUMP_IF_TRUE, 3, 2, False),
    ("JZ", Operation.JUMP_IF_FALSE, 3, 2, False),
    ("LT", Operation.LESS_THAN, 4, 2, True),
    ("EQ", Operation.EQUALS, 4, 2, True),
    ("ARB", Operation.SET_RELATIVE_BASE, 2, 1, False),
    ("HALT", Operation.TERMINATE, 1, 0, False),
)

OPCODES: Mapping[str, Operation] = MappingProxyType(
    {mnemonic: op for mnemonic, op, _length, _values, _writes in OPCODE_LIST}
)
OPCODE_NAMES: Mapping[int, str] = MappingProxyType(
    {int(op): mnemonic for mnemonic, op, _length, _values, _writes in OPCODE_LIST}
)
INSTRUCTION_LENGTH: Mapping[Operation, int] = MappingProxyType(
    {op: length for _mnemonic, op, length, _values, _writes in OPCODE_LIST}
)
VALUE_COUNT: Mapping[Operation, int] = MappingProxyType(
    {op: values for _mnemonic, op, _length, values, _writes in OPCODE_LIST}
)
WRITES_MEMORY: frozenset = frozenset(op for _mnemonic, op, _length, _values, writes in OPCODE_LIST if writes)

__all__ = [
    "Operation",
    "ParameterMode",
    "OPCODE_LIST",
    "OPCODES",
    "OPCODE_NAMES",
    "INSTRUCTION_LENGTH",
    "VALUE_COUNT",
    "WRITES_MEMORY",
    "opcode_values",
    "lookup_operation",
]


def opcode_values() -> Iterable[int]:
    """Return all machine opcode numeric values."""

    return OPCODE_NAMES.keys()


def lookup_operation(code: int) -> Operation | None:
    """Return the Operation for *code*, or None when it is not a known opcode."""

    if code not in OPCODE_NAMES:
        return None
    return Operation(code)
