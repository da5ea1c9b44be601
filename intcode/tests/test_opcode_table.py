from intcode.decoder import decode
from intcode.memory import Memory
from intcode.opcodes import (
    INSTRUCTION_LENGTH,
    OPCODE_LIST,
    OPCODE_NAMES,
    OPCODES,
    VALUE_COUNT,
    WRITES_MEMORY,
    Operation,
    lookup_operation,
    opcode_values,
)


def test_every_operation_has_one_table_entry():
    ops = [op for _mnemonic, op, _length, _values, _writes in OPCODE_LIST]
    assert sorted(ops) == sorted(Operation)
    assert len(set(OPCODES)) == len(OPCODE_LIST)


def test_instruction_lengths():
    assert INSTRUCTION_LENGTH[Operation.ADD] == 4
    assert INSTRUCTION_LENGTH[Operation.MULTIPLY] == 4
    assert INSTRUCTION_LENGTH[Operation.READ] == 2
    assert INSTRUCTION_LENGTH[Operation.WRITE] == 2
    assert INSTRUCTION_LENGTH[Operation.JUMP_IF_TRUE] == 3
    assert INSTRUCTION_LENGTH[Operation.JUMP_IF_FALSE] == 3
    assert INSTRUCTION_LENGTH[Operation.LESS_THAN] == 4
    assert INSTRUCTION_LENGTH[Operation.EQUALS] == 4
    assert INSTRUCTION_LENGTH[Operation.SET_RELATIVE_BASE] == 2
    assert INSTRUCTION_LENGTH[Operation.TERMINATE] == 1


def test_operand_counts_cover_length():
    for _mnemonic, op, length, values, writes in OPCODE_LIST:
        assert values + int(writes) == length - 1
        assert VALUE_COUNT[op] == values
        assert (op in WRITES_MEMORY) is writes


def test_lookup_operation():
    assert lookup_operation(1) is Operation.ADD
    assert lookup_operation(99) is Operation.TERMINATE
    assert lookup_operation(0) is None
    assert lookup_operation(10) is None
    assert sorted(opcode_values()) == [1, 2, 3, 4, 5, 6, 7, 8, 9, 99]


def test_decoder_reads_lengths_from_table():
    for _mnemonic, op, length, _values, _writes in OPCODE_LIST:
        instruction = decode(Memory([int(op), 0, 0, 0]), 0)
        assert instruction.length == length
        assert OPCODE_NAMES[int(instruction.operation)] == _mnemonic
