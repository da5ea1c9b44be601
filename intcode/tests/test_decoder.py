import pytest

from intcode.decoder import decode, parameter_mode
from intcode.errors import AddressOutOfRangeError, InvalidOpcodeError, InvalidParameterModeError
from intcode.memory import Memory
from intcode.opcodes import Operation, ParameterMode


def _decode(program, ip=0):
    return decode(Memory(program), ip)


def test_mode_digits():
    assert parameter_mode(1002, 0) == 0
    assert parameter_mode(1002, 1) == 1
    assert parameter_mode(1002, 2) == 0
    assert parameter_mode(21101, 2) == 2
    assert parameter_mode(99, 0) == 0


def test_decode_mixed_modes():
    instruction = _decode([1002, 4, 3, 4, 33])
    assert instruction.operation is Operation.MULTIPLY
    assert instruction.length == 4
    assert [p.mode for p in instruction.params] == [ParameterMode.POSITION, ParameterMode.IMMEDIATE, ParameterMode.POSITION]
    assert [p.raw for p in instruction.values] == [4, 3]
    assert instruction.destination.raw == 4


def test_relative_destination_allowed():
    instruction = _decode([203, -1])
    assert instruction.operation is Operation.READ
    assert instruction.destination.mode is ParameterMode.RELATIVE
    assert instruction.values == ()


def test_terminate_has_no_params():
    instruction = _decode([99])
    assert instruction.operation is Operation.TERMINATE
    assert instruction.params == ()
    assert instruction.destination is None


def test_unknown_opcode_rejected():
    with pytest.raises(InvalidOpcodeError) as excinfo:
        _decode([0, 42], ip=1)
    assert excinfo.value.opcode == 42
    assert excinfo.value.ip == 1
    with pytest.raises(InvalidOpcodeError):
        _decode([-1])


def test_unknown_mode_rejected():
    with pytest.raises(InvalidParameterModeError) as excinfo:
        _decode([301, 0, 0, 0])
    assert excinfo.value.mode == 3


def test_immediate_destination_rejected():
    with pytest.raises(InvalidParameterModeError) as excinfo:
        _decode([11101, 1, 1, 0, 99])
    assert excinfo.value.mode == ParameterMode.IMMEDIATE
    assert "destination" in str(excinfo.value)


def test_truncated_instruction_reports_its_ip():
    with pytest.raises(AddressOutOfRangeError) as excinfo:
        decode(Memory([99, 1, 0], scale=1, minimum=0), 1)
    assert excinfo.value.ip == 1
