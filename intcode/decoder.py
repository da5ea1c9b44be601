"""Instruction decoding: opcode word -> operation, length and parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import AddressOutOfRangeError, InvalidOpcodeError, InvalidParameterModeError
from .memory import Memory
from .opcodes import INSTRUCTION_LENGTH, VALUE_COUNT, WRITES_MEMORY, Operation, ParameterMode, lookup_operation


@dataclass(frozen=True)
class Parameter:
    mode: ParameterMode
    raw: int


@dataclass(frozen=True)
class Instruction:
    operation: Operation
    address: int
    length: int
    params: Tuple[Parameter, ...]
    word: int

    @property
    def value_count(self) -> int:
        return VALUE_COUNT[self.operation]

    @property
    def writes_memory(self) -> bool:
        return self.operation in WRITES_MEMORY

    @property
    def values(self) -> Tuple[Parameter, ...]:
        """Parameters consumed as operand values."""
        return self.params[: self.value_count]

    @property
    def destination(self) -> Parameter | None:
        """The parameter that receives a write, if the operation stores one."""
        if not self.writes_memory:
            return None
        return self.params[self.value_count]


def parameter_mode(word: int, index: int) -> int:
    """Return the raw addressing-mode digit for parameter *index* of *word*.

    Words below 100 carry no mode digits; every parameter is Position.
    """
    if word < 100:
        return ParameterMode.POSITION
    return (word // (10 ** (index + 2))) % 10


def decode(memory: Memory, ip: int) -> Instruction:
    """Decode the instruction at *ip*.

    Raises InvalidOpcodeError for unknown opcodes (no length is guessed),
    InvalidParameterModeError for unknown mode digits or an Immediate write
    destination, and AddressOutOfRangeError when the instruction runs past
    the end of memory.
    """
    try:
        word = memory.read(ip)
    except AddressOutOfRangeError as exc:
        raise AddressOutOfRangeError(exc.address, exc.size, ip=ip) from None
    code = word % 100 if word >= 0 else word
    operation = lookup_operation(code)
    if operation is None:
        raise InvalidOpcodeError(word, ip=ip)

    length = INSTRUCTION_LENGTH[operation]
    params = []
    for index in range(length - 1):
        digit = parameter_mode(word, index)
        try:
            mode = ParameterMode(digit)
        except ValueError:
            raise InvalidParameterModeError(digit, opcode=word, ip=ip) from None
        try:
            raw = memory.read(ip + index + 1)
        except AddressOutOfRangeError as exc:
            raise AddressOutOfRangeError(exc.address, exc.size, ip=ip) from None
        params.append(Parameter(mode=mode, raw=raw))

    instruction = Instruction(operation=operation, address=ip, length=length, params=tuple(params), word=word)
    destination = instruction.destination
    if destination is not None and destination.mode == ParameterMode.IMMEDIATE:
        raise InvalidParameterModeError(int(destination.mode), opcode=word, ip=ip, destination=True)
    return instruction


__all__ = ["Parameter", "Instruction", "decode", "parameter_mode"]
