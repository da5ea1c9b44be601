"""Render decoded instructions for traces and program listings."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from .decoder import Instruction, Parameter, decode
from .errors import MachineFault
from .memory import Memory
from .opcodes import OPCODE_NAMES, ParameterMode

ValueResolver = Callable[[Parameter], int]


def format_parameter(param: Parameter) -> str:
    if param.mode == ParameterMode.IMMEDIATE:
        return f"#{param.raw}"
    if param.mode == ParameterMode.RELATIVE:
        sign = "+" if param.raw >= 0 else "-"
        return f"[rb{sign}{abs(param.raw)}]"
    return f"[{param.raw}]"


def format_operands(instruction: Instruction, *, resolve: Optional[ValueResolver] = None) -> str:
    """Render operands; with *resolve*, annotate each value operand with what it reads."""

    parts: List[str] = []
    for param in instruction.values:
        text = format_parameter(param)
        if resolve is not None and param.mode != ParameterMode.IMMEDIATE:
            try:
                text = f"{text}={resolve(param)}"
            except MachineFault:
                text = f"{text}=?"
        parts.append(text)
    rendered = " ".join(parts)
    destination = instruction.destination
    if destination is not None:
        target = format_parameter(destination)
        rendered = f"{rendered} -> {target}" if rendered else f"-> {target}"
    return rendered


def format_instruction(instruction: Instruction, *, resolve: Optional[ValueResolver] = None) -> str:
    mnemonic = OPCODE_NAMES.get(int(instruction.operation), str(instruction.word))
    operands = format_operands(instruction, resolve=resolve)
    return f"{mnemonic:<4} {operands}".rstrip()


def disassemble(program: Sequence[int], *, start: int = 0) -> List[Dict[str, object]]:
    """Walk *program* by instruction length, producing one entry per instruction.

    Cells that do not decode (data, or instructions truncated by the end of
    the program) become ``DATA`` entries one cell wide.
    """
    memory = Memory(program, scale=1, minimum=0)
    listing: List[Dict[str, object]] = []
    ip = start
    while ip < len(program):
        word = program[ip]
        try:
            instruction = decode(memory, ip)
        except MachineFault:
            listing.append({"ip": ip, "word": word, "mnemonic": "DATA", "operands": str(word), "length": 1})
            ip += 1
            continue
        listing.append(
            {
                "ip": ip,
                "word": word,
                "mnemonic": OPCODE_NAMES[int(instruction.operation)],
                "operands": format_operands(instruction),
                "length": instruction.length,
            }
        )
        ip += instruction.length
    return listing


def format_listing(listing: Sequence[Dict[str, object]]) -> List[str]:
    lines = []
    for entry in listing:
        lines.append(f"{entry['ip']:04d}: {entry['mnemonic']:<4} {entry['operands']}".rstrip())
    return lines


__all__ = [
    "format_parameter",
    "format_operands",
    "format_instruction",
    "disassemble",
    "format_listing",
]
