"""
intcode - IntCode virtual machine with amplifier pipelines.

The package is split by responsibility:

    opcodes.py      -> operation and parameter-mode tables
    memory.py       -> bounded int64 machine memory
    decoder.py      -> instruction word decoding
    machine.py      -> the execution engine (synchronous or channel I/O)
    channels.py     -> blocking channels between machine threads
    pipeline.py     -> amplifier chains and feedback rings
    controller.py   -> external control loop for one threaded machine
    robot.py        -> hull painting robot client
    search.py       -> noun/verb search over patched programs
    loader.py       -> program text parsing
    disassemble.py  -> listings and trace rendering
"""

from .channels import Channel  # noqa: F401
from .controller import MachineController  # noqa: F401
from .decoder import Instruction, Parameter, decode  # noqa: F401
from .disassemble import disassemble, format_instruction, format_listing  # noqa: F401
from .errors import (  # noqa: F401
    AddressOutOfRangeError,
    ChannelClosed,
    ChannelTimeout,
    InputUnavailableError,
    IntcodeError,
    InvalidOpcodeError,
    InvalidParameterModeError,
    MachineFault,
    NoOutputError,
    OperationCancelled,
    PipelineIncompleteError,
    ProgramLoadError,
    ValueOverflowError,
)
from .loader import load_program, load_programs, parse_program, parse_programs  # noqa: F401
from .machine import IOMode, Machine, MachineConfig, MachineState, run_program  # noqa: F401
from .memory import Memory  # noqa: F401
from .opcodes import Operation, ParameterMode  # noqa: F401
from .pipeline import (  # noqa: F401
    Chain,
    FeedbackRing,
    ThreadedFeedbackRing,
    best_chain,
    best_feedback,
    run_chain,
    run_feedback_ring,
)
from .robot import HullPaintingRobot  # noqa: F401
from .search import find_noun_verb, run_patched  # noqa: F401

__all__ = [
    "Channel",
    "MachineController",
    "Instruction",
    "Parameter",
    "decode",
    "disassemble",
    "format_instruction",
    "format_listing",
    "IntcodeError",
    "ProgramLoadError",
    "MachineFault",
    "InvalidOpcodeError",
    "InvalidParameterModeError",
    "AddressOutOfRangeError",
    "ValueOverflowError",
    "InputUnavailableError",
    "ChannelClosed",
    "ChannelTimeout",
    "OperationCancelled",
    "NoOutputError",
    "PipelineIncompleteError",
    "parse_program",
    "parse_programs",
    "load_program",
    "load_programs",
    "IOMode",
    "Machine",
    "MachineConfig",
    "MachineState",
    "run_program",
    "Memory",
    "Operation",
    "ParameterMode",
    "Chain",
    "FeedbackRing",
    "ThreadedFeedbackRing",
    "run_chain",
    "run_feedback_ring",
    "best_chain",
    "best_feedback",
    "HullPaintingRobot",
    "find_noun_verb",
    "run_patched",
]

__version__ = "0.1.0"
