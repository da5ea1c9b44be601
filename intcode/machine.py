"""IntCode execution engine.

A :class:`Machine` owns its memory, instruction pointer and relative base and
executes one instruction at a time (decode, resolve parameters, dispatch,
advance). It talks to the outside world in one of two I/O modes chosen at
construction:

* ``IOMode.SYNCHRONOUS`` - inputs come from a FIFO fed by ``feed_input`` and
  outputs are buffered locally, for one-shot callers and cooperative
  round-robin scheduling.
* ``IOMode.CHANNEL`` - Read waits on an input :class:`Channel` (bounded by
  ``input_timeout``, then falling back to the local queue and the prompt) and
  Write blocks on an output channel, for machines running on their own
  threads.

A fatal fault never escapes ``step``/``run``: it is recorded in
``machine.fault`` and the machine completes, closing its output channel and
setting ``done`` so nothing downstream waits forever.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, TextIO

from .channels import Channel
from .decoder import Instruction, Parameter, decode
from .disassemble import format_instruction
from .errors import (
    ChannelClosed,
    ChannelTimeout,
    InputUnavailableError,
    InvalidParameterModeError,
    MachineFault,
    NoOutputError,
    OperationCancelled,
)
from .memory import DEFAULT_MEMORY_SCALE, DEFAULT_MIN_MEMORY, Memory
from .opcodes import Operation, ParameterMode

LOGGER = logging.getLogger("intcode.machine")

DEFAULT_INPUT_TIMEOUT = 10.0

InputProvider = Callable[[], int]
EventHook = Callable[[Dict[str, Any]], None]

_NAME_COUNTER = itertools.count()


class IOMode(str, Enum):
    SYNCHRONOUS = "synchronous"
    CHANNEL = "channel"


class MachineState(str, Enum):
    READY = "ready"
    RUNNING = "running"
    HALTED_ON_OUTPUT = "halted_on_output"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MachineConfig:
    io_mode: IOMode = IOMode.SYNCHRONOUS
    halt_on_output: bool = False
    input_timeout: Optional[float] = DEFAULT_INPUT_TIMEOUT
    memory_scale: int = DEFAULT_MEMORY_SCALE
    min_memory: int = DEFAULT_MIN_MEMORY
    trace: bool = False

    def replace(self, **overrides: Any) -> "MachineConfig":
        return dataclasses.replace(self, **overrides)


class Machine:
    def __init__(
        self,
        program: Sequence[int] = (),
        config: Optional[MachineConfig] = None,
        *,
        name: Optional[str] = None,
        input_channel: Optional[Channel] = None,
        output_channel: Optional[Channel] = None,
        input_provider: Optional[InputProvider] = None,
        event_hook: Optional[EventHook] = None,
        trace_file: Optional[TextIO] = None,
        **overrides: Any,
    ) -> None:
        config = config or MachineConfig()
        if overrides:
            config = config.replace(**overrides)
        self.config = config
        self.name = name or f"intcode-{next(_NAME_COUNTER)}"
        self.input_provider = input_provider
        self.trace_file = trace_file
        self._event_hook = event_hook
        self._complete_lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pending_inputs: Deque[int] = deque()
        self._outputs: Deque[int] = deque()

        self.input_channel: Optional[Channel] = None
        self.output_channel: Optional[Channel] = None
        self._owns_input = False
        self._owns_output = False
        if config.io_mode is IOMode.CHANNEL:
            self.attach_channels(input_channel, output_channel)
        elif input_channel is not None or output_channel is not None:
            raise ValueError("channels require io_mode=IOMode.CHANNEL")

        self.program: List[int] = []
        self.memory = Memory((), scale=config.memory_scale, minimum=config.min_memory)
        self.load(program)

    def __repr__(self) -> str:
        return f"Machine(name={self.name!r}, state={self.state.value}, ip={self.ip}, rb={self.relative_base})"

    # ------------------------------------------------------------------
    # Lifecycle

    def attach_channels(self, input_channel: Optional[Channel] = None, output_channel: Optional[Channel] = None) -> None:
        """Wire the machine's channel pair, creating private channels for any not given."""
        if self.config.io_mode is not IOMode.CHANNEL:
            raise ValueError("channels require io_mode=IOMode.CHANNEL")
        self._owns_input = input_channel is None
        self._owns_output = output_channel is None
        self.input_channel = input_channel if input_channel is not None else Channel(name=f"{self.name}.in")
        self.output_channel = output_channel if output_channel is not None else Channel(name=f"{self.name}.out")

    def load(self, program: Sequence[int]) -> None:
        self.program = [int(value) for value in program]
        self.memory = Memory(self.program, scale=self.config.memory_scale, minimum=self.config.min_memory)
        self._reset_registers()

    def reset(self) -> None:
        """Return to the freshly loaded program: memory, registers, flags and queues."""
        self.memory.reset()
        self._reset_registers()
        if self.config.io_mode is IOMode.CHANNEL:
            if self._owns_input and self.input_channel is not None and self.input_channel.closed:
                self.input_channel = Channel(name=f"{self.name}.in")
            if self._owns_output and self.output_channel is not None and self.output_channel.closed:
                self.output_channel = Channel(name=f"{self.name}.out")

    def _reset_registers(self) -> None:
        self.ip = 0
        self.relative_base = 0
        self.state = MachineState.READY
        self.fault: Optional[MachineFault] = None
        self.cancelled = False
        self.steps = 0
        self.output_count = 0
        self.last_output: Optional[int] = None
        self.done = threading.Event()
        self._cancel = threading.Event()
        self._pending_inputs.clear()
        self._outputs.clear()

    def patch(self, address: int, value: int) -> None:
        self.memory.write(address, value)

    # ------------------------------------------------------------------
    # Status

    def is_completed(self) -> bool:
        return self.state is MachineState.COMPLETED

    def is_halted_on_output(self) -> bool:
        return self.state is MachineState.HALTED_ON_OUTPUT

    @property
    def completed(self) -> bool:
        return self.is_completed()

    @property
    def halted_on_output(self) -> bool:
        return self.is_halted_on_output()

    def raise_for_fault(self) -> None:
        if self.fault is not None:
            raise self.fault

    def snapshot(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "ip": self.ip,
            "relative_base": self.relative_base,
            "steps": self.steps,
            "outputs": self.output_count,
            "pending_inputs": len(self._pending_inputs),
            "memory_size": len(self.memory),
            "fault": str(self.fault) if self.fault is not None else None,
        }

    # ------------------------------------------------------------------
    # Execution

    def run(self) -> MachineState:
        """Execute until the machine halts on output or completes."""
        while self.state in (MachineState.READY, MachineState.RUNNING):
            self.step()
        return self.state

    def resume(self) -> MachineState:
        """Clear a halt-on-output suspension and continue running."""
        if self.state is MachineState.HALTED_ON_OUTPUT:
            LOGGER.debug("machine %s resumed at ip=%d", self.name, self.ip)
            self.state = MachineState.RUNNING
        return self.run()

    def run_until_complete(self, *, max_steps: Optional[int] = None) -> MachineState:
        """Run, resuming through every halt, until completion or *max_steps*."""
        while self.state is not MachineState.COMPLETED:
            if max_steps is not None and self.steps >= max_steps:
                break
            if self.state is MachineState.HALTED_ON_OUTPUT:
                self.state = MachineState.RUNNING
            self.step()
        return self.state

    def step(self) -> MachineState:
        if self.state in (MachineState.COMPLETED, MachineState.HALTED_ON_OUTPUT):
            return self.state
        if self._cancel.is_set():
            self.cancelled = True
            self._complete("cancelled")
            return self.state
        self.state = MachineState.RUNNING
        try:
            instruction = decode(self.memory, self.ip)
            if self.config.trace or self.trace_file is not None:
                self._trace(instruction)
            self._execute(instruction)
        except MachineFault as fault:
            if fault.ip is None:
                fault.ip = self.ip
            self._fail(fault)
        except OperationCancelled:
            self.cancelled = True
            self._complete("cancelled")
        except ChannelClosed as exc:
            self._fail(MachineFault(str(exc), ip=self.ip))
        return self.state

    def start(self) -> threading.Thread:
        """Run the machine to completion on its own daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError(f"machine {self.name} is already running")
        thread = threading.Thread(target=self.run_until_complete, name=self.name, daemon=True)
        self._thread = thread
        thread.start()
        return thread

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for completion; return True if the machine completed in time."""
        return self.done.wait(timeout)

    def cancel(self) -> None:
        """Abort any blocking channel wait and complete the machine."""
        self._cancel.set()
        thread = self._thread
        if thread is None or not thread.is_alive():
            if not self.is_completed():
                self.cancelled = True
                self._complete("cancelled")

    # ------------------------------------------------------------------
    # Parameter resolution

    def resolve_value(self, param: Parameter) -> int:
        if param.mode == ParameterMode.IMMEDIATE:
            return param.raw
        if param.mode == ParameterMode.RELATIVE:
            return self.memory.read(self.relative_base + param.raw)
        return self.memory.read(param.raw)

    def resolve_address(self, param: Parameter) -> int:
        if param.mode == ParameterMode.RELATIVE:
            return self.relative_base + param.raw
        if param.mode == ParameterMode.POSITION:
            return param.raw
        raise InvalidParameterModeError(int(param.mode), ip=self.ip, destination=True)

    def _execute(self, ins: Instruction) -> None:
        op = ins.operation
        if op is Operation.TERMINATE:
            self.steps += 1
            self._complete("terminated")
            return

        values = [self.resolve_value(param) for param in ins.values]
        destination = ins.destination
        target = self.resolve_address(destination) if destination is not None else None
        next_ip = self.ip + ins.length

        if op is Operation.ADD:
            self.memory.write(target, values[0] + values[1])
        elif op is Operation.MULTIPLY:
            self.memory.write(target, values[0] * values[1])
        elif op is Operation.READ:
            self.memory.write(target, self._read_input())
        elif op is Operation.WRITE:
            self._write_output(values[0])
        elif op is Operation.JUMP_IF_TRUE:
            if values[0] != 0:
                next_ip = values[1]
        elif op is Operation.JUMP_IF_FALSE:
            if values[0] == 0:
                next_ip = values[1]
        elif op is Operation.LESS_THAN:
            self.memory.write(target, 1 if values[0] < values[1] else 0)
        elif op is Operation.EQUALS:
            self.memory.write(target, 1 if values[0] == values[1] else 0)
        elif op is Operation.SET_RELATIVE_BASE:
            self.relative_base += values[0]

        self.ip = next_ip
        self.steps += 1
        if op is Operation.WRITE and self.config.halt_on_output:
            self.state = MachineState.HALTED_ON_OUTPUT
            LOGGER.debug("machine %s halted on output at ip=%d", self.name, self.ip)
            self._emit_event("halt", ip=self.ip)

    # ------------------------------------------------------------------
    # I/O

    def feed_input(self, *values: int) -> None:
        for value in values:
            self._pending_inputs.append(int(value))

    @property
    def pending_inputs(self) -> List[int]:
        return list(self._pending_inputs)

    @property
    def outputs(self) -> List[int]:
        """Outputs buffered by a synchronous machine and not yet taken."""
        return list(self._outputs)

    def take_output(self, *, timeout: Optional[float] = None) -> int:
        """Take the oldest output.

        Channel mode blocks on the output channel and raises ChannelClosed
        once the machine has completed and everything was drained.
        """
        if self.config.io_mode is IOMode.CHANNEL:
            assert self.output_channel is not None
            return self.output_channel.receive(timeout=timeout)
        if not self._outputs:
            raise NoOutputError(f"machine {self.name} has no buffered output")
        return self._outputs.popleft()

    def drain_outputs(self) -> List[int]:
        if self.config.io_mode is IOMode.CHANNEL:
            assert self.output_channel is not None
            return self.output_channel.drain()
        values = list(self._outputs)
        self._outputs.clear()
        return values

    def _read_input(self) -> int:
        if self.config.io_mode is IOMode.CHANNEL:
            assert self.input_channel is not None
            try:
                return self.input_channel.receive(timeout=self.config.input_timeout, cancel=self._cancel)
            except ChannelTimeout:
                LOGGER.warning(
                    "machine %s: waiting for input timed out after %ss, trying local queue",
                    self.name,
                    self.config.input_timeout,
                )
            except ChannelClosed:
                LOGGER.warning("machine %s: input channel closed, trying local queue", self.name)
            if self._cancel.is_set():
                raise OperationCancelled(f"machine {self.name} cancelled while waiting for input")
        if self._pending_inputs:
            return self._pending_inputs.popleft()
        if self.input_provider is not None:
            return int(self.input_provider())
        raise InputUnavailableError("no input available", ip=self.ip)

    def _write_output(self, value: int) -> None:
        if self.config.io_mode is IOMode.CHANNEL:
            assert self.output_channel is not None
            if not self.output_channel.send(value, cancel=self._cancel):
                raise OperationCancelled(f"machine {self.name} cancelled while sending")
        else:
            self._outputs.append(value)
        self.last_output = value
        self.output_count += 1
        self._emit_event("output", value=value)

    # ------------------------------------------------------------------
    # Completion, diagnostics

    def _complete(self, reason: str) -> None:
        with self._complete_lock:
            if self.done.is_set():
                return
            self.state = MachineState.COMPLETED
            if self.output_channel is not None:
                self.output_channel.close()
            self.done.set()
        LOGGER.debug("machine %s completed (%s) after %d steps at ip=%d", self.name, reason, self.steps, self.ip)
        self._emit_event("complete", reason=reason, steps=self.steps)

    def _fail(self, fault: MachineFault) -> None:
        self.fault = fault
        LOGGER.error("machine %s fault at ip=%s: %s", self.name, fault.ip, fault.detail)
        self._emit_event("fault", error=type(fault).__name__, detail=fault.detail, ip=fault.ip)
        self._complete("fault")

    def _trace(self, instruction: Instruction) -> None:
        line = f"[TRACE] {self.name} {instruction.address:04d}: {format_instruction(instruction, resolve=self.resolve_value)}"
        if self.trace_file is not None:
            self.trace_file.write(line + "\n")
            self.trace_file.flush()
        else:
            LOGGER.debug(line)

    def set_event_hook(self, hook: Optional[EventHook]) -> None:
        """Assign or clear the event hook used for instrumentation callbacks."""
        self._event_hook = hook

    def _emit_event(self, event_type: str, **fields: Any) -> None:
        if self._event_hook is None:
            return
        event = {"type": event_type, "machine": self.name, **fields}
        try:
            self._event_hook(event)
        except Exception:
            # Instrumentation must never disrupt execution.
            LOGGER.debug("event hook failed for %s", event_type, exc_info=True)


def run_program(program: Sequence[int], inputs: Sequence[int] = (), **overrides: Any) -> List[int]:
    """Run *program* synchronously to completion and return every output.

    Raises the machine's fault, if any.
    """
    machine = Machine(program, **overrides)
    machine.feed_input(*inputs)
    machine.run_until_complete()
    machine.raise_for_fault()
    return machine.drain_outputs()


__all__ = [
    "IOMode",
    "MachineState",
    "MachineConfig",
    "Machine",
    "run_program",
    "DEFAULT_INPUT_TIMEOUT",
]
