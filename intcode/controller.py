"""Drive one threaded machine from an external control loop."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Sequence

from .errors import ChannelClosed, ChannelTimeout, PipelineIncompleteError
from .machine import IOMode, Machine

LOGGER = logging.getLogger("intcode.controller")

# A handler receives one output; returning an int sends it back as input.
OutputHandler = Callable[[int], Optional[int]]


class MachineController:
    """Run *machine* on its own thread and dispatch its outputs in a fixed cycle.

    Output number *k* goes to ``handlers[k % len(handlers)]``. When a handler
    returns a value, it is sent to the machine's input channel racing the
    machine's completion signal, so a machine that has finished never leaves
    the controller blocked on a send.
    """

    def __init__(
        self,
        machine: Machine,
        handlers: Sequence[OutputHandler],
        *,
        initial_input: Optional[int] = None,
        output_timeout: Optional[float] = None,
    ) -> None:
        if machine.config.io_mode is not IOMode.CHANNEL:
            raise ValueError("controller requires a machine in IOMode.CHANNEL")
        if not handlers:
            raise ValueError("at least one output handler is required")
        self.machine = machine
        self.handlers: List[OutputHandler] = list(handlers)
        self.initial_input = initial_input
        self.output_timeout = output_timeout
        self.dispatched = 0
        self.sent = 0
        self._thread: Optional[threading.Thread] = None

    def send(self, value: int) -> bool:
        """Send one input; False if the machine completed first."""
        channel = self.machine.input_channel
        assert channel is not None
        try:
            delivered = channel.send(int(value), cancel=self.machine.done)
        except ChannelClosed:
            delivered = False
        if delivered:
            self.sent += 1
        else:
            LOGGER.debug("controller: machine %s finished before taking %d", self.machine.name, value)
        return delivered

    def run(self) -> int:
        """Drive the machine until its output channel closes; return the number of outputs."""
        machine = self.machine
        outputs = machine.output_channel
        assert outputs is not None
        self._thread = machine.start()
        if self.initial_input is not None:
            self.send(self.initial_input)
        try:
            while True:
                try:
                    value = outputs.receive(timeout=self.output_timeout)
                except ChannelClosed:
                    break
                handler = self.handlers[self.dispatched % len(self.handlers)]
                self.dispatched += 1
                LOGGER.debug("controller: output #%d = %d", self.dispatched, value)
                reply = handler(value)
                if reply is not None:
                    self.send(reply)
        except ChannelTimeout as exc:
            machine.cancel()
            machine.join(1.0)
            raise PipelineIncompleteError(
                f"machine {machine.name} produced no output within {self.output_timeout}s", machine=machine.name
            ) from exc
        except BaseException:
            machine.cancel()
            raise
        finally:
            self._thread.join(timeout=1.0)

        if machine.fault is not None:
            raise PipelineIncompleteError(
                f"machine {machine.name} faulted: {machine.fault}", machine=machine.name, fault=machine.fault
            )
        return self.dispatched


__all__ = ["MachineController", "OutputHandler"]
