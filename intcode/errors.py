"""Exception hierarchy shared by the IntCode machine and its orchestrators."""

from __future__ import annotations

from typing import Optional


class IntcodeError(Exception):
    """Base class for every error raised by the intcode package."""


class ProgramLoadError(IntcodeError):
    """Raised when program source text contains a non-integer token."""

    def __init__(self, message: str, *, line: Optional[int] = None, token: Optional[str] = None) -> None:
        super().__init__(message)
        self.line = line
        self.token = token


class MachineFault(IntcodeError):
    """Fatal runtime condition; the machine that hits it completes."""

    def __init__(self, message: str, *, ip: Optional[int] = None) -> None:
        super().__init__(message)
        self.detail = message
        self.ip = ip

    def __str__(self) -> str:
        if self.ip is None:
            return self.detail
        return f"{self.detail} (ip={self.ip})"


class InvalidOpcodeError(MachineFault):
    def __init__(self, opcode: int, *, ip: Optional[int] = None) -> None:
        super().__init__(f"invalid opcode {opcode}", ip=ip)
        self.opcode = opcode


class InvalidParameterModeError(MachineFault):
    def __init__(self, mode: int, *, opcode: Optional[int] = None, ip: Optional[int] = None, destination: bool = False) -> None:
        what = "destination parameter mode" if destination else "parameter mode"
        message = f"invalid {what} {mode}"
        if opcode is not None:
            message += f" in opcode {opcode}"
        super().__init__(message, ip=ip)
        self.mode = mode
        self.opcode = opcode


class AddressOutOfRangeError(MachineFault):
    def __init__(self, address: int, size: int, *, ip: Optional[int] = None) -> None:
        super().__init__(f"address {address} outside memory of {size} cells", ip=ip)
        self.address = address
        self.size = size


class ValueOverflowError(MachineFault):
    def __init__(self, value: int, *, ip: Optional[int] = None) -> None:
        super().__init__(f"value {value} does not fit a signed 64-bit cell", ip=ip)
        self.value = value


class InputUnavailableError(MachineFault):
    """No channel value, no queued input and no prompt to fall back to."""


class ChannelClosed(IntcodeError):
    """Raised on send to a closed channel or receive from a closed, drained one."""


class ChannelTimeout(IntcodeError):
    """Raised when a bounded channel receive expires."""


class OperationCancelled(IntcodeError):
    """Raised when a blocking channel operation is abandoned through its cancel event."""


class NoOutputError(IntcodeError):
    """Raised by take_output() on a synchronous machine with nothing buffered."""


class PipelineIncompleteError(IntcodeError):
    """A pipeline observed a machine that failed to produce its expected value."""

    def __init__(self, message: str, *, machine: Optional[str] = None, fault: Optional[MachineFault] = None) -> None:
        super().__init__(message)
        self.machine = machine
        self.fault = fault


__all__ = [
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
]
