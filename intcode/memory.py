"""Addressable tape of signed 64-bit cells."""

from __future__ import annotations

from array import array
from typing import Iterable, List, Optional, Sequence

from .errors import AddressOutOfRangeError, ValueOverflowError

DEFAULT_MEMORY_SCALE = 10
DEFAULT_MIN_MEMORY = 64

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def memory_size_for(program_length: int, *, scale: int = DEFAULT_MEMORY_SCALE, minimum: int = DEFAULT_MIN_MEMORY) -> int:
    return max(program_length * max(int(scale), 1), int(minimum), program_length)


class Memory:
    """Fixed-size tape pre-sized generously at load time.

    The size never changes after construction. Any access outside
    ``[0, size)`` raises :class:`AddressOutOfRangeError`; addresses are never
    wrapped.
    """

    def __init__(self, program: Sequence[int], *, scale: int = DEFAULT_MEMORY_SCALE, minimum: int = DEFAULT_MIN_MEMORY) -> None:
        self._image: List[int] = [int(value) for value in program]
        self._size = memory_size_for(len(self._image), scale=scale, minimum=minimum)
        self._cells = array("q")
        self.reset()

    def __len__(self) -> int:
        return self._size

    @property
    def size(self) -> int:
        return self._size

    @property
    def program_length(self) -> int:
        return len(self._image)

    def reset(self) -> None:
        """Restore the freshly loaded program image and zero the remainder."""
        cells = array("q", [0]) * self._size
        try:
            cells[: len(self._image)] = array("q", self._image)
        except OverflowError as exc:
            bad = next(v for v in self._image if not INT64_MIN <= v <= INT64_MAX)
            raise ValueOverflowError(bad) from exc
        self._cells = cells

    def _check(self, address: int) -> int:
        address = int(address)
        if address < 0 or address >= self._size:
            raise AddressOutOfRangeError(address, self._size)
        return address

    def read(self, address: int) -> int:
        return self._cells[self._check(address)]

    def write(self, address: int, value: int) -> None:
        address = self._check(address)
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueOverflowError(value)
        self._cells[address] = value

    __getitem__ = read
    __setitem__ = write

    def dump(self, start: int = 0, length: Optional[int] = None) -> List[int]:
        """Return a copy of ``length`` cells from ``start`` (default: the program span)."""
        if length is None:
            length = len(self._image)
        if length <= 0:
            return []
        self._check(start)
        self._check(start + length - 1)
        return self._cells[start : start + length].tolist()

    def snapshot(self) -> List[int]:
        return self._cells.tolist()

    def load_cells(self, values: Iterable[int], *, base: int = 0) -> None:
        for offset, value in enumerate(values):
            self.write(base + offset, int(value))
