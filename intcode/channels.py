"""Blocking value channels connecting machines to each other and to controllers."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Iterator, List, Optional

from .errors import ChannelClosed, ChannelTimeout, OperationCancelled

# Granularity at which blocked senders re-check their cancel event.
CANCEL_POLL_INTERVAL = 0.01


class Channel:
    """Bounded FIFO of ints with close semantics.

    ``capacity=0`` is a rendezvous: ``send`` returns only once a receiver has
    taken the value. A positive capacity buffers that many values before
    senders block. Closing wakes every blocked sender and receiver; values
    already buffered can still be received after close.
    """

    def __init__(self, capacity: int = 0, *, name: Optional[str] = None) -> None:
        self.capacity = max(0, int(capacity))
        self.name = name or "channel"
        self._items: Deque[int] = deque()
        self._cv = threading.Condition(threading.Lock())
        self._closed = False
        self._sent = 0
        self._received = 0

    def __repr__(self) -> str:
        return f"Channel(name={self.name!r}, capacity={self.capacity}, pending={len(self._items)}, closed={self._closed})"

    @property
    def closed(self) -> bool:
        with self._cv:
            return self._closed

    @property
    def sent(self) -> int:
        with self._cv:
            return self._sent

    @property
    def received(self) -> int:
        with self._cv:
            return self._received

    def __len__(self) -> int:
        with self._cv:
            return len(self._items)

    def _wait(self, deadline: Optional[float], cancel: Optional[threading.Event]) -> bool:
        """Wait on the condition; return False once the deadline has passed."""
        if deadline is None:
            remaining = None
        else:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
        if cancel is not None:
            remaining = CANCEL_POLL_INTERVAL if remaining is None else min(remaining, CANCEL_POLL_INTERVAL)
        self._cv.wait(remaining)
        return True

    def send(self, value: int, *, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None) -> bool:
        """Send *value*, blocking for room (and, for a rendezvous, for a receiver).

        Returns False if *cancel* fires before the send completes; a value
        not yet taken by a receiver is withdrawn in that case. Raises
        ChannelClosed if the channel is or becomes closed, ChannelTimeout if
        *timeout* expires.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        limit = max(self.capacity, 1)
        with self._cv:
            while True:
                if self._closed:
                    raise ChannelClosed(f"send on closed channel {self.name}")
                if cancel is not None and cancel.is_set():
                    return False
                if len(self._items) < limit:
                    break
                if not self._wait(deadline, cancel):
                    raise ChannelTimeout(f"send on {self.name} timed out")
            self._items.append(value)
            ticket = self._sent
            self._sent += 1
            self._cv.notify_all()
            if self.capacity > 0:
                return True
            while self._received <= ticket:
                if self._closed:
                    raise ChannelClosed(f"channel {self.name} closed before value was received")
                if cancel is not None and cancel.is_set():
                    self._withdraw(ticket)
                    return False
                if not self._wait(deadline, cancel):
                    self._withdraw(ticket)
                    raise ChannelTimeout(f"send on {self.name} timed out waiting for a receiver")
            return True

    def _withdraw(self, ticket: int) -> None:
        # Rendezvous channels hold at most one value, which is ours.
        if self._received <= ticket and self._items:
            self._items.pop()
            self._sent -= 1
            self._cv.notify_all()

    def receive(self, *, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None) -> int:
        """Take the next value, blocking until one arrives.

        Raises ChannelTimeout when *timeout* expires, ChannelClosed when the
        channel is closed with nothing left to drain and OperationCancelled
        when *cancel* fires first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cv:
            while not self._items:
                if self._closed:
                    raise ChannelClosed(f"channel {self.name} closed")
                if cancel is not None and cancel.is_set():
                    raise OperationCancelled(f"receive on {self.name} cancelled")
                if not self._wait(deadline, cancel):
                    raise ChannelTimeout(f"receive on {self.name} timed out")
            value = self._items.popleft()
            self._received += 1
            self._cv.notify_all()
            return value

    def try_receive(self) -> Optional[int]:
        with self._cv:
            if not self._items:
                return None
            value = self._items.popleft()
            self._received += 1
            self._cv.notify_all()
            return value

    def drain(self) -> List[int]:
        """Remove and return everything currently buffered."""
        with self._cv:
            values = list(self._items)
            self._items.clear()
            self._received += len(values)
            self._cv.notify_all()
            return values

    def close(self) -> bool:
        """Close the channel; return True only for the call that closed it."""
        with self._cv:
            if self._closed:
                return False
            self._closed = True
            self._cv.notify_all()
            return True

    def __iter__(self) -> Iterator[int]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return


__all__ = ["Channel", "CANCEL_POLL_INTERVAL"]
