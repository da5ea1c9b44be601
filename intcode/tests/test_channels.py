import threading
import time

import pytest

from intcode.channels import Channel
from intcode.errors import ChannelClosed, ChannelTimeout, OperationCancelled


def _in_thread(target, *args):
    result = {}

    def runner():
        try:
            result["value"] = target(*args)
        except Exception as exc:  # surfaced through result
            result["error"] = exc

    thread = threading.Thread(target=runner, daemon=True)
    thread.start()
    return thread, result


def test_buffered_channel_is_fifo():
    channel = Channel(capacity=3)
    for value in (1, 2, 3):
        assert channel.send(value)
    assert len(channel) == 3
    assert [channel.receive(), channel.receive(), channel.receive()] == [1, 2, 3]
    assert channel.sent == 3
    assert channel.received == 3


def test_receive_times_out():
    channel = Channel()
    with pytest.raises(ChannelTimeout):
        channel.receive(timeout=0.02)


def test_rendezvous_send_waits_for_receiver():
    channel = Channel()
    thread, result = _in_thread(channel.send, 9)
    time.sleep(0.05)
    assert thread.is_alive()
    assert channel.receive(timeout=5) == 9
    thread.join(5)
    assert result["value"] is True


def test_rendezvous_send_times_out_and_withdraws():
    channel = Channel()
    with pytest.raises(ChannelTimeout):
        channel.send(1, timeout=0.02)
    assert len(channel) == 0
    assert channel.try_receive() is None


def test_cancelled_send_returns_false():
    channel = Channel()
    cancel = threading.Event()
    thread, result = _in_thread(lambda: channel.send(5, cancel=cancel))
    time.sleep(0.02)
    cancel.set()
    thread.join(5)
    assert result["value"] is False
    assert len(channel) == 0


def test_cancelled_receive_raises():
    channel = Channel()
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OperationCancelled):
        channel.receive(cancel=cancel)


def test_close_wakes_blocked_receiver():
    channel = Channel()
    thread, result = _in_thread(channel.receive)
    time.sleep(0.02)
    assert channel.close() is True
    assert channel.close() is False
    thread.join(5)
    assert isinstance(result["error"], ChannelClosed)


def test_buffered_values_survive_close():
    channel = Channel(capacity=2)
    channel.send(1)
    channel.send(2)
    channel.close()
    assert list(channel) == [1, 2]
    with pytest.raises(ChannelClosed):
        channel.send(3)


def test_drain_and_try_receive():
    channel = Channel(capacity=4)
    channel.send(1)
    channel.send(2)
    assert channel.try_receive() == 1
    channel.send(3)
    assert channel.drain() == [2, 3]
    assert channel.drain() == []
