"""Compose machines into amplifier chains and feedback rings.

Three orchestration strategies share one Machine implementation:

* :class:`Chain` - machines run one after another, each seeded with its
  configuration value and the previous machine's final output.
* :class:`FeedbackRing` - cooperative round-robin over halt-on-output
  machines; each output is queued on the next machine until the last
  machine completes.
* :class:`ThreadedFeedbackRing` - every machine on its own thread, joined by
  rendezvous channels; the orchestrator relays the last machine's output
  back to the first.

Any machine that faults, or a run that ends without the expected value,
raises :class:`PipelineIncompleteError`; no stale answer is ever reported.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .channels import Channel
from .errors import ChannelClosed, ChannelTimeout, PipelineIncompleteError
from .machine import IOMode, Machine, MachineConfig

LOGGER = logging.getLogger("intcode.pipeline")

DEFAULT_RING_TIMEOUT = 30.0


def _require_clean(machine: Machine) -> None:
    if machine.fault is not None:
        raise PipelineIncompleteError(
            f"machine {machine.name} faulted: {machine.fault}",
            machine=machine.name,
            fault=machine.fault,
        )
    if machine.cancelled:
        raise PipelineIncompleteError(f"machine {machine.name} was cancelled", machine=machine.name)


def _check_size(configurations: Sequence[int], size: int) -> None:
    if len(configurations) != size:
        raise ValueError(f"expected {size} configuration values, got {len(configurations)}")


class Chain:
    """Linear amplifier chain run strictly in order."""

    def __init__(self, program: Sequence[int], size: int, *, config: Optional[MachineConfig] = None) -> None:
        cfg = (config or MachineConfig()).replace(io_mode=IOMode.SYNCHRONOUS, halt_on_output=True)
        self.machines = [Machine(program, cfg, name=f"chain-{index}") for index in range(size)]

    def run(self, configurations: Sequence[int], *, seed: int = 0) -> int:
        _check_size(configurations, len(self.machines))
        signal = seed
        for machine, setting in zip(self.machines, configurations):
            machine.reset()
            machine.feed_input(setting, signal)
            machine.run_until_complete()
            _require_clean(machine)
            if machine.last_output is None:
                raise PipelineIncompleteError(f"machine {machine.name} produced no output", machine=machine.name)
            signal = machine.last_output
        LOGGER.debug("chain %s -> %d", list(configurations), signal)
        return signal


class FeedbackRing:
    """Cooperative feedback ring over halt-on-output machines."""

    def __init__(self, program: Sequence[int], size: int, *, config: Optional[MachineConfig] = None) -> None:
        cfg = (config or MachineConfig()).replace(io_mode=IOMode.SYNCHRONOUS, halt_on_output=True)
        self.machines = [Machine(program, cfg, name=f"ring-{index}") for index in range(size)]

    def run(self, configurations: Sequence[int], *, seed: int = 0) -> int:
        _check_size(configurations, len(self.machines))
        for machine, setting in zip(self.machines, configurations):
            machine.reset()
            machine.feed_input(setting)
        self.machines[0].feed_input(seed)

        count = len(self.machines)
        last = self.machines[-1]
        final: Optional[int] = None
        position = 0
        while not last.is_completed():
            machine = self.machines[position]
            next_position = (position + 1) % count
            if not machine.is_completed():
                machine.resume()
                _require_clean(machine)
                if machine.is_halted_on_output():
                    value = machine.take_output()
                    self.machines[next_position].feed_input(value)
                    if next_position == 0:
                        final = value
            position = next_position

        if final is None:
            raise PipelineIncompleteError("ring finished without feeding a value back", machine=last.name)
        LOGGER.debug("feedback ring %s -> %d", list(configurations), final)
        return final


class ThreadedFeedbackRing:
    """Feedback ring with every machine on its own thread."""

    def __init__(
        self,
        program: Sequence[int],
        size: int,
        *,
        config: Optional[MachineConfig] = None,
        timeout: Optional[float] = DEFAULT_RING_TIMEOUT,
    ) -> None:
        self.program = list(program)
        self.size = size
        self.config = (config or MachineConfig()).replace(io_mode=IOMode.CHANNEL, halt_on_output=False)
        self.timeout = timeout
        self.machines: List[Machine] = []
        self._culprit: Optional[Machine] = None
        self._culprit_lock = threading.Lock()

    def _build(self) -> Tuple[List[Machine], List[Channel], Channel]:
        inputs = [Channel(name=f"ring-{index}.in") for index in range(self.size)]
        feedback = Channel(name="ring.feedback")
        machines = []
        for index in range(self.size):
            output = inputs[index + 1] if index + 1 < self.size else feedback
            machines.append(
                Machine(
                    self.program,
                    self.config,
                    name=f"ring-{index}",
                    input_channel=inputs[index],
                    output_channel=output,
                    event_hook=self._on_event,
                )
            )
        return machines, inputs, feedback

    def _on_event(self, event: Dict[str, Any]) -> None:
        # Runs on the faulting machine's thread, before it closes its output.
        if event["type"] != "fault":
            return
        with self._culprit_lock:
            if self._culprit is not None:
                return
            self._culprit = next(machine for machine in self.machines if machine.name == event["machine"])
        LOGGER.warning("machine %s faulted; cancelling the rest of the ring", event["machine"])
        for machine in self.machines:
            if machine is not self._culprit:
                machine.cancel()

    def run(self, configurations: Sequence[int], *, seed: int = 0) -> int:
        _check_size(configurations, self.size)
        self._culprit = None
        machines, inputs, feedback = self._build()
        self.machines = machines
        for machine in machines:
            machine.start()

        final: Optional[int] = None
        error: Optional[Exception] = None
        try:
            final = self._drive(machines, inputs, feedback, configurations, seed)
        except (ChannelClosed, ChannelTimeout, PipelineIncompleteError) as exc:
            error = exc
            for machine in machines:
                machine.cancel()
        for machine in machines:
            if not machine.join(self.timeout):
                LOGGER.warning("machine %s did not complete; cancelling", machine.name)
                machine.cancel()

        # The first machine to fault is the cause; later faults and cancellations follow from it.
        if self._culprit is not None:
            _require_clean(self._culprit)
        faulted = next((machine for machine in machines if machine.fault is not None), None)
        if faulted is not None:
            _require_clean(faulted)
        if isinstance(error, PipelineIncompleteError):
            raise error
        if error is not None:
            raise PipelineIncompleteError(f"feedback ring stalled: {error}") from error
        for machine in machines:
            _require_clean(machine)
        if final is None:
            raise PipelineIncompleteError("ring finished without feeding a value back", machine=machines[-1].name)
        LOGGER.debug("threaded feedback ring %s -> %d", list(configurations), final)
        return final

    def _drive(
        self,
        machines: List[Machine],
        inputs: List[Channel],
        feedback: Channel,
        configurations: Sequence[int],
        seed: int,
    ) -> Optional[int]:
        first = machines[0]
        for machine, channel, setting in zip(machines, inputs, configurations):
            if not channel.send(setting, timeout=self.timeout, cancel=machine.done):
                raise PipelineIncompleteError(
                    f"machine {machine.name} finished before taking its configuration", machine=machine.name
                )
        if not inputs[0].send(seed, timeout=self.timeout, cancel=first.done):
            raise PipelineIncompleteError(f"machine {first.name} finished before taking the seed", machine=first.name)

        final: Optional[int] = None
        while True:
            try:
                value = feedback.receive(timeout=self.timeout)
            except ChannelClosed:
                return final
            final = value
            # The first machine may already be done; its last handoff is only recorded.
            inputs[0].send(value, timeout=self.timeout, cancel=first.done)


def run_chain(program: Sequence[int], configurations: Sequence[int], *, seed: int = 0) -> int:
    return Chain(program, len(configurations)).run(configurations, seed=seed)


def run_feedback_ring(
    program: Sequence[int],
    configurations: Sequence[int],
    *,
    seed: int = 0,
    threaded: bool = False,
) -> int:
    if threaded:
        return ThreadedFeedbackRing(program, len(configurations)).run(configurations, seed=seed)
    return FeedbackRing(program, len(configurations)).run(configurations, seed=seed)


def _search(pipeline, values: Iterable[int], *, seed: int) -> Tuple[int, Tuple[int, ...]]:
    best: Optional[Tuple[int, Tuple[int, ...]]] = None
    for order in itertools.permutations(values):
        try:
            signal = pipeline.run(order, seed=seed)
        except PipelineIncompleteError as exc:
            LOGGER.warning("configuration %s incomplete: %s", list(order), exc)
            raise
        if best is None or signal > best[0]:
            best = (signal, order)
    if best is None:
        raise ValueError("no configuration values given")
    LOGGER.info("best configuration %s -> %d", list(best[1]), best[0])
    return best


def best_chain(program: Sequence[int], values: Sequence[int], *, seed: int = 0) -> Tuple[int, Tuple[int, ...]]:
    """Try every ordering of *values* through a chain; return (signal, order) of the best."""
    return _search(Chain(program, len(values)), values, seed=seed)


def best_feedback(
    program: Sequence[int],
    values: Sequence[int],
    *,
    seed: int = 0,
    threaded: bool = False,
) -> Tuple[int, Tuple[int, ...]]:
    pipeline = ThreadedFeedbackRing(program, len(values)) if threaded else FeedbackRing(program, len(values))
    return _search(pipeline, values, seed=seed)


__all__ = [
    "Chain",
    "FeedbackRing",
    "ThreadedFeedbackRing",
    "run_chain",
    "run_feedback_ring",
    "best_chain",
    "best_feedback",
    "DEFAULT_RING_TIMEOUT",
]
