"""Noun/verb search: patch the two input cells and look for a target result."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Tuple

from .machine import Machine, MachineConfig

LOGGER = logging.getLogger("intcode.search")

NOUN_ADDRESS = 1
VERB_ADDRESS = 2
RESULT_ADDRESS = 0


def run_patched(program: Sequence[int], noun: int, verb: int, *, config: Optional[MachineConfig] = None) -> int:
    """Run *program* with cells 1 and 2 replaced; return cell 0 afterwards."""
    machine = Machine(program, config)
    machine.patch(NOUN_ADDRESS, noun)
    machine.patch(VERB_ADDRESS, verb)
    machine.run_until_complete()
    machine.raise_for_fault()
    return machine.memory.read(RESULT_ADDRESS)


def find_noun_verb(
    program: Sequence[int],
    target: int,
    nouns: Iterable[int] = range(100),
    verbs: Iterable[int] = range(100),
) -> Tuple[int, int]:
    verb_values = list(verbs)
    machine = Machine(program, MachineConfig())
    tried = 0
    for noun in nouns:
        for verb in verb_values:
            machine.reset()
            machine.patch(NOUN_ADDRESS, noun)
            machine.patch(VERB_ADDRESS, verb)
            machine.run_until_complete()
            tried += 1
            if machine.fault is not None:
                LOGGER.debug("noun=%d verb=%d faulted: %s", noun, verb, machine.fault)
                continue
            if machine.memory.read(RESULT_ADDRESS) == target:
                LOGGER.info("found noun=%d verb=%d after %d runs", noun, verb, tried)
                return noun, verb
    raise LookupError(f"no noun/verb pair produces {target} ({tried} tried)")


__all__ = ["run_patched", "find_noun_verb"]
