import logging
import time

import pytest

from intcode.errors import InvalidOpcodeError, PipelineIncompleteError
from intcode.pipeline import (
    Chain,
    FeedbackRing,
    ThreadedFeedbackRing,
    best_chain,
    best_feedback,
    run_chain,
    run_feedback_ring,
)

CHAIN_PROGRAM_B = [
    3, 23, 3, 24, 1002, 24, 10, 24, 1002, 23, -1, 23, 101, 5, 23, 23, 1, 24, 23, 23, 4, 23, 99, 0, 0,
]

FEEDBACK_PROGRAM_B = [
    3, 52, 1001, 52, -5, 52, 3, 53, 1, 52, 56, 54, 1007, 54, 5, 55, 1005, 55, 26, 1001, 54,
    -5, 54, 1105, 1, 12, 1, 53, 54, 53, 1008, 54, 0, 55, 1001, 55, 1, 55, 2, 53, 55, 53, 4,
    53, 1001, 56, -1, 56, 1005, 56, 6, 99, 0, 0, 0, 0, 10,
]


def test_chain_signal(chain_program):
    assert run_chain(chain_program, [4, 3, 2, 1, 0]) == 43210
    assert run_chain(CHAIN_PROGRAM_B, [0, 1, 2, 3, 4]) == 54321


def test_chain_is_reusable(chain_program):
    chain = Chain(chain_program, 5)
    assert chain.run([4, 3, 2, 1, 0]) == 43210
    assert chain.run([4, 3, 2, 1, 0]) == 43210


def test_best_chain(chain_program):
    assert best_chain(chain_program, [0, 1, 2, 3, 4]) == (43210, (4, 3, 2, 1, 0))


def test_feedback_ring(feedback_program):
    assert run_feedback_ring(feedback_program, [9, 8, 7, 6, 5]) == 139629729
    assert run_feedback_ring(FEEDBACK_PROGRAM_B, [9, 7, 8, 5, 6]) == 18216


def test_threaded_feedback_ring(feedback_program):
    ring = ThreadedFeedbackRing(feedback_program, 5, timeout=10)
    assert ring.run([9, 8, 7, 6, 5]) == 139629729
    assert all(machine.join(5) for machine in ring.machines)
    assert run_feedback_ring(FEEDBACK_PROGRAM_B, [9, 7, 8, 5, 6], threaded=True) == 18216


def test_best_feedback(feedback_program, caplog):
    with caplog.at_level(logging.INFO, logger="intcode.pipeline"):
        assert best_feedback(feedback_program, [5, 6, 7, 8, 9]) == (139629729, (9, 8, 7, 6, 5))
    assert any("best configuration" in record.getMessage() for record in caplog.records)


def test_configuration_count_checked(chain_program):
    with pytest.raises(ValueError):
        Chain(chain_program, 5).run([0, 1, 2])
    with pytest.raises(ValueError):
        FeedbackRing(chain_program, 2).run([5, 6, 7])


def test_faulting_chain_machine_is_reported():
    with pytest.raises(PipelineIncompleteError) as excinfo:
        run_chain([3, 0, 42], [0, 1])
    assert isinstance(excinfo.value.fault, InvalidOpcodeError)
    assert excinfo.value.machine == "chain-0"


def test_silent_chain_machine_is_incomplete():
    with pytest.raises(PipelineIncompleteError):
        run_chain([3, 0, 3, 0, 99], [0, 1])


def test_starved_ring_is_incomplete():
    with pytest.raises(PipelineIncompleteError):
        run_feedback_ring([3, 0, 3, 0, 99], [5, 6])


def test_faulting_threaded_ring_is_incomplete():
    with pytest.raises(PipelineIncompleteError) as excinfo:
        ThreadedFeedbackRing([3, 0, 42], 3, timeout=5).run([5, 6, 7])
    assert isinstance(excinfo.value.fault, InvalidOpcodeError)


def test_search_propagates_incomplete_trial(caplog):
    with caplog.at_level(logging.WARNING, logger="intcode.pipeline"):
        with pytest.raises(PipelineIncompleteError):
            best_chain([3, 0, 42], [0, 1])
    assert any("incomplete" in record.getMessage() for record in caplog.records)


# IN [100]; IN [101]; only the machine configured with 6 jumps to the bad opcode at 20,
# the others echo [101] forever.
FAULTS_ON_SIX = [3, 100, 3, 101, 1008, 100, 6, 102, 1005, 102, 20, 4, 101, 1105, 1, 2, 99, 0, 0, 0, 42]


def test_threaded_ring_reports_the_machine_that_faulted():
    ring = ThreadedFeedbackRing(FAULTS_ON_SIX, 3, timeout=20)
    started = time.monotonic()
    with pytest.raises(PipelineIncompleteError) as excinfo:
        ring.run([5, 6, 7])
    assert time.monotonic() - started < 5
    assert excinfo.value.machine == "ring-1"
    assert isinstance(excinfo.value.fault, InvalidOpcodeError)
    assert excinfo.value.fault.ip == 20
    assert all(machine.done.is_set() for machine in ring.machines)
    assert ring.machines[0].fault is None
