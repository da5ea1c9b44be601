"""
Pytest fixtures shared by the intcode tests.
"""
from typing import List

import pytest

CHAIN_PROGRAM = [3, 15, 3, 16, 1002, 16, 10, 16, 1, 16, 15, 15, 4, 15, 99, 0, 0]

FEEDBACK_PROGRAM = [
    3, 26, 1001, 26, -4, 26, 3, 27, 1002, 27, 2, 27, 1, 27, 26,
    27, 4, 27, 1001, 28, -1, 28, 1005, 28, 6, 99, 0, 0, 5,
]

# Reads a panel colour before each (paint, turn) pair and stores it at 100+k.
ROBOT_PROGRAM: List[int] = []
for _index, (_color, _turn) in enumerate([(1, 0), (0, 0), (1, 0), (1, 0), (0, 1), (1, 0), (1, 0)]):
    ROBOT_PROGRAM += [3, 100 + _index, 104, _color, 104, _turn]
ROBOT_PROGRAM.append(99)


@pytest.fixture
def chain_program() -> List[int]:
    return list(CHAIN_PROGRAM)


@pytest.fixture
def feedback_program() -> List[int]:
    return list(FEEDBACK_PROGRAM)


@pytest.fixture
def robot_program() -> List[int]:
    return list(ROBOT_PROGRAM)


@pytest.fixture
def write_program(tmp_path):
    def _write(program, name="program.txt"):
        path = tmp_path / name
        if isinstance(program, str):
            path.write_text(program, encoding="utf-8")
        else:
            path.write_text(",".join(str(value) for value in program) + "\n", encoding="utf-8")
        return path

    return _write
