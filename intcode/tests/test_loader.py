import pytest

from intcode.errors import ProgramLoadError
from intcode.loader import load_program, load_programs, parse_program, parse_programs


def test_parse_program_strips_whitespace():
    assert parse_program(" 1, 2 ,-3,+4\r\n") == [1, 2, -3, 4]


def test_non_numeric_token_rejected():
    with pytest.raises(ProgramLoadError) as excinfo:
        parse_program("1,x,3", line=4)
    assert excinfo.value.line == 4
    assert excinfo.value.token == "x"


def test_empty_token_rejected():
    with pytest.raises(ProgramLoadError):
        parse_program("1,,2")
    with pytest.raises(ProgramLoadError):
        parse_program("   ")


def test_parse_programs_skips_blank_lines():
    assert parse_programs("1,2\n\n3,4\n") == [[1, 2], [3, 4]]
    with pytest.raises(ProgramLoadError) as excinfo:
        parse_programs("1,2\n\n3,y\n")
    assert excinfo.value.line == 3


def test_load_program_by_line(write_program):
    path = write_program("1,2,3\n99\n")
    assert load_programs(path) == [[1, 2, 3], [99]]
    assert load_program(path) == [1, 2, 3]
    assert load_program(path, line=1) == [99]
    with pytest.raises(ProgramLoadError):
        load_program(path, line=2)


def test_value_outside_int64_is_a_load_error():
    assert parse_program("9223372036854775807,-9223372036854775808") == [2**63 - 1, -(2**63)]
    with pytest.raises(ProgramLoadError) as excinfo:
        parse_program("1,9223372036854775808")
    assert excinfo.value.token == "9223372036854775808"
