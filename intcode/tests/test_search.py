import pytest

from intcode.errors import AddressOutOfRangeError
from intcode.search import find_noun_verb, run_patched

# ADD #noun #verb -> [0]
ADDER = [1101, 0, 0, 0, 99]


def test_run_patched_returns_cell_zero():
    assert run_patched(ADDER, 12, 2) == 14
    assert run_patched([1, 0, 0, 0, 99], 4, 4) == 198


def test_find_noun_verb():
    assert find_noun_verb(ADDER, 150) == (51, 99)
    assert find_noun_verb(ADDER, 7, nouns=[3], verbs=range(10)) == (3, 4)


def test_find_noun_verb_skips_faulting_pairs():
    assert find_noun_verb([1, 0, 0, 0, 99], 198) == (4, 4)


def test_no_match_raises_lookup_error():
    with pytest.raises(LookupError):
        find_noun_verb(ADDER, 500)


def test_run_patched_raises_fault():
    with pytest.raises(AddressOutOfRangeError):
        run_patched([1, 0, 0, 0, 99], 70, 0)
