import pytest
from hypothesis import given
from hypothesis import strategies as st

from zkvalida.builder import ConstraintViolation
from zkvalida.chip import BusArgument, generate_permutation_trace
from zkvalida.check import check_constraints
from zkvalida.field import P
from zkvalida.range_checker import NUM_RANGE_COLS, RangeCheckerChip
from zkvalida.word import Word

CHALLENGES = [11, 13, 17]


class _Machine:
    def range_bus(self):
        return BusArgument.global_(1)


def test_default_bound_is_a_byte():
    chip = RangeCheckerChip()
    assert len(chip.generate_trace(_Machine())) == 256


def test_range_check_counts_cells():
    chip = RangeCheckerChip(8)
    chip.range_check(Word((1, 2, 2, 7)))
    chip.range_check(Word.from_byte(2))
    assert chip.count[2] == 3
    assert chip.count[1] == 1
    assert chip.count[7] == 1
    assert chip.count[0] == 3


@given(st.lists(st.integers(min_value=0, max_value=255), min_size=4, max_size=4))
def test_counts_total_four_per_word(cells):
    chip = RangeCheckerChip()
    chip.range_check(Word(tuple(cells)))
    assert sum(chip.count.values()) == 4
    trace = chip.generate_trace(_Machine())
    assert sum(row[0] for row in trace) == 4


def test_range_check_rejects_negative():
    chip = RangeCheckerChip(8)
    with pytest.raises(ValueError):
        chip.range_check([-1])


def test_negative_bound_rejected():
    with pytest.raises(ValueError):
        RangeCheckerChip(-1)


def test_generate_trace_rows():
    chip = RangeCheckerChip(4)
    chip.range_check([3, 3, 0])
    trace = chip.generate_trace(_Machine())
    assert trace == [[1, 0], [0, 1], [0, 2], [2, 3]]
    assert all(len(row) == NUM_RANGE_COLS for row in trace)


def test_values_outside_bound_not_in_trace():
    chip = RangeCheckerChip(4)
    chip.range_check([9])
    assert chip.count[9] == 1
    assert all(row[0] == 0 for row in chip.generate_trace(_Machine()))


def test_preprocessed_trace_is_counter_column():
    chip = RangeCheckerChip(5)
    assert chip.preprocessed_trace() == [[n] for n in range(5)]


def test_global_receives():
    chip = RangeCheckerChip(4)
    chip.range_check([2, 2])
    (interaction,) = chip.global_receives(_Machine())
    assert interaction.argument == BusArgument.global_(1)
    row = chip.generate_trace(_Machine())[2]
    assert [f.apply((), row) for f in interaction.fields] == [2]
    assert interaction.count.apply((), row) == 2


def test_permutation_trace_satisfies_constraints():
    machine = _Machine()
    chip = RangeCheckerChip(8)
    chip.range_check(Word((1, 2, 2, 7)))
    main = chip.generate_trace(machine)
    perm = generate_permutation_trace(machine, chip, main, CHALLENGES)
    assert check_constraints(machine, chip, main, perm, CHALLENGES) == perm[-1][-1]


def test_tampered_running_sum_is_rejected():
    machine = _Machine()
    chip = RangeCheckerChip(8)
    chip.range_check(Word((1, 2, 2, 7)))
    main = chip.generate_trace(machine)
    perm = generate_permutation_trace(machine, chip, main, CHALLENGES)
    perm[3][-1] = (perm[3][-1] + 1) % P
    with pytest.raises(ConstraintViolation):
        check_constraints(machine, chip, main, perm, CHALLENGES)