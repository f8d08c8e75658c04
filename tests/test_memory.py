import pytest

from zkvalida.builder import ConstraintViolation
from zkvalida.check import check_constraints
from zkvalida.chip import BusArgument, InteractionType, generate_permutation_trace
from zkvalida.memory import (
    ADDR,
    ADDR_NOT_EQUAL,
    CLK,
    COUNTER,
    DIFF,
    IS_READ,
    IS_REAL,
    NUM_MEM_COLS,
    VALUE,
    MemoryChip,
    MemoryOperation,
    OperationKind,
)
from zkvalida.word import Word

CHALLENGES = (7, 11, 13)


class _Machine:
    def mem_bus(self):
        return BusArgument.global_(0)


def _is_power_of_two(n):
    return n > 0 and n & (n - 1) == 0


def _check(chip):
    machine = _Machine()
    main = chip.generate_trace(machine)
    perm = generate_permutation_trace(machine, chip, main, CHALLENGES)
    return main, perm, check_constraints(machine, chip, main, perm, CHALLENGES)


def test_read_of_unwritten_address_raises():
    chip = MemoryChip()
    with pytest.raises(KeyError):
        chip.read(0, 12, True)


def test_write_then_read_returns_value_and_logs():
    chip = MemoryChip()
    word = Word.from_u32(0xDEADBEEF)
    chip.write(3, 8, word, True)
    assert chip.read(5, 8, True) == word
    assert chip.operations == {
        3: [MemoryOperation(OperationKind.WRITE, 8, word)],
        5: [MemoryOperation(OperationKind.READ, 8, word)],
    }


def test_unlogged_operations_are_not_recorded():
    chip = MemoryChip()
    word = Word.from_u32(42)
    chip.write(0, 1, word, False)
    assert chip.read(1, 1, False) == word
    assert chip.operations == {}


def test_empty_trace():
    assert MemoryChip().generate_trace(_Machine()) == []


def test_write_read_trace_layout():
    chip = MemoryChip()
    chip.write(0, 4, Word.from_u32(0x01020304), True)
    chip.read(1, 4, True)
    rows = chip.generate_trace(_Machine())
    assert rows == [
        [4, 1, 2, 3, 4, 0, 0, 1, 1, 1, 0, 0, 1],
        [4, 1, 2, 3, 4, 1, 1, 1, 0, 0, 0, 1, 0],
    ]


def test_address_gap_gets_dummy_reads():
    chip = MemoryChip()
    chip.write(0, 0, Word.from_u32(5), True)
    chip.write(1, 10, Word.from_u32(6), True)
    rows = chip.generate_trace(_Machine())
    height = len(rows)
    assert _is_power_of_two(height)
    assert all(len(row) == NUM_MEM_COLS for row in rows)
    assert [row[COUNTER] for row in rows] == list(range(height))
    keys = [(row[ADDR], row[CLK]) for row in rows]
    assert keys == sorted(keys)
    assert sum(row[IS_REAL] for row in rows) == 2
    assert all(row[DIFF] < height for row in rows)
    assert height > 2


def test_clock_gap_gets_dummy_reads():
    chip = MemoryChip()
    word = Word.from_u32(77)
    chip.write(0, 5, word, True)
    chip.read(10, 5, True)
    rows = chip.generate_trace(_Machine())
    assert _is_power_of_two(len(rows))
    assert all(row[ADDR] == 5 for row in rows)
    assert all(tuple(row[c] for c in VALUE) == tuple(word) for row in rows)
    assert all(row[ADDR_NOT_EQUAL] == 0 for row in rows)


def test_gap_equal_to_table_length_is_rejected():
    chip = MemoryChip()
    chip.write(0, 0, Word.from_u32(1), True)
    chip.write(1, 2, Word.from_u32(2), True)
    with pytest.raises(ValueError):
        chip.generate_trace(_Machine())


@pytest.mark.parametrize(
    "ops",
    [
        [("w", 0, 4, 9), ("r", 1, 4, None)],
        [("w", 0, 1, 3), ("w", 1, 2, 4)],
        [("w", 0, 0, 5), ("w", 1, 10, 6)],
        [("w", 0, 5, 77), ("r", 10, 5, None)],
    ],
)
def test_generated_traces_satisfy_constraints(ops):
    chip = MemoryChip()
    for kind, clk, address, value in ops:
        if kind == "w":
            chip.write(clk, address, Word.from_u32(value), True)
        else:
            chip.read(clk, address, True)
    main, perm, cumulative = _check(chip)
    assert cumulative == perm[-1][-1]
    assert len(perm) == len(main)


def test_tampered_read_value_violates_constraints():
    chip = MemoryChip()
    chip.write(0, 4, Word.from_u32(9), True)
    chip.read(1, 4, True)
    machine = _Machine()
    main = chip.generate_trace(machine)
    main[1][VALUE[-1]] += 1
    perm = generate_permutation_trace(machine, chip, main, CHALLENGES)
    with pytest.raises(ConstraintViolation):
        check_constraints(machine, chip, main, perm, CHALLENGES)


def test_global_receive_reads_bus_tuple():
    chip = MemoryChip()
    chip.write(0, 4, Word.from_u32(0x0A0B0C0D), True)
    chip.read(1, 4, True)
    machine = _Machine()
    rows = chip.generate_trace(machine)
    (receive,) = chip.global_receives(machine)
    assert receive.argument == machine.mem_bus()
    row = rows[1]
    assert [f.apply((), row) for f in receive.fields] == [
        row[IS_READ],
        row[CLK],
        row[ADDR],
        *(row[c] for c in VALUE),
    ]
    assert receive.count.apply((), row) == row[IS_REAL]


def test_local_bus_interactions():
    chip = MemoryChip()
    (send,) = chip.local_sends()
    (receive,) = chip.local_receives()
    assert send.is_local() and receive.is_local()
    assert send.index() == receive.index() == 0
    row = list(range(NUM_MEM_COLS))
    assert send.fields[0].apply((), row) == DIFF
    assert send.count.apply((), row) == 1
    assert receive.fields[0].apply((), row) == COUNTER


def test_all_interactions_order():
    chip = MemoryChip()
    kinds = [kind for _, kind in chip.all_interactions(_Machine())]
    assert kinds == [
        InteractionType.LOCAL_SEND,
        InteractionType.LOCAL_RECEIVE,
        InteractionType.GLOBAL_RECEIVE,
    ]