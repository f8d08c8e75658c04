"""The memory chip: a log of reads and writes, checked to be consistent."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from enum import Enum
from itertools import pairwise
from typing import Any

from zkvalida.chip import BusArgument, Chip, Interaction, VirtualPairCol
from zkvalida.field import ONE, ZERO, batch_multiplicative_inverse, canonical, next_power_of_two
from zkvalida.word import MEMORY_CELL_BYTES, Word

ADDR = 0
VALUE = tuple(range(1, 1 + MEMORY_CELL_BYTES))
CLK = 5
IS_READ = 6
IS_REAL = 7
DIFF = 8
DIFF_INV = 9
ADDR_NOT_EQUAL = 10
COUNTER = 11
COUNTER_MULT = 12
NUM_MEM_COLS = 13


class OperationKind(Enum):
    """What a logged memory operation did."""

    READ = "read"
    WRITE = "write"
    DUMMY_READ = "dummy_read"


@dataclass(frozen=True)
class MemoryOperation:
    """One access to a memory address and the word it saw or stored."""

    kind: OperationKind
    address: int
    value: Word

    @property
    def is_read(self) -> bool:
        return self.kind is not OperationKind.WRITE

    @property
    def is_real(self) -> bool:
        return self.kind is not OperationKind.DUMMY_READ


def _sort_key(entry: tuple[int, MemoryOperation]) -> tuple[int, int]:
    clk, op = entry
    return op.address, clk


def _dummy(address: int, value: Word) -> MemoryOperation:
    return MemoryOperation(OperationKind.DUMMY_READ, address, value)


@dataclass
class MemoryChip(Chip):
    """Memory cells and the operations logged against them, keyed by clock cycle."""

    cells: dict[int, Word] = field(default_factory=dict)
    operations: dict[int, list[MemoryOperation]] = field(default_factory=dict)

    def read(self, clk: int, address: int, log: bool) -> Word:
        """Return the word at ``address``, logging the read at ``clk`` if asked.

        Raises KeyError if the address has never been written.
        """
        try:
            value = self.cells[address]
        except KeyError:
            raise KeyError(f"address {address} has never been written") from None
        if log:
            self.operations.setdefault(clk, []).append(
                MemoryOperation(OperationKind.READ, address, value)
            )
        return value

    def write(self, clk: int, address: int, value: Word, log: bool) -> None:
        """Store ``value`` at ``address``, logging the write at ``clk`` if asked."""
        if log:
            self.operations.setdefault(clk, []).append(
                MemoryOperation(OperationKind.WRITE, address, value)
            )
        self.cells[address] = value

    def generate_trace(self, machine: Any) -> list[list[int]]:
        """Build the main trace, sorted by address and then by clock cycle."""
        ops = [
            (clk, op)
            for clk, batch in sorted(self.operations.items())
            for op in batch
        ]
        ops.sort(key=_sort_key)
        _insert_dummy_reads(ops)
        rows = [_op_to_row(n, clk, op) for n, (clk, op) in enumerate(ops)]
        _compute_address_diffs(ops, rows)
        return rows

    def local_sends(self) -> list[Interaction]:
        return [
            Interaction(
                fields=[VirtualPairCol.single_main(DIFF)],
                count=VirtualPairCol.one(),
                argument=BusArgument.local(0),
            )
        ]

    def local_receives(self) -> list[Interaction]:
        return [
            Interaction(
                fields=[VirtualPairCol.single_main(COUNTER)],
                count=VirtualPairCol.single_main(COUNTER_MULT),
                argument=BusArgument.local(0),
            )
        ]

    def global_receives(self, machine: Any) -> list[Interaction]:
        """Receive ``(is_read, clk, addr, value...)`` from the machine's memory bus."""
        fields = [
            VirtualPairCol.single_main(IS_READ),
            VirtualPairCol.single_main(CLK),
            VirtualPairCol.single_main(ADDR),
            *(VirtualPairCol.single_main(column) for column in VALUE),
        ]
        return [
            Interaction(
                fields=fields,
                count=VirtualPairCol.single_main(IS_REAL),
                argument=machine.mem_bus(),
            )
        ]

    def eval(self, builder: Any) -> None:
        local, following = builder.main
        addr_not_equal = local[ADDR_NOT_EQUAL]

        # Address equality
        builder.when_transition().when(addr_not_equal).assert_one(
            (following[ADDR] - local[ADDR]) * local[DIFF_INV]
        )
        builder.assert_bool(addr_not_equal)

        # Non-contiguous
        builder.when_transition().when(addr_not_equal).assert_eq(
            local[DIFF], following[ADDR] - local[ADDR]
        )
        builder.when_transition().when_ne(addr_not_equal, ONE).assert_eq(
            local[DIFF], following[CLK] - local[CLK]
        )

        # Read/write
        for column in VALUE:
            (
                builder.when_transition()
                .when(following[IS_READ])
                .when(following[IS_REAL])
                .when_ne(addr_not_equal, ONE)
                .assert_eq(following[column], local[column])
            )
        builder.when(following[IS_READ]).when(following[IS_REAL]).assert_eq(
            local[ADDR], following[ADDR]
        )

        # Counter increments from zero.
        builder.when_first_row().assert_zero(local[COUNTER])
        builder.when_transition().assert_eq(following[COUNTER], local[COUNTER] + ONE)


def _op_to_row(n: int, clk: int, op: MemoryOperation) -> list[int]:
    row = [ZERO] * NUM_MEM_COLS
    row[CLK] = canonical(clk)
    row[COUNTER] = canonical(n)
    row[ADDR] = canonical(op.address)
    for column, cell in zip(VALUE, op.value):
        row[column] = canonical(cell)
    row[IS_READ] = ONE if op.is_read else ZERO
    row[IS_REAL] = ONE if op.is_real else ZERO
    return row


def _insert_dummy_reads(ops: list[tuple[int, MemoryOperation]]) -> None:
    """Keep consecutive address and clock gaps within the table length, then pad."""
    if not ops:
        return

    table_len = len(ops)
    dummies: list[tuple[int, MemoryOperation]] = []
    for (clk1, op1), (clk2, op2) in pairwise(ops):
        addr_diff = op2.address - op1.address
        if addr_diff:
            if addr_diff > table_len:
                dummies.extend(
                    (clk1, _dummy(op1.address + table_len * (i + 1), op1.value))
                    for i in range(addr_diff // table_len)
                )
        else:
            clk_diff = clk2 - clk1
            if clk_diff > table_len:
                dummies.extend(
                    (clk1 + table_len * (j + 1), _dummy(op1.address, op1.value))
                    for j in range(clk_diff // table_len)
                )

    for clk, dummy in dummies:
        start = bisect_left(ops, dummy.address, key=lambda e: e[1].address)
        if start < len(ops) and ops[start][1].address == dummy.address:
            ops.insert(start, (clk, dummy))
            end = start
            while end < len(ops) and ops[end][1].address == dummy.address:
                end += 1
            position = bisect_left(ops, clk, lo=start, hi=end, key=lambda e: e[0])
            ops.insert(position, (clk, dummy))
        else:
            ops.insert(start, (clk, dummy))

    last_clk, last_op = ops[-1]
    padding = next_power_of_two(len(ops)) - len(ops)
    ops.extend([(last_clk, _dummy(last_op.address, last_op.value))] * padding)

    ops.sort(key=_sort_key)


def _compute_address_diffs(
    ops: list[tuple[int, MemoryOperation]], rows: list[list[int]]
) -> None:
    """Fill in ``diff``, ``diff_inv``, ``addr_not_equal`` and ``counter_mult``."""
    if not ops:
        return

    height = len(rows)
    diff = [ZERO] * height
    mult = [ZERO] * height
    for n, ((clk, op), (clk_next, op_next)) in enumerate(pairwise(ops)):
        value = (op_next.address - op.address) or (clk_next - clk)
        if value >= height:
            raise ValueError(
                f"difference {value} at row {n} does not fit in a trace of {height} rows"
            )
        diff[n] = canonical(value)
        mult[value] += ONE

    diff_inv = batch_multiplicative_inverse(diff)

    for n, ((_, op), (_, op_next)) in enumerate(pairwise(ops)):
        row = rows[n]
        row[DIFF] = diff[n]
        row[DIFF_INV] = diff_inv[n]
        row[COUNTER_MULT] = mult[n]
        if op_next.address != op.address:
            row[ADDR_NOT_EQUAL] = ONE

    # The first row's zero-valued diff is also sent to the local range check bus.
    rows[0][COUNTER_MULT] = canonical(rows[0][COUNTER_MULT] + ONE)