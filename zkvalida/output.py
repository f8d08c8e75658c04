"""The output chip: bytes a program writes out, with the clock cycle of each."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import pairwise
from typing import Any

from zkvalida.chip import Chip, Interaction, VirtualPairCol
from zkvalida.field import ONE, ZERO, canonical, pad_to_power_of_two
from zkvalida.instruction import CPU_MEMORY_CHANNELS, Opcode
from zkvalida.word import MEMORY_CELL_BYTES

CLK = 0
VALUE = 1
IS_REAL = 2
DIFF = 3
COUNTER = 4
COUNTER_MULT = 5
OPCODE = 6
NUM_OUTPUT_COLS = 7


def _row(clk: int, value: int = 0, is_real: bool = False) -> list[int]:
    row = [ZERO] * NUM_OUTPUT_COLS
    row[CLK] = canonical(clk)
    row[VALUE] = canonical(value)
    row[IS_REAL] = ONE if is_real else ZERO
    return row


@dataclass
class OutputChip(Chip):
    """Output bytes as ``(clk, byte)`` pairs, in the order they were written."""

    values: list[tuple[int, int]] = field(default_factory=list)

    def write(self, clk: int, value: int) -> None:
        """Record that ``value``, a byte, was written out at clock cycle ``clk``."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"{value} is not a byte")
        if clk < 0:
            raise ValueError("clock cycle must not be negative")
        self.values.append((clk, value))

    def generate_trace(self, machine: Any) -> list[list[int]]:
        """One real row per byte, with dummy rows keeping clock gaps within the table length."""
        table_len = len(self.values)
        rows: list[list[int]] = []
        for (clk_1, val_1), (clk_2, _) in pairwise(self.values):
            clk_diff = clk_2 - clk_1
            if clk_diff < 0:
                raise ValueError(
                    f"output at clock {clk_2} follows output at clock {clk_1}"
                )
            window = [_row(clk_1, val_1, is_real=True)]
            # Dummy outputs to satisfy the range check.
            window.extend(
                _row(clk_1 + table_len * (n + 1))
                for n in range(1, clk_diff // table_len + 1)
            )
            clks = [row[CLK] for row in window] + [canonical(clk_2)]
            for row, (current, following) in zip(window, pairwise(clks)):
                row[DIFF] = canonical(following - current)
            rows.extend(window)

        if self.values:
            last_clk, last_value = self.values[-1]
            rows.append(_row(last_clk, last_value, is_real=True))

        flat = [value for row in rows for value in row]
        padded = pad_to_power_of_two(flat, NUM_OUTPUT_COLS)
        return [
            padded[i : i + NUM_OUTPUT_COLS]
            for i in range(0, len(padded), NUM_OUTPUT_COLS)
        ]

    def global_receives(self, machine: Any) -> list[Interaction]:
        """Receive ``(opcode, memory channel values..., clk)`` from the general bus."""
        values = [
            VirtualPairCol.constant(ZERO)
            for _ in range(CPU_MEMORY_CHANNELS * MEMORY_CELL_BYTES)
        ]
        values[MEMORY_CELL_BYTES - 1] = VirtualPairCol.single_main(VALUE)
        fields = [
            VirtualPairCol.single_main(OPCODE),
            *values,
            VirtualPairCol.single_main(CLK),
        ]
        return [
            Interaction(
                fields=fields,
                count=VirtualPairCol.single_main(IS_REAL),
                argument=machine.general_bus(),
            )
        ]

    def eval(self, builder: Any) -> None:
        local, following = builder.main

        # Range check constraints
        builder.when_transition().assert_eq(local[DIFF], following[CLK] - local[CLK])
        builder.when_transition().assert_eq(following[COUNTER], local[COUNTER] + ONE)

        # Bus opcode constraint
        builder.when(local[IS_REAL]).assert_eq(local[OPCODE], int(Opcode.WRITE))