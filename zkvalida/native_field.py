"""The native field chip: addition, subtraction and multiplication in the base field."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from zkvalida.chip import Chip, Interaction, VirtualPairCol
from zkvalida.field import ONE, ZERO, canonical, pad_to_power_of_two
from zkvalida.instruction import Opcode
from zkvalida.word import MEMORY_CELL_BYTES, Word

INPUT_1 = tuple(range(0, MEMORY_CELL_BYTES))
INPUT_2 = tuple(range(MEMORY_CELL_BYTES, 2 * MEMORY_CELL_BYTES))
OUTPUT = tuple(range(2 * MEMORY_CELL_BYTES, 3 * MEMORY_CELL_BYTES))
IS_ADD = 3 * MEMORY_CELL_BYTES
IS_SUB = IS_ADD + 1
IS_MUL = IS_ADD + 2
NUM_COLS = IS_ADD + 3

_FLAGS = {Opcode.ADD: IS_ADD, Opcode.SUB: IS_SUB, Opcode.MUL: IS_MUL}

_ARITHMETIC: dict[Opcode, Callable[[int, int], int]] = {
    Opcode.ADD: lambda b, c: b + c,
    Opcode.SUB: lambda b, c: b - c,
    Opcode.MUL: lambda b, c: b * c,
}


@dataclass(frozen=True)
class NativeFieldOperation:
    """One field operation: ``output = input_1 <op> input_2``."""

    opcode: Opcode
    output: Word
    input_1: Word
    input_2: Word


def _combine(row: Sequence[int], columns: Sequence[int]) -> int:
    """Join the big-endian byte cells in ``columns`` into one field value."""
    total = ZERO
    for column in columns:
        total = total * 256 + row[column]
    return total


def _op_to_row(op: NativeFieldOperation) -> list[int]:
    row = [ZERO] * NUM_COLS
    row[_FLAGS[op.opcode]] = ONE
    for columns, word in ((INPUT_1, op.input_1), (INPUT_2, op.input_2), (OUTPUT, op.output)):
        for column, cell in zip(columns, word):
            row[column] = canonical(cell)
    return row


@dataclass
class NativeFieldChip(Chip):
    """Records field operations on words and proves them correct."""

    operations: list[NativeFieldOperation] = field(default_factory=list)

    def execute(self, opcode: int, b: Word, c: Word) -> Word:
        """Compute ``b <op> c`` in the field, record the operation and return the result.

        Raises ValueError for an opcode that is not ADD, SUB or MUL.
        """
        code = Opcode(opcode)
        try:
            operation = _ARITHMETIC[code]
        except KeyError:
            raise ValueError(f"{code.name} is not a native field opcode") from None
        result = canonical(operation(canonical(b.to_u32()), canonical(c.to_u32())))
        a = Word.from_u32(result)
        self.operations.append(NativeFieldOperation(code, a, b, c))
        return a

    def generate_trace(self, machine: Any) -> list[list[int]]:
        """One row per operation, padded with zero rows to a power-of-two height."""
        flat = [value for op in self.operations for value in _op_to_row(op)]
        padded = pad_to_power_of_two(flat, NUM_COLS)
        return [padded[i : i + NUM_COLS] for i in range(0, len(padded), NUM_COLS)]

    def global_sends(self, machine: Any) -> list[Interaction]:
        """Send every output byte to the machine's range-check bus."""
        is_real = VirtualPairCol.sum_main([IS_ADD, IS_SUB, IS_MUL])
        return [
            Interaction(
                fields=[VirtualPairCol.single_main(column)],
                count=is_real,
                argument=machine.range_bus(),
            )
            for column in OUTPUT
        ]

    def global_receives(self, machine: Any) -> list[Interaction]:
        """Receive ``(opcode, input_1..., input_2..., output...)`` from the general bus."""
        opcode = VirtualPairCol.new_main(
            [
                (IS_ADD, int(Opcode.ADD)),
                (IS_SUB, int(Opcode.SUB)),
                (IS_MUL, int(Opcode.MUL)),
            ],
            ZERO,
        )
        fields = [
            opcode,
            *(VirtualPairCol.single_main(c) for c in INPUT_1),
            *(VirtualPairCol.single_main(c) for c in INPUT_2),
            *(VirtualPairCol.single_main(c) for c in OUTPUT),
        ]
        return [
            Interaction(
                fields=fields,
                count=VirtualPairCol.sum_main([IS_ADD, IS_SUB, IS_MUL]),
                argument=machine.general_bus(),
            )
        ]

    def eval(self, builder: Any) -> None:
        local, _ = builder.main
        b = _combine(local, INPUT_1)
        c = _combine(local, INPUT_2)
        a = _combine(local, OUTPUT)
        builder.when(local[IS_ADD]).assert_eq(a, b + c)
        builder.when(local[IS_SUB]).assert_eq(a, b - c)
        builder.when(local[IS_MUL]).assert_eq(a, b * c)