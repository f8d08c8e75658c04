"""The program chip: the fixed program ROM and how often each instruction was read."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from zkvalida.chip import Chip, Interaction, VirtualPairCol
from zkvalida.field import ZERO, canonical, next_power_of_two, pad_to_power_of_two
from zkvalida.instruction import OPERAND_ELEMENTS, InstructionWord, ProgramROM

MULTIPLICITY = 0
NUM_COLS = 1

PC = 0
OPCODE = 1
OPERANDS = tuple(range(2, 2 + OPERAND_ELEMENTS))
NUM_PREPROCESSED_COLS = 2 + OPERAND_ELEMENTS


@dataclass
class ProgramChip(Chip):
    """Holds the program ROM and counts the reads of every instruction."""

    rom: ProgramROM = field(default_factory=ProgramROM)
    counts: list[int] = field(default_factory=list)

    def set_program_rom(self, rom: ProgramROM) -> None:
        """Load a copy of ``rom`` and reset every read count to zero."""
        self.rom = ProgramROM(list(rom.instructions))
        self.counts = [0] * len(self.rom)

    def read_word(self, index: int) -> None:
        """Record one read of the instruction at ``index``.

        Raises IndexError if ``index`` lies outside the program.
        """
        if not 0 <= index < len(self.rom):
            raise IndexError(f"instruction {index} is outside the program")
        self.counts[index] += 1

    def generate_trace(self, machine: Any) -> list[list[int]]:
        """One row per instruction holding its read count, padded to a power of two."""
        padded = pad_to_power_of_two([canonical(c) for c in self.counts], NUM_COLS)
        return [[value] for value in padded]

    def preprocessed_trace(self) -> list[list[int]]:
        """Rows of ``(pc, opcode, operands...)``, padded with empty instructions."""
        instructions = list(self.rom.instructions)
        instructions.extend(
            [InstructionWord()] * (next_power_of_two(len(instructions)) - len(instructions))
        )
        return [
            [canonical(pc), *word.flatten()] for pc, word in enumerate(instructions)
        ]

    def global_receives(self, machine: Any) -> list[Interaction]:
        """Receive ``(pc, opcode, operands...)`` from the program bus, once per read."""
        fields = [
            VirtualPairCol.single_preprocessed(PC),
            VirtualPairCol.single_preprocessed(OPCODE),
            *(VirtualPairCol.single_preprocessed(column) for column in OPERANDS),
        ]
        return [
            Interaction(
                fields=fields,
                count=VirtualPairCol.single_main(MULTIPLICITY),
                argument=machine.program_bus(),
            )
        ]

    def eval(self, builder: Any) -> None:
        """The chip adds no constraints beyond its bus interaction."""


__all__ = ["ProgramChip", "NUM_COLS", "NUM_PREPROCESSED_COLS", "ZERO"]