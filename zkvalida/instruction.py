"""Opcodes, operands, instruction words and the program ROM."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum

from zkvalida.field import canonical
from zkvalida.word import Word

OPERAND_ELEMENTS = 5
INSTRUCTION_ELEMENTS = OPERAND_ELEMENTS + 1
CPU_MEMORY_CHANNELS = 3
LOOKUP_DEGREE_BOUND = 3

_I32_MAX = (1 << 31) - 1


class Opcode(IntEnum):
    """Numeric opcodes of the instruction set."""

    # Core
    LOAD32 = 1
    STORE32 = 2
    JAL = 3
    JALV = 4
    BEQ = 5
    BNE = 6
    IMM32 = 7
    STOP = 8
    # Nondeterministic
    READ_ADVICE = 9
    WRITE_ADVICE = 10
    # U32 ALU
    ADD32 = 100
    SUB32 = 101
    MUL32 = 102
    DIV32 = 103
    LT32 = 104
    SHL32 = 105
    SHR32 = 106
    AND32 = 107
    OR32 = 108
    XOR32 = 109
    # Native field
    ADD = 200
    SUB = 201
    MUL = 202
    # Output
    WRITE = 300


@dataclass(frozen=True)
class Operands:
    """The five operands ``a, b, c, d, e`` of an instruction."""

    values: tuple = (0,) * OPERAND_ELEMENTS

    def __post_init__(self) -> None:
        values = tuple(self.values)
        if len(values) != OPERAND_ELEMENTS:
            raise ValueError(
                f"an instruction has {OPERAND_ELEMENTS} operands, got {len(values)}"
            )
        object.__setattr__(self, "values", values)

    @classmethod
    def from_i32(cls, values: Iterable[int]) -> Operands:
        """Map signed 32-bit operands into the field; missing ones are zero."""
        values = tuple(values)
        if len(values) > OPERAND_ELEMENTS:
            raise ValueError(
                f"at most {OPERAND_ELEMENTS} operands, got {len(values)}"
            )
        for value in values:
            if abs(value) > _I32_MAX:
                raise ValueError(f"operand {value} is outside the signed 32-bit range")
        elements = tuple(canonical(v) for v in values)
        return cls(elements + (0,) * (OPERAND_ELEMENTS - len(elements)))

    @property
    def a(self):
        return self.values[0]

    @property
    def b(self):
        return self.values[1]

    @property
    def c(self):
        return self.values[2]

    @property
    def d(self):
        return self.values[3]

    @property
    def e(self):
        return self.values[4]

    @property
    def is_imm(self):
        return self.values[4]

    def imm32(self) -> Word:
        """The 32-bit immediate spread over operands ``b`` to ``e``."""
        return Word(self.values[1:5])

    def __iter__(self) -> Iterator:
        return iter(self.values)

    def __getitem__(self, index: int):
        return self.values[index]


@dataclass(frozen=True)
class InstructionWord:
    """An opcode together with its operands."""

    opcode: int = 0
    operands: Operands = field(default_factory=Operands)

    def flatten(self) -> tuple[int, ...]:
        """The opcode and operands as field elements, opcode first."""
        return (canonical(self.opcode), *Operands.from_i32(self.operands.values).values)


@dataclass
class ProgramROM:
    """The read-only sequence of instructions a program consists of."""

    instructions: list[InstructionWord] = field(default_factory=list)

    def get_instruction(self, pc: int) -> InstructionWord:
        """Return the instruction at program counter ``pc``."""
        if not 0 <= pc < len(self.instructions):
            raise IndexError(f"program counter {pc} is outside the program")
        return self.instructions[pc]

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[InstructionWord]:
        return iter(self.instructions)