"""Four-cell machine words, most significant cell first."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from zkvalida.field import canonical

MEMORY_CELL_BYTES = 4
_U32_LIMIT = 1 << 32
_U32_MASK = _U32_LIMIT - 1


@dataclass(frozen=True, order=True)
class Word:
    """A memory word of four cells, stored big-endian.

    Cells are usually bytes, but may hold field elements or column indices.
    Arithmetic operators treat a byte word as an unsigned 32-bit integer.
    """

    cells: tuple = (0,) * MEMORY_CELL_BYTES

    def __post_init__(self) -> None:
        cells = tuple(self.cells)
        if len(cells) != MEMORY_CELL_BYTES:
            raise ValueError(
                f"a word has {MEMORY_CELL_BYTES} cells, got {len(cells)}"
            )
        object.__setattr__(self, "cells", cells)

    @classmethod
    def from_u32(cls, value: int) -> Word:
        """Split an unsigned 32-bit integer into a big-endian byte word."""
        if not 0 <= value < _U32_LIMIT:
            raise ValueError(f"{value} does not fit in 32 bits")
        return cls(tuple(value.to_bytes(MEMORY_CELL_BYTES, "big")))

    @classmethod
    def from_byte(cls, value: Any) -> Word:
        """Place a single value in the least significant cell."""
        return cls((0,) * (MEMORY_CELL_BYTES - 1) + (value,))

    def to_u32(self) -> int:
        """Join a byte word into an unsigned 32-bit integer."""
        try:
            return int.from_bytes(bytes(self.cells), "big")
        except (ValueError, TypeError) as exc:
            raise ValueError(f"{self.cells} is not a byte word") from exc

    def transform(self, func: Callable[[Any], Any]) -> Word:
        """Return a word with ``func`` applied to every cell."""
        return Word(tuple(map(func, self.cells)))

    def reduce(self) -> int:
        """Combine the cells into one field element, base 256, big-endian."""
        total = 0
        for cell in self.cells:
            total = total * 256 + cell
        return canonical(total)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> Any:
        return self.cells[index]

    def __len__(self) -> int:
        return MEMORY_CELL_BYTES

    def __add__(self, other: Word) -> Word:
        return Word.from_u32((self.to_u32() + other.to_u32()) & _U32_MASK)

    def __sub__(self, other: Word) -> Word:
        result = self.to_u32() - other.to_u32()
        if result < 0:
            raise OverflowError("word subtraction underflowed")
        return Word.from_u32(result)

    def __mul__(self, other: Word) -> Word:
        result = self.to_u32() * other.to_u32()
        if result >= _U32_LIMIT:
            raise OverflowError("word multiplication overflowed")
        return Word.from_u32(result)

    def __truediv__(self, other: Word) -> Word:
        divisor = other.to_u32()
        if divisor == 0:
            raise ZeroDivisionError("word division by zero")
        return Word.from_u32(self.to_u32() // divisor)

    __floordiv__ = __truediv__

    def __lshift__(self, other: Word) -> Word:
        shift = other.to_u32()
        if shift >= 32:
            raise OverflowError("shift left by 32 or more bits")
        return Word.from_u32((self.to_u32() << shift) & _U32_MASK)

    def __rshift__(self, other: Word) -> Word:
        shift = other.to_u32()
        if shift >= 32:
            raise OverflowError("shift right by 32 or more bits")
        return Word.from_u32(self.to_u32() >> shift)

    def __xor__(self, other: Word) -> Word:
        return Word(tuple(a ^ b for a, b in zip(self.cells, other.cells)))

    def __and__(self, other: Word) -> Word:
        return Word(tuple(a & b for a, b in zip(self.cells, other.cells)))

    def __or__(self, other: Word) -> Word:
        return Word(tuple(a | b for a, b in zip(self.cells, other.cells)))