"""The range checker chip: counts how often each value below a bound was checked."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from zkvalida.chip import Chip, Interaction, VirtualPairCol
from zkvalida.field import ZERO, canonical

MULT = 0
COUNTER = 1
NUM_RANGE_COLS = 2


@dataclass
class RangeCheckerChip(Chip):
    """Range checks against ``[0, max_value)``, with a multiplicity per value."""

    max_value: int = 256
    count: Counter = field(default_factory=Counter)

    def __post_init__(self) -> None:
        if self.max_value < 0:
            raise ValueError("max_value must not be negative")
        self.count = Counter(self.count)

    def range_check(self, word: Iterable[int]) -> None:
        """Record every cell of ``word`` in the range check counter."""
        for cell in word:
            value = int(cell)
            if value < 0:
                raise ValueError(f"cannot range check negative value {value}")
            self.count[value] += 1

    def generate_trace(self, machine: Any) -> list[list[int]]:
        """One row ``(multiplicity, value)`` for every value below ``max_value``."""
        rows = []
        for n in range(self.max_value):
            row = [ZERO] * NUM_RANGE_COLS
            row[MULT] = canonical(self.count.get(n, 0))
            row[COUNTER] = canonical(n)
            rows.append(row)
        return rows

    def preprocessed_trace(self) -> list[list[int]]:
        """A single column holding ``0, 1, ..., max_value - 1``."""
        return [[canonical(n)] for n in range(self.max_value)]

    def global_receives(self, machine: Any) -> list[Interaction]:
        """Receive each value from the range bus as often as it was checked."""
        return [
            Interaction(
                fields=[VirtualPairCol.single_main(COUNTER)],
                count=VirtualPairCol.single_main(MULT),
                argument=machine.range_bus(),
            )
        ]

    def eval(self, builder: Any) -> None:
        """The chip adds no constraints beyond its bus interaction."""