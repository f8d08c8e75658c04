"""Chips, bus interactions and the permutation argument that connects them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum, IntEnum
from itertools import islice
from typing import Any, NamedTuple

from zkvalida.field import ONE, ZERO, batch_multiplicative_inverse, canonical, powers


class _Source(Enum):
    PREPROCESSED = "preprocessed"
    MAIN = "main"


class _PairCol(NamedTuple):
    source: _Source
    index: int

    def value(self, preprocessed: Sequence[int], main: Sequence[int]) -> int:
        row = main if self.source is _Source.MAIN else preprocessed
        return row[self.index]


@dataclass(frozen=True)
class VirtualPairCol:
    """A linear combination of main and preprocessed columns plus a constant."""

    terms: tuple = ()
    offset: int = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "terms", tuple(self.terms))

    @classmethod
    def single_main(cls, column: int) -> VirtualPairCol:
        return cls(((_PairCol(_Source.MAIN, column), ONE),))

    @classmethod
    def single_preprocessed(cls, column: int) -> VirtualPairCol:
        return cls(((_PairCol(_Source.PREPROCESSED, column), ONE),))

    @classmethod
    def sum_main(cls, columns: Iterable[int]) -> VirtualPairCol:
        return cls(tuple((_PairCol(_Source.MAIN, c), ONE) for c in columns))

    @classmethod
    def new_main(cls, terms: Iterable[tuple[int, int]], constant: int) -> VirtualPairCol:
        """Weighted main columns, given as ``(column, weight)`` pairs, plus ``constant``."""
        return cls(
            tuple((_PairCol(_Source.MAIN, c), w) for c, w in terms), constant
        )

    @classmethod
    def constant(cls, value: int) -> VirtualPairCol:
        return cls((), value)

    @classmethod
    def one(cls) -> VirtualPairCol:
        return cls.constant(ONE)

    def apply(self, preprocessed: Sequence[int], main: Sequence[int]) -> int:
        """Evaluate the combination on one preprocessed row and one main row."""
        total = self.offset + sum(
            weight * column.value(preprocessed, main) for column, weight in self.terms
        )
        return canonical(total)


class _BusScope(IntEnum):
    LOCAL = 0
    GLOBAL = 1


@dataclass(frozen=True, order=True)
class BusArgument:
    """Which bus an interaction takes part in; local buses order before global ones."""

    scope: _BusScope
    index: int

    @classmethod
    def local(cls, index: int) -> BusArgument:
        return cls(_BusScope.LOCAL, index)

    @classmethod
    def global_(cls, index: int) -> BusArgument:
        return cls(_BusScope.GLOBAL, index)

    @property
    def is_local(self) -> bool:
        return self.scope is _BusScope.LOCAL

    @property
    def is_global(self) -> bool:
        return self.scope is _BusScope.GLOBAL


class InteractionType(Enum):
    """Whether an interaction sends to or receives from its bus."""

    LOCAL_SEND = "local_send"
    LOCAL_RECEIVE = "local_receive"
    GLOBAL_SEND = "global_send"
    GLOBAL_RECEIVE = "global_receive"

    @property
    def is_send(self) -> bool:
        return self in (InteractionType.LOCAL_SEND, InteractionType.GLOBAL_SEND)


@dataclass(frozen=True)
class Interaction:
    """A tuple of values put on or taken off a bus, with a multiplicity."""

    fields: tuple
    count: VirtualPairCol
    argument: BusArgument

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))

    def is_local(self) -> bool:
        return self.argument.is_local

    def is_global(self) -> bool:
        return self.argument.is_global

    def index(self) -> int:
        """The index of the bus within its scope."""
        return self.argument.index


class Chip(ABC):
    """A table of the machine: its trace, its bus interactions and its constraints."""

    @abstractmethod
    def generate_trace(self, machine: Any) -> list[list[int]]:
        """Build the main trace, one list of field elements per row."""

    def local_sends(self) -> list[Interaction]:
        return []

    def local_receives(self) -> list[Interaction]:
        return []

    def global_sends(self, machine: Any) -> list[Interaction]:
        return []

    def global_receives(self, machine: Any) -> list[Interaction]:
        return []

    def all_interactions(self, machine: Any) -> list[tuple[Interaction, InteractionType]]:
        """Every interaction with its type: local sends, local receives, global sends, global receives."""
        return [
            *((i, InteractionType.LOCAL_SEND) for i in self.local_sends()),
            *((i, InteractionType.LOCAL_RECEIVE) for i in self.local_receives()),
            *((i, InteractionType.GLOBAL_SEND) for i in self.global_sends(machine)),
            *((i, InteractionType.GLOBAL_RECEIVE) for i in self.global_receives(machine)),
        ]

    def preprocessed_trace(self) -> list[list[int]] | None:
        """The fixed trace of the chip, or None if it has none."""
        return None

    @abstractmethod
    def eval(self, builder: Any) -> None:
        """Apply the chip's constraints to ``builder``."""


def _alphas(random_element: int, interactions: Iterable[Interaction]) -> list[int]:
    count = max((i.index() for i in interactions), default=0) + 1
    return list(islice(powers(random_element), 1, count + 1))


def generate_rlc_elements(
    machine: Any, chip: Chip, random_elements: Sequence[int]
) -> tuple[list[int], list[int]]:
    """Per-bus offsets ``alpha**(i+1)`` for the local and the global buses of ``chip``."""
    alphas_local = _alphas(
        random_elements[0], [*chip.local_sends(), *chip.local_receives()]
    )
    alphas_global = _alphas(
        random_elements[1],
        [*chip.global_sends(machine), *chip.global_receives(machine)],
    )
    return alphas_local, alphas_global


def _alpha_for(
    interaction: Interaction, alphas_local: Sequence[int], alphas_global: Sequence[int]
) -> int:
    alphas = alphas_local if interaction.is_local() else alphas_global
    return alphas[interaction.index()]


def _reduce_row(
    interaction: Interaction,
    preprocessed_row: Sequence[int],
    main_row: Sequence[int],
    alpha: int,
    beta: int,
) -> int:
    rlc = sum(
        b * column.apply(preprocessed_row, main_row)
        for column, b in zip(interaction.fields, powers(beta))
    )
    return canonical(rlc + alpha)


def generate_permutation_trace(
    machine: Any, chip: Chip, main: Sequence[Sequence[int]], random_elements: Sequence[int]
) -> list[list[int]]:
    """Build the permutation trace of ``chip`` from its main trace.

    Each row holds one reciprocal ``1 / (alpha_i + sum_j beta**j * f_ij)`` per
    interaction, then the running sum of the signed, weighted reciprocals.
    """
    interactions = chip.all_interactions(machine)
    alphas_local, alphas_global = generate_rlc_elements(machine, chip, random_elements)
    beta = random_elements[2]
    preprocessed = chip.preprocessed_trace()

    perm = []
    phi = ZERO
    for n, main_row in enumerate(main):
        preprocessed_row = preprocessed[n] if preprocessed is not None else ()
        reciprocals = batch_multiplicative_inverse(
            _reduce_row(
                interaction,
                preprocessed_row,
                main_row,
                _alpha_for(interaction, alphas_local, alphas_global),
                beta,
            )
            for interaction, _ in interactions
        )
        for (interaction, kind), reciprocal in zip(interactions, reciprocals):
            term = interaction.count.apply(preprocessed_row, main_row) * reciprocal
            phi = canonical(phi + term if kind.is_send else phi - term)
        perm.append([*reciprocals, phi])
    return perm


def eval_permutation_constraints(chip: Chip, builder: Any, cumulative_sum: int) -> None:
    """Constrain the permutation trace of ``chip`` on the builder's two rows."""
    rand_elems = builder.permutation_randomness
    main_local, main_next = builder.main
    preprocessed_local, preprocessed_next = builder.preprocessed
    perm_local, perm_next = builder.permutation

    phi_local = perm_local[-1]
    phi_next = perm_next[-1]

    interactions = chip.all_interactions(builder.machine)
    alphas_local, alphas_global = generate_rlc_elements(builder.machine, chip, rand_elems)
    beta = rand_elems[2]

    lhs = phi_next - phi_local
    rhs = ZERO
    phi_0 = ZERO
    for m, (interaction, kind) in enumerate(interactions):
        rlc = _reduce_row(
            interaction,
            preprocessed_local,
            main_local,
            _alpha_for(interaction, alphas_local, alphas_global),
            beta,
        )
        builder.assert_one(rlc * perm_local[m])

        mult_local = interaction.count.apply(preprocessed_local, main_local)
        mult_next = interaction.count.apply(preprocessed_next, main_next)
        sign = 1 if kind.is_send else -1
        phi_0 += sign * mult_local * perm_local[m]
        rhs += sign * mult_next * perm_next[m]

    builder.when_transition().assert_eq(lhs, rhs)
    builder.when_first_row().assert_eq(perm_local[-1], phi_0)
    builder.when_last_row().assert_eq(perm_local[-1], cumulative_sum)