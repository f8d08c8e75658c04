"""Arithmetic in the BabyBear prime field and helpers for building traces."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

P = 15 * (1 << 27) + 1
"""The BabyBear prime, the default base and extension field of the machine."""

ZERO = 0
ONE = 1


def canonical(value: int) -> int:
    """Return the canonical representative of ``value`` in ``[0, P)``."""
    return value % P


def inverse(value: int) -> int:
    """Return the multiplicative inverse of ``value``.

    Raises ZeroDivisionError for zero, which has no inverse.
    """
    reduced = canonical(value)
    if reduced == 0:
        raise ZeroDivisionError("zero has no multiplicative inverse")
    return pow(reduced, P - 2, P)


def batch_multiplicative_inverse(values: Iterable[int]) -> list[int]:
    """Invert every element of ``values``; zero entries stay zero."""
    return [inverse(v) if canonical(v) else ZERO for v in values]


def powers(base: int) -> Iterator[int]:
    """Yield ``1, base, base**2, ...`` in the field, without end."""
    base = canonical(base)
    current = ONE
    while True:
        yield current
        current = current * base % P


def next_power_of_two(n: int) -> int:
    """Return the smallest power of two that is at least ``n`` (1 for 0)."""
    if n < 0:
        raise ValueError("n must not be negative")
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def pad_to_power_of_two(rows: Sequence[int], width: int) -> list[int]:
    """Pad a flat row-major trace with zero rows up to a power-of-two height.

    ``rows`` holds the trace values row after row, ``width`` values per row.
    """
    if width <= 0:
        raise ValueError("width must be positive")
    if len(rows) % width:
        raise ValueError(
            f"trace of {len(rows)} values does not split into rows of {width}"
        )
    height = len(rows) // width
    padded = list(rows)
    padded.extend([ZERO] * ((next_power_of_two(height) - height) * width))
    return padded