"""Debug checks that a chip's traces satisfy all its constraints."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from zkvalida.builder import ConstraintViolation, DebugConstraintBuilder
from zkvalida.chip import Chip, eval_permutation_constraints
from zkvalida.field import ONE, ZERO, canonical


def check_constraints(
    machine: Any,
    chip: Chip,
    main: Sequence[Sequence[int]],
    perm: Sequence[Sequence[int]],
    perm_challenges: Sequence[int],
) -> int:
    """Check every constraint of ``chip`` on every row, wrapping around at the end.

    Returns the chip's cumulative sum, or zero for an empty trace. Raises
    ConstraintViolation on the first constraint that does not hold.
    """
    if len(main) != len(perm):
        raise ValueError(
            f"main trace has {len(main)} rows but permutation trace has {len(perm)}"
        )
    height = len(main)
    if height == 0:
        return ZERO

    preprocessed = chip.preprocessed_trace()
    cumulative_sum = perm[-1][-1]

    for i in range(height):
        i_next = (i + 1) % height
        last = i == height - 1
        builder = DebugConstraintBuilder(
            machine=machine,
            main=(main[i], main[i_next]),
            preprocessed=(
                (preprocessed[i], preprocessed[i_next])
                if preprocessed is not None
                else ((), ())
            ),
            permutation=(perm[i], perm[i_next]),
            perm_challenges=perm_challenges,
            is_first_row=ONE if i == 0 else ZERO,
            is_last_row=ONE if last else ZERO,
            is_transition=ZERO if last else ONE,
        )
        try:
            chip.eval(builder)
            eval_permutation_constraints(chip, builder, cumulative_sum)
        except ConstraintViolation as exc:
            raise ConstraintViolation(f"row {i}: {exc}") from exc
    return cumulative_sum


def check_cumulative_sums(perms: Sequence[Sequence[Sequence[int]]]) -> list[int]:
    """Check that the cumulative sums of all permutation traces add up to zero.

    Returns the cumulative sum of each trace.
    """
    sums = []
    for perm in perms:
        if not perm:
            raise ValueError("permutation trace has no rows")
        sums.append(perm[-1][-1])
    total = canonical(sum(sums))
    if total != ZERO:
        raise ConstraintViolation(f"cumulative sums add up to {total}, not zero")
    return sums