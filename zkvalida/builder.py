"""Constraint builders that evaluate a chip's constraints on two trace rows."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from zkvalida.field import ONE, ZERO, P, canonical


class ConstraintViolation(AssertionError):
    """Raised when a constraint does not evaluate to zero."""


class _Window(NamedTuple):
    """The current row of a trace and the row after it."""

    local: tuple
    next: tuple


def _window(rows: Any) -> _Window:
    local, following = rows
    return _Window(tuple(local), tuple(following))


class _Constraints(ABC):
    """Assertions and filters shared by every builder."""

    @abstractmethod
    def assert_zero(self, value: int) -> None:
        """Record the constraint ``value == 0``."""

    def assert_one(self, value: int) -> None:
        """Record the constraint ``value == 1``."""
        self.assert_zero(value - ONE)

    def assert_eq(self, left: int, right: int) -> None:
        """Record the constraint ``left == right``."""
        self.assert_zero(left - right)

    def assert_bool(self, value: int) -> None:
        """Record the constraint that ``value`` is zero or one."""
        self.assert_zero(value * (value - ONE))

    def when(self, condition: int) -> _FilteredBuilder:
        """Return a builder whose constraints only hold where ``condition`` is non-zero."""
        return _FilteredBuilder(self, canonical(condition))

    def when_ne(self, left: int, right: int) -> _FilteredBuilder:
        """Return a builder whose constraints only hold where ``left != right``."""
        return self.when(left - right)

    def when_first_row(self) -> _FilteredBuilder:
        """Return a builder whose constraints only hold on the first row."""
        return self.when(self.is_first_row)

    def when_last_row(self) -> _FilteredBuilder:
        """Return a builder whose constraints only hold on the last row."""
        return self.when(self.is_last_row)

    def when_transition(self) -> _FilteredBuilder:
        """Return a builder whose constraints hold on every row but the last."""
        return self.when(self.is_transition_window(2))

    def is_transition_window(self, size: int) -> int:
        """The transition selector for a window of ``size`` rows (only 2 is supported)."""
        if size != 2:
            raise ValueError("only supports a window size of 2")
        return self.is_transition


class _FilteredBuilder(_Constraints):
    """A builder that multiplies every constraint by a selector."""

    def __init__(self, inner: _Constraints, condition: int) -> None:
        self.inner = inner
        self.condition = condition

    @property
    def is_first_row(self) -> int:
        return self.inner.is_first_row

    @property
    def is_last_row(self) -> int:
        return self.inner.is_last_row

    @property
    def is_transition(self) -> int:
        return self.inner.is_transition

    def assert_zero(self, value: int) -> None:
        self.inner.assert_zero(self.condition * value)


@dataclass(eq=False)
class _AirBuilder(_Constraints):
    """Two-row windows over the main, preprocessed and permutation traces."""

    machine: Any = None
    main: Any = ((), ())
    preprocessed: Any = ((), ())
    permutation: Any = ((), ())
    perm_challenges: Sequence[int] = ()
    is_first_row: int = ZERO
    is_last_row: int = ZERO
    is_transition: int = ONE

    def __post_init__(self) -> None:
        self.main = _window(self.main)
        self.preprocessed = _window(self.preprocessed)
        self.permutation = _window(self.permutation)
        self.perm_challenges = tuple(self.perm_challenges)

    @property
    def permutation_randomness(self) -> tuple[int, ...]:
        """The random challenges the permutation trace was built with."""
        return self.perm_challenges


@dataclass(eq=False)
class DebugConstraintBuilder(_AirBuilder):
    """A builder that checks each constraint at once and raises on the first failure."""

    constraint_count: int = field(default=0, init=False)

    def assert_zero(self, value: int) -> None:
        """Raise ConstraintViolation unless ``value`` is zero in the field."""
        reduced = canonical(value)
        if reduced != ZERO:
            raise ConstraintViolation(
                f"constraints must evaluate to zero, got {reduced}"
            )
        self.constraint_count += 1

    def assert_one(self, value: int) -> None:
        """Check that ``value == 1``."""
        super().assert_one(value)

    def assert_eq(self, left: int, right: int) -> None:
        """Check that ``left == right``."""
        super().assert_eq(left, right)

    def assert_bool(self, value: int) -> None:
        """Check that ``value`` is zero or one."""
        super().assert_bool(value)

    def when(self, condition: int) -> _FilteredBuilder:
        """Return a builder whose checks only apply where ``condition`` is non-zero."""
        return super().when(condition)

    def when_ne(self, left: int, right: int) -> _FilteredBuilder:
        """Return a builder whose checks only apply where ``left != right``."""
        return super().when_ne(left, right)

    def when_first_row(self) -> _FilteredBuilder:
        """Return a builder whose checks only apply on the first row."""
        return super().when_first_row()

    def when_last_row(self) -> _FilteredBuilder:
        """Return a builder whose checks only apply on the last row."""
        return super().when_last_row()

    def when_transition(self) -> _FilteredBuilder:
        """Return a builder whose checks apply on every row but the last."""
        return super().when_transition()

    def is_transition_window(self, size: int) -> int:
        """The transition selector for a window of ``size`` rows (only 2 is supported)."""
        return super().is_transition_window(size)


@dataclass(eq=False)
class ConstraintFolder(_AirBuilder):
    """A builder that collects constraint values instead of checking them."""

    constraints: list[int] = field(default_factory=list, init=False)

    def assert_zero(self, value: int) -> None:
        self.constraints.append(canonical(value))

    def fold(self, alpha: int) -> int:
        """Combine the collected constraints into one value using powers of ``alpha``."""
        accumulator = ZERO
        for value in self.constraints:
            accumulator = (accumulator * alpha + value) % P
        return accumulator