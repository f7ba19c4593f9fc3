"""Elements -- opaque units of work carrying a delay weight.

The engine only ever reads ``element.weight``. Any object exposing a
non-negative numeric ``weight`` works; ``WeightedValue`` is the stock
implementation for plain numbers.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Element(Protocol):
    """Anything with a non-negative numeric ``weight``."""

    @property
    def weight(self) -> float: ...


@dataclass(frozen=True, slots=True)
class WeightedValue:
    """A plain number used as its own weight.

    Example:
        >>> WeightedValue(30).weight
        30
        >>> str(WeightedValue(30))
        '30'
    """

    weight: float

    def describe(self) -> str:
        return f"WeightedValue({self.weight})"

    def __str__(self) -> str:
        return f"{self.weight}"


def as_elements(values: Iterable[float]) -> list[WeightedValue]:
    """Wrap plain numbers as elements, keeping their order."""
    return [WeightedValue(value) for value in values]


__all__ = ["Element", "WeightedValue", "as_elements"]
