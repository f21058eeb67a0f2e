"""
Merge policies: how two adjacent values interact when one is pushed into the other.

A policy is anything with the five methods of MergePolicy. The stock policies
cover the generic case (tiles only slide into empty cells) and the additive
integer case used by 2048-style games.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class MergePolicy(Protocol[T]):
    """Decides pushes and merges between a moving value and its target."""

    def should_push(self, from_value: T, into_value: T) -> bool:
        """True if `into_value` blocks and should be pushed along."""
        ...

    def should_merge(self, from_value: T, into_value: T) -> bool:
        """True if the two values may combine (including into an empty cell)."""
        ...

    def merge(self, from_value: T, into_value: T) -> T:
        """The value left in the target cell after a merge."""
        ...

    def is_empty(self, value: T) -> bool:
        ...

    def empty(self) -> T:
        ...


class GenericMergePolicy(Generic[T]):
    """
    Default policy for any value type.

    Occupied cells are pushed, nothing combines, and the only "merge" is a
    tile sliding into an empty cell.
    """

    def __init__(self, empty: Any = None) -> None:
        self._empty = empty

    def should_push(self, from_value: T, into_value: T) -> bool:
        return not self.is_empty(into_value)

    def should_merge(self, from_value: T, into_value: T) -> bool:
        return self.is_empty(into_value)

    def merge(self, from_value: T, into_value: T) -> T:
        return from_value

    def is_empty(self, value: T) -> bool:
        return value == self._empty

    def empty(self) -> T:
        return self._empty

    def __repr__(self) -> str:
        return f"{type(self).__name__}(empty={self._empty!r})"


class IntMergePolicy(GenericMergePolicy[int]):
    """Additive integer policy: equal values combine into their sum. Empty is 0."""

    def __init__(self) -> None:
        super().__init__(0)

    def should_merge(self, from_value: int, into_value: int) -> bool:
        return super().should_merge(from_value, into_value) or from_value == into_value

    def merge(self, from_value: int, into_value: int) -> int:
        return from_value + into_value


def default_policy(value_type: type) -> MergePolicy[Any]:
    """Pick the stock policy for a value type: additive for int, generic otherwise."""
    if issubclass(value_type, int) and not issubclass(value_type, bool):
        return IntMergePolicy()
    return GenericMergePolicy()
