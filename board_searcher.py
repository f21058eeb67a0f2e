"""
Position queries over a grid store: matches, rows, columns and connected regions.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from grid_types import CARDINALS, Position

if TYPE_CHECKING:
    from pushgrid import GridStore

T = TypeVar("T")

_UNSET: Any = object()


class BoardSearcher(Generic[T]):
    """Read-only position lookups. Off-grid rows, columns and starts give empty lists."""

    def __init__(self, store: GridStore[T]) -> None:
        self.store = store

    def positions_matching(self, *values: T) -> list[Position]:
        """Positions (row-major) whose value equals any of `values`."""
        return [
            position
            for position in self.store.positions()
            if any(self.store.is_position_value(position, value) for value in values)
        ]

    def positions_in_row(self, row: int) -> list[Position]:
        if not 0 <= row < self.store.height:
            return []
        return [Position(x, row) for x in range(self.store.width)]

    def positions_in_column(self, col: int) -> list[Position]:
        if not 0 <= col < self.store.width:
            return []
        return [Position(col, y) for y in range(self.store.height)]

    def positions_in_row_matching(self, row: int, match_value: T) -> list[Position]:
        return [
            position
            for position in self.positions_in_row(row)
            if self.store.is_position_value(position, match_value)
        ]

    def positions_in_column_matching(self, col: int, match_value: T) -> list[Position]:
        return [
            position
            for position in self.positions_in_column(col)
            if self.store.is_position_value(position, match_value)
        ]

    def identical_adjacent_positions(self, position: Position, value: Any = _UNSET) -> list[Position]:
        """
        Flood fill: every position orthogonally connected to `position` holding `value`.

        `value` defaults to whatever is at `position`. The start position is always
        first in the result when it is on the grid, even if it does not hold `value`.

        Args:
            position: Where the fill starts
            value: Value to match (defaults to the value at `position`)

        Returns:
            Connected positions in breadth-first order
        """
        if not self.store.is_valid(position):
            return []
        if value is _UNSET:
            value = self.store.get(position)

        found = [position]
        checked = {position}
        queue: deque[Position] = deque([position])

        while queue:
            current = queue.popleft()
            for direction in CARDINALS:
                neighbour = current + direction
                if neighbour in checked or not self.store.is_valid(neighbour):
                    continue
                checked.add(neighbour)
                if self.store.is_position_value(neighbour, value):
                    found.append(neighbour)
                    queue.append(neighbour)

        return found
