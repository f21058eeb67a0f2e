"""
Shared type definitions for the pushgrid system.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Direction(Enum):
    """Cardinal move vector. At most one component is nonzero, clamped to {-1, 1}."""

    LEFT = (-1, 0)  # Decreasing x
    RIGHT = (1, 0)  # Increasing x
    UP = (0, -1)  # Decreasing y (row 0 is the top row)
    DOWN = (0, 1)  # Increasing y
    ZERO = (0, 0)  # No movement

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def opposite(self) -> Direction:
        return Direction((-self.dx, -self.dy))

    @classmethod
    def from_vector(cls, x: int, y: int) -> Direction:
        """
        Clamp an arbitrary integer vector to a Direction.

        The x component wins when both are nonzero, so (3, -7) becomes RIGHT.
        """
        cx = max(-1, min(x, 1))
        cy = max(-1, min(y, 1)) if cx == 0 else 0
        return cls((cx, cy))


CARDINALS = (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)


@dataclass(frozen=True)
class Position:
    """A cell address on a board. May lie off-grid after arithmetic."""

    x: int
    y: int

    def __add__(self, direction: Direction) -> Position:
        return Position(self.x + direction.dx, self.y + direction.dy)

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


# =============================================================================
# Change Records
# =============================================================================


class RecordType(Enum):
    """Kind of state change described by a Record."""

    INSERT = "insert"
    DELETE = "delete"
    MOVE = "move"
    MERGE = "merge"
    SPLIT = "split"
    UPDATE = "update"

    @property
    def opposite(self) -> RecordType:
        return opposite_record_type(self)


_OPPOSITES = {
    RecordType.INSERT: RecordType.DELETE,
    RecordType.DELETE: RecordType.INSERT,
    RecordType.MERGE: RecordType.SPLIT,
    RecordType.SPLIT: RecordType.MERGE,
}


def opposite_record_type(record_type: RecordType) -> RecordType:
    """Return the record type that reverses `record_type` (MOVE and UPDATE reverse themselves)."""
    return _OPPOSITES.get(record_type, record_type)


@dataclass(frozen=True)
class BoardState(Generic[T]):
    """A value at a position, as seen before or after a change."""

    position: Position
    value: T

    def __str__(self) -> str:
        return f"{self.position}:{self.value!r}"


@dataclass(frozen=True)
class Record(Generic[T]):
    """An immutable description of one change of state on the board."""

    type: RecordType
    old_state: BoardState[T]
    new_state: BoardState[T]

    def is_static(self) -> bool:
        """True if the change happened in place (old and new positions are the same cell)."""
        return self.old_state.position == self.new_state.position

    def __str__(self) -> str:
        return f"<Record:{self.type.name} {self.old_state} => {self.new_state}>"
