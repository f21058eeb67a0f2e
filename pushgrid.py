"""
Grid store, push resolution and undo history for sliding/merging puzzles.

A board is a fixed-size grid of values. Callers mark cells with move vectors,
then resolve one direction at a time: marked tiles push their neighbours,
slide into empty cells, or merge with the tile in front of them according to
a MergePolicy. Every change is published as a Record, which is what renderers
and the undo history consume.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from board_searcher import BoardSearcher
from grid_types import BoardState, Direction, Position, Record, RecordType
from merge_policy import GenericMergePolicy, MergePolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Subscriber = Callable[[Record[Any]], None]


@dataclass(frozen=True)
class RuleSet:
    """Rules governing push resolution."""

    clear_all_vectors: bool = True  # False = apply_move(d) clears only vectors equal to d
    apply_order: tuple[Direction, ...] = (
        Direction.LEFT,
        Direction.RIGHT,
        Direction.DOWN,
        Direction.UP,
    )


# =============================================================================
# Publisher
# =============================================================================


class Publisher(Generic[R]):
    """
    Synchronous multicast of updates.

    Subscribers are called in registration order with the same update
    instance. Exceptions raised by a subscriber propagate to the publisher's
    caller.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[R], None]] = []

    def subscribe(self, subscriber: Callable[[R], None]) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Callable[[R], None]) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, update: R) -> None:
        for subscriber in list(self._subscribers):
            subscriber(update)

    def __len__(self) -> int:
        return len(self._subscribers)


# =============================================================================
# Grid Store
# =============================================================================


class GridStore(Generic[T]):
    """
    A width x height grid of values that publishes a Record for every change.

    Positions outside the grid are ignored by every operation: reads return the
    policy's empty value and writes do nothing.
    """

    def __init__(self, width: int, height: int, policy: MergePolicy[T] | None = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Board dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.policy: MergePolicy[T] = policy if policy is not None else GenericMergePolicy()
        self._cells: list[list[T]] = [
            [self.policy.empty() for _ in range(width)] for _ in range(height)
        ]
        self._publisher: Publisher[Record[T]] = Publisher()

    # -- queries --------------------------------------------------------------

    def is_valid(self, position: Position) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def get(self, position: Position) -> T:
        if not self.is_valid(position):
            return self.policy.empty()
        return self._cells[position.y][position.x]

    def is_position_value(self, position: Position, value: T) -> bool:
        return self.is_valid(position) and self.get(position) == value

    def is_empty(self, position: Position) -> bool:
        return self.policy.is_empty(self.get(position))

    def positions(self) -> Iterator[Position]:
        """All positions in row-major order (top row first)."""
        for y in range(self.height):
            for x in range(self.width):
                yield Position(x, y)

    def rows(self) -> tuple[tuple[T, ...], ...]:
        """Snapshot of the grid values, row y at index y."""
        return tuple(tuple(row) for row in self._cells)

    # -- publishing -----------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> None:
        self._publisher.subscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._publisher.unsubscribe(subscriber)

    def publish(self, record: Record[T]) -> None:
        logger.debug("publish %s", record)
        self._publisher.publish(record)

    def _set(self, position: Position, value: T) -> None:
        if self.is_valid(position):
            self._cells[position.y][position.x] = value

    def _state(self, position: Position, value: T) -> BoardState[T]:
        return BoardState(position, value)

    # -- mutations ------------------------------------------------------------

    def update(self, position: Position, value: T) -> None:
        """
        Insert, update or delete depending on what is at `position` now.

        - both old and new empty: nothing happens
        - old empty: Insert
        - new empty: Delete
        - otherwise: Update (skipped when the value is unchanged)
        """
        if not self.is_valid(position):
            return

        old_value = self.get(position)
        old_is_empty = self.policy.is_empty(old_value)
        new_is_empty = self.policy.is_empty(value)

        if old_is_empty and new_is_empty:
            return
        if old_is_empty:
            self.insert(position, value)
        elif new_is_empty:
            self.delete(position)
        elif old_value != value:
            self._set(position, value)
            self.publish(
                Record(
                    RecordType.UPDATE,
                    self._state(position, old_value),
                    self._state(position, value),
                )
            )

    def update_many(self, positions: Iterable[Position], value: T) -> None:
        for position in positions:
            self.update(position, value)

    def delete(self, position: Position) -> None:
        if not self.is_valid(position) or self.is_empty(position):
            return

        old_value = self.get(position)
        self._set(position, self.policy.empty())
        self.publish(
            Record(
                RecordType.DELETE,
                self._state(position, old_value),
                self._state(position, self.policy.empty()),
            )
        )

    def insert(self, position: Position, value: T) -> None:
        """Place `value` in an empty cell. Occupied cells are left alone."""
        if not self.is_valid(position) or self.policy.is_empty(value):
            return
        if not self.is_empty(position):
            return

        old_value = self.get(position)
        self._set(position, value)
        self.publish(
            Record(
                RecordType.INSERT,
                self._state(position, old_value),
                self._state(position, value),
            )
        )

    def move(self, from_position: Position, to_position: Position) -> None:
        """Slide the tile at `from_position` into the empty `to_position`."""
        if not (self.is_valid(from_position) and self.is_valid(to_position)):
            return
        if from_position == to_position:
            return
        if self.is_empty(from_position) or not self.is_empty(to_position):
            return

        value = self.get(from_position)
        self._set(to_position, value)
        self._set(from_position, self.policy.empty())
        self.publish(
            Record(
                RecordType.MOVE,
                self._state(from_position, value),
                self._state(to_position, value),
            )
        )

    def merge(self, from_position: Position, to_position: Position, value: T) -> None:
        """
        Combine the tile at `from_position` into `to_position`, leaving `value` there.

        Publishes two Merge records carrying the final value: first the moving
        one (from -> to), then the static one (to -> to).
        """
        if not (self.is_valid(from_position) and self.is_valid(to_position)):
            return
        if from_position == to_position or self.is_empty(from_position):
            return

        value_from = self.get(from_position)
        value_into = self.get(to_position)
        self._set(to_position, value)
        self._set(from_position, self.policy.empty())

        self.publish(
            Record(
                RecordType.MERGE,
                self._state(from_position, value_from),
                self._state(to_position, value),
            )
        )
        self.publish(
            Record(
                RecordType.MERGE,
                self._state(to_position, value_into),
                self._state(to_position, value),
            )
        )

    def split(
        self,
        from_position: Position,
        to_position: Position,
        from_value: T,
        to_value: T,
    ) -> None:
        """
        Reintroduce a tile at the empty `from_position`, leaving `to_value` behind.

        The inverse of merge. Publishes the static Split record first, then the
        moving one.
        """
        if not (self.is_valid(from_position) and self.is_valid(to_position)):
            return
        if from_position == to_position:
            return
        if not self.is_empty(from_position) or self.is_empty(to_position):
            return

        merged = self.get(to_position)
        self._set(to_position, to_value)
        self._set(from_position, from_value)

        self.publish(
            Record(
                RecordType.SPLIT,
                self._state(to_position, merged),
                self._state(to_position, to_value),
            )
        )
        self.publish(
            Record(
                RecordType.SPLIT,
                self._state(to_position, merged),
                self._state(from_position, from_value),
            )
        )

    def clear(self) -> None:
        """Empty every cell. Publishes nothing: this is a reset, not a move."""
        for y in range(self.height):
            for x in range(self.width):
                self._cells[y][x] = self.policy.empty()

    def undo_record(self, record: Record[T]) -> None:
        """
        Revert a previously published record and publish the reversal.

        A Move is only undone while its tile is still where the record left it
        and its origin is still empty; otherwise the record is stale and this
        is a no-op. Moving Move and Split records vacate their destination.
        """
        old, new = record.old_state, record.new_state
        if not (self.is_valid(old.position) and self.is_valid(new.position)):
            return

        if record.type is RecordType.MOVE:
            if not (
                self.is_position_value(new.position, new.value)
                and self.is_empty(old.position)
            ):
                logger.debug("undo_record: skipping stale %s", record)
                return

        if record.type in (RecordType.MOVE, RecordType.SPLIT) and not record.is_static():
            self._set(new.position, self.policy.empty())

        self._set(old.position, old.value)
        self.publish(Record(record.type.opposite, new, old))

    def __repr__(self) -> str:
        return f"GridStore({self.width}x{self.height}, policy={self.policy!r})"


# =============================================================================
# Push Resolution
# =============================================================================


class BoardPusher(Generic[T]):
    """
    Holds a move vector per cell and resolves them against a GridStore.

    Resolution of one direction runs two phases along each line of travel:

    1. Propagation, scanning toward the trailing edge: a marked, non-empty
       tile copies its vector onto the neighbour in front when the policy says
       that neighbour should be pushed. Chains of pushed tiles form in one scan.
    2. Merge, scanning from the leading edge: each marked, non-empty tile
       slides into an empty neighbour or merges with it if the policy allows.

    Each cell is visited once per phase, so no tile merges twice in one pass.
    """

    def __init__(
        self,
        store: GridStore[T],
        policy: MergePolicy[T] | None = None,
        rules: RuleSet | None = None,
    ) -> None:
        self.store = store
        self.policy: MergePolicy[T] = policy if policy is not None else store.policy
        self.rules = rules if rules is not None else RuleSet()
        self._vectors: list[list[Direction]] = [
            [Direction.ZERO for _ in range(store.width)] for _ in range(store.height)
        ]

    @property
    def width(self) -> int:
        return self.store.width

    @property
    def height(self) -> int:
        return self.store.height

    def vector_at(self, position: Position) -> Direction:
        if not self.store.is_valid(position):
            return Direction.ZERO
        return self._vectors[position.y][position.x]

    def has_pending(self) -> bool:
        return any(v is not Direction.ZERO for row in self._vectors for v in row)

    def _set_vector(self, position: Position, direction: Direction) -> None:
        if self.store.is_valid(position):
            self._vectors[position.y][position.x] = direction

    # -- marking --------------------------------------------------------------

    def push_all(self, direction: Direction) -> None:
        if direction is Direction.ZERO:
            return
        for position in self.store.positions():
            self._set_vector(position, direction)

    def push_matching(self, direction: Direction, match_value: T) -> None:
        """Mark every cell whose value equals `match_value`."""
        if direction is Direction.ZERO:
            return
        for position in self.store.positions():
            if self.store.is_position_value(position, match_value):
                self._set_vector(position, direction)

    def push_tile(self, position: Position, direction: Direction) -> None:
        if direction is Direction.ZERO:
            return
        self._set_vector(position, direction)

    def push_tiles(self, positions: Iterable[Position], direction: Direction) -> None:
        for position in positions:
            self.push_tile(position, direction)

    # -- resolution -----------------------------------------------------------

    def apply_move(self, direction: Direction) -> None:
        """Resolve the cells marked with `direction`, then clear the vectors."""
        if direction is not Direction.ZERO:
            self._resolve(direction)

        if self.rules.clear_all_vectors:
            self.clear()
        else:
            self._clear_direction(direction)

    def apply_all_moves(self) -> None:
        """Resolve every direction in rules.apply_order, then clear all vectors."""
        for direction in self.rules.apply_order:
            if direction is not Direction.ZERO:
                self._resolve(direction)
        self.clear()

    def clear(self) -> None:
        for row in self._vectors:
            for x in range(len(row)):
                row[x] = Direction.ZERO

    def _clear_direction(self, direction: Direction) -> None:
        for row in self._vectors:
            for x, vector in enumerate(row):
                if vector is direction:
                    row[x] = Direction.ZERO

    def _lines(self, direction: Direction) -> Iterator[tuple[list[Position], list[Position]]]:
        """
        Yield (propagation_order, merge_order) for each line along `direction`.

        Only cells with a neighbour in `direction` appear, so the cell against
        the leading edge is never a source.
        """
        horizontal = direction.dx != 0
        step = direction.dx if horizontal else direction.dy
        length = self.width if horizontal else self.height
        count = self.height if horizontal else self.width

        movable = list(range(1, length)) if step < 0 else list(range(0, length - 1))
        propagation = movable if step > 0 else movable[::-1]
        merge = propagation[::-1]

        for line in range(count):
            if horizontal:
                yield [Position(i, line) for i in propagation], [Position(i, line) for i in merge]
            else:
                yield [Position(line, i) for i in propagation], [Position(line, i) for i in merge]

    def _resolve(self, direction: Direction) -> None:
        changed = 0
        for propagation, merge in self._lines(direction):
            for position in propagation:
                if self.vector_at(position) is direction:
                    self._try_push(position, position + direction, direction)

            for position in merge:
                if self.vector_at(position) is direction:
                    if self._try_merge(position, position + direction):
                        changed += 1

        logger.debug("resolved %s: %d tiles moved or merged", direction.name, changed)

    def _try_push(self, push_from: Position, push_into: Position, direction: Direction) -> None:
        """Propagate the move vector onto the neighbour if the policy says so."""
        if not (self.store.is_valid(push_from) and self.store.is_valid(push_into)):
            return

        value_from = self.store.get(push_from)
        if self.policy.is_empty(value_from):
            return
        if self.policy.should_push(value_from, self.store.get(push_into)):
            self._set_vector(push_into, direction)

    def _try_merge(self, merge_from: Position, merge_into: Position) -> bool:
        """Slide or merge one tile. Returns True if the store changed."""
        if not (self.store.is_valid(merge_from) and self.store.is_valid(merge_into)):
            return False

        value_from = self.store.get(merge_from)
        value_into = self.store.get(merge_into)
        if self.policy.is_empty(value_from):
            return False

        if self.policy.is_empty(value_into):
            self.store.move(merge_from, merge_into)
            return True
        if self.policy.should_merge(value_from, value_into):
            merged = self.policy.merge(value_from, value_into)
            self.store.merge(merge_from, merge_into, merged)
            return True
        return False


# =============================================================================
# History
# =============================================================================


class History(Generic[R]):
    """
    Records grouped into turns, for undoing a whole turn at once.

    Records are added to the in-progress turn; new_turn() commits it if it has
    anything in it. Only committed turns are counted.
    """

    def __init__(self) -> None:
        self._turns: list[list[R]] = []
        self._current: list[R] = []

    @property
    def count(self) -> int:
        return len(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def pending(self) -> int:
        """Number of records in the in-progress turn."""
        return len(self._current)

    def add_record(self, record: R) -> None:
        self._current.append(record)

    def new_turn(self) -> None:
        if self._current:
            self._turns.append(self._current)
            logger.debug("committed turn %d with %d records", len(self._turns), len(self._current))
        self._current = []

    def iterate_last_turn(self) -> Iterator[R]:
        """
        Yield the last committed turn's records, most recent first.

        That is the order they must be undone in. Yields nothing if no turn
        has been committed. Each call starts a fresh iteration.
        """
        if not self._turns:
            return
        yield from reversed(self._turns[-1])

    def clear_last_turn(self) -> None:
        if self._turns:
            self._turns.pop()

    def clear_all(self) -> None:
        self._turns.clear()
        self._current = []


# =============================================================================
# Board
# =============================================================================

_UNSET: Any = object()


class PuzzleBoard(Generic[T]):
    """
    A grid store with its pusher, searcher and turn history wired together.

    Every record the store publishes is added to the history while
    `recording` is on. A turn is: mark cells, apply one direction, react to
    the published records, then end_turn().
    """

    def __init__(
        self,
        width: int,
        height: int,
        policy: MergePolicy[T] | None = None,
        rules: RuleSet | None = None,
    ) -> None:
        self.store: GridStore[T] = GridStore(width, height, policy)
        self.pusher: BoardPusher[T] = BoardPusher(self.store, rules=rules)
        self.searcher: BoardSearcher[T] = BoardSearcher(self.store)
        self.history: History[Record[T]] = History()
        self.recording = True
        self._published = 0
        self.store.subscribe(self._on_record)

    def _on_record(self, record: Record[T]) -> None:
        self._published += 1
        if self.recording:
            self.history.add_record(record)

    @property
    def width(self) -> int:
        return self.store.width

    @property
    def height(self) -> int:
        return self.store.height

    @property
    def policy(self) -> MergePolicy[T]:
        return self.store.policy

    # -- store ----------------------------------------------------------------

    def get(self, position: Position) -> T:
        return self.store.get(position)

    def update(self, position: Position, value: T) -> None:
        self.store.update(position, value)

    def update_many(self, positions: Iterable[Position], value: T) -> None:
        self.store.update_many(positions, value)

    def subscribe(self, subscriber: Subscriber) -> None:
        self.store.subscribe(subscriber)

    def rows(self) -> tuple[tuple[T, ...], ...]:
        return self.store.rows()

    # -- pushing --------------------------------------------------------------

    def push_all(self, direction: Direction) -> None:
        self.pusher.push_all(direction)

    def push_matching(self, direction: Direction, match_value: T) -> None:
        self.pusher.push_matching(direction, match_value)

    def push_tile(self, position: Position, direction: Direction) -> None:
        self.pusher.push_tile(position, direction)

    def push_tiles(self, positions: Iterable[Position], direction: Direction) -> None:
        self.pusher.push_tiles(positions, direction)

    def apply_move(self, direction: Direction) -> None:
        self.pusher.apply_move(direction)

    def apply_all_moves(self) -> None:
        self.pusher.apply_all_moves()

    # -- turns ----------------------------------------------------------------

    def step(
        self,
        direction: Direction,
        positions: Iterable[Position] | None = None,
        match: Any = _UNSET,
    ) -> int:
        """
        Play one turn: mark cells, resolve `direction`, commit the turn.

        Marks `positions` if given, else every cell equal to `match` if given,
        else every cell. Returns the number of records the move produced.
        """
        if direction is Direction.ZERO:
            return 0

        before = self._published
        if positions is not None:
            self.pusher.push_tiles(positions, direction)
        elif match is not _UNSET:
            self.pusher.push_matching(direction, match)
        else:
            self.pusher.push_all(direction)
        self.pusher.apply_move(direction)
        produced = self._published - before

        self.end_turn()
        return produced

    def end_turn(self) -> None:
        self.history.new_turn()

    def undo_last_turn(self) -> bool:
        """
        Revert the most recent turn. Returns False if there was nothing to undo.

        Uncommitted records are committed first, so they are what gets undone.
        """
        self.end_turn()
        if self.history.count == 0:
            return False

        logger.info("undoing turn %d", self.history.count)
        self.recording = False
        try:
            for record in self.history.iterate_last_turn():
                self.store.undo_record(record)
        finally:
            self.recording = True
        self.history.clear_last_turn()
        return True

    def reset(self, initialise: Callable[[PuzzleBoard[T]], None] | None = None) -> None:
        """Clear the board, vectors and history, then run `initialise` unrecorded."""
        logger.info("resetting %dx%d board", self.width, self.height)
        self.recording = False
        try:
            self.store.clear()
            self.pusher.clear()
            self.history.clear_all()
            if initialise is not None:
                initialise(self)
        finally:
            self.recording = True
