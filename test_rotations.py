"""
Test rotation framework for systematic directional testing.

This module provides utilities to write tests once and automatically run them
in all 4 rotations (0°, 90°, 180°, 270°), ensuring comprehensive directional coverage.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from grid_parser import EMPTY, format_board, parse_board, parse_cells
from grid_types import Direction, Position
from merge_policy import MergePolicy
from pushgrid import BoardPusher, PuzzleBoard, RuleSet

Rows = tuple[tuple[Any, ...], ...]


# =============================================================================
# Rotation Utilities
# =============================================================================


def rotate_rows_90(rows: Rows) -> Rows:
    """
    Rotate a grid of cell values 90° clockwise.

    A grid with H rows and W columns becomes W rows and H columns.
    Position (x, y) → (H - 1 - y, x)
    """
    height = len(rows)
    width = len(rows[0])
    return tuple(
        tuple(rows[height - 1 - c][r] for c in range(height))
        for r in range(width)
    )


def rows_to_definition(rows: Rows) -> str:
    """Write parsed rows back out in the standard grid format."""
    return "|".join(
        " ".join("_" if value is EMPTY else str(value) for value in row)
        for row in rows
    )


def rotate_definition_90(definition: str) -> str:
    """Rotate a grid definition string 90° clockwise."""
    return rows_to_definition(rotate_rows_90(parse_cells(definition)))


def normalise_definition(definition: str) -> str:
    return rows_to_definition(parse_cells(definition))


def rotate_direction_90(direction: Direction) -> Direction:
    """Rotate a direction 90° clockwise (row 0 is the top row)."""
    rotation_map = {
        Direction.UP: Direction.RIGHT,
        Direction.RIGHT: Direction.DOWN,
        Direction.DOWN: Direction.LEFT,
        Direction.LEFT: Direction.UP,
        Direction.ZERO: Direction.ZERO,
    }
    return rotation_map[direction]


def rotate_position_90(position: Position, height: int) -> Position:
    """
    Rotate a position 90° clockwise within a grid of `height` rows.

    Position (x, y) → (height - 1 - y, x)
    """
    return Position(height - 1 - position.y, position.x)


# =============================================================================
# Test Case Data Structures
# =============================================================================


@dataclass
class PushVariation:
    """
    One push to try: which cells to mark, the direction, and the expected grid.

    With neither `marked` nor `match`, every cell is marked.
    """

    direction: Direction
    expected: str
    marked: list[Position] | None = None
    match: Any = None
    description: str = ""

    __test__ = False

    def rotate_90(self, height: int) -> "PushVariation":
        """Create a new PushVariation rotated 90° clockwise."""
        marked = None
        if self.marked is not None:
            marked = [rotate_position_90(p, height) for p in self.marked]

        return PushVariation(
            direction=rotate_direction_90(self.direction),
            expected=rotate_definition_90(self.expected),
            marked=marked,
            match=self.match,
            description=f"{self.description} [rotated 90°]" if self.description else "[rotated 90°]",
        )


@dataclass
class RotationalTestCase:
    """
    A test case that will be run in all 4 rotations.

    Example usage:
        test = RotationalTestCase(
            name="slide_simple",
            grid="_ A _",
            variations=[
                PushVariation(
                    direction=Direction.LEFT,
                    expected="A _ _",
                    description="slide A left into empty",
                )
            ],
        )
    """

    name: str
    grid: str
    variations: list[PushVariation]
    policy: MergePolicy[Any] | None = None
    definition: str = field(init=False)

    def __post_init__(self) -> None:
        self.definition = normalise_definition(self.grid)
        for variation in self.variations:
            variation.expected = normalise_definition(variation.expected)

    def get_all_rotations(self) -> list[tuple[int, str, PushVariation]]:
        """
        Generate all 4 rotations of this test case.

        Returns:
            List of (rotation_degrees, grid_definition, variation) tuples
        """
        results = []

        current_definition = self.definition
        current_variations = self.variations

        for rotation in [0, 90, 180, 270]:
            for variation in current_variations:
                results.append((rotation, current_definition, variation))

            if rotation < 270:
                # Positions rotate against the grid BEFORE rotation
                height = len(parse_cells(current_definition))
                current_definition = rotate_definition_90(current_definition)
                current_variations = [v.rotate_90(height) for v in current_variations]

        return results


# =============================================================================
# Operations
# =============================================================================

Operation = Callable[[str, MergePolicy[Any] | None, PushVariation, RuleSet], str]


def push_with_pusher(
    definition: str,
    policy: MergePolicy[Any] | None,
    variation: PushVariation,
    rules: RuleSet,
) -> str:
    """Mark and resolve with a bare BoardPusher; returns the resulting grid."""
    store = parse_board(definition, policy)
    pusher = BoardPusher(store, rules=rules)
    if variation.marked is not None:
        pusher.push_tiles(variation.marked, variation.direction)
    elif variation.match is not None:
        pusher.push_matching(variation.direction, variation.match)
    else:
        pusher.push_all(variation.direction)
    pusher.apply_move(variation.direction)
    return format_board(store)


def step_and_undo(
    definition: str,
    policy: MergePolicy[Any] | None,
    variation: PushVariation,
    rules: RuleSet,
) -> str:
    """
    Play the push as a PuzzleBoard turn, then check undo restores the start.

    Returns the grid as it was after the turn.
    """
    source = parse_board(definition, policy)
    board: PuzzleBoard[Any] = PuzzleBoard(source.width, source.height, source.policy, rules)

    def initialise(b: PuzzleBoard[Any]) -> None:
        for position in source.positions():
            b.update(position, source.get(position))

    board.reset(initialise)

    kwargs: dict[str, Any] = {}
    if variation.marked is not None:
        kwargs["positions"] = variation.marked
    elif variation.match is not None:
        kwargs["match"] = variation.match
    board.step(variation.direction, **kwargs)
    result = format_board(board.store)

    board.undo_last_turn()
    assert format_board(board.store) == definition, (
        f"undo did not restore {definition!r}, got {format_board(board.store)!r}"
    )
    return result


ALL_OPERATIONS: list[Operation] = [push_with_pusher, step_and_undo]


# =============================================================================
# Test Runner
# =============================================================================


def run_rotational_test(
    test_case: RotationalTestCase,
    operations: list[Operation] | None = None,
    rules: RuleSet | None = None,
) -> None:
    """
    Run a rotational test case through all 4 rotations.

    Args:
        test_case: The test case to run
        operations: The operations to test (defaults to ALL_OPERATIONS)
        rules: Optional RuleSet to pass to the operation
    """
    if rules is None:
        rules = RuleSet()
    if operations is None:
        operations = ALL_OPERATIONS

    rotations = test_case.get_all_rotations()

    for operation in operations:
        for rotation, definition, variation in rotations:
            result = operation(definition, test_case.policy, variation, rules)
            assert result == variation.expected, (
                f"{test_case.name} at {rotation}° via {operation.__name__} - "
                f"{variation.description}: expected {variation.expected!r}, got {result!r}"
            )


# =============================================================================
# Tests for the framework itself
# =============================================================================


class TestRotationUtilities:
    """Sanity checks for the rotation helpers."""

    def test_rotate_definition(self) -> None:
        # 1 2 3        4 1
        # 4 5 6   →    5 2
        #              6 3
        assert rotate_definition_90("1 2 3|4 5 6") == "4 1|5 2|6 3"

    def test_four_rotations_are_identity(self) -> None:
        definition = "A _ B|_ C _"
        rotated = definition
        for _ in range(4):
            rotated = rotate_definition_90(rotated)
        assert rotated == definition

    def test_position_follows_value(self) -> None:
        rows = parse_cells("1 2 3|4 5 6")
        rotated = rotate_rows_90(rows)
        for y, row in enumerate(rows):
            for x, value in enumerate(row):
                p = rotate_position_90(Position(x, y), len(rows))
                assert rotated[p.y][p.x] == value

    def test_direction_follows_position(self) -> None:
        """Rotating a neighbour gives the neighbour in the rotated direction."""
        height = 3
        origin = Position(1, 1)
        for direction in (Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT):
            moved = rotate_position_90(origin + direction, height)
            assert moved == rotate_position_90(origin, height) + rotate_direction_90(direction)
