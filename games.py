"""
Example games built on pushgrid: Sokoban, Threes, additive 2048 and colour blending.

Each game is a merge policy plus a starting layout and a turn rule. None of this
is needed by the engine itself; it shows how rules plug into it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable

from grid_parser import EMPTY, parse_cells
from grid_types import Direction, Position
from merge_policy import GenericMergePolicy, IntMergePolicy, MergePolicy
from pushgrid import PuzzleBoard

logger = logging.getLogger(__name__)

PLAYER = 1
CRATE = 2
WALL = 3

Color = tuple[int, int, int]


class SokobanPolicy(GenericMergePolicy[int]):
    """Only the player pushes, and only crates. Nothing ever combines."""

    def __init__(self) -> None:
        super().__init__(0)

    def should_push(self, from_value: int, into_value: int) -> bool:
        return from_value == PLAYER and into_value == CRATE


class ThreesPolicy(IntMergePolicy):
    """1 and 2 make 3; from 3 upward, equal tiles combine."""

    def should_merge(self, from_value: int, into_value: int) -> bool:
        return (
            self.is_empty(into_value)
            or from_value + into_value == 3
            or (from_value == into_value and from_value > 2)
        )


class ColorBlendPolicy(GenericMergePolicy[Any]):
    """Any two colours combine into their midpoint. Empty is None."""

    def should_merge(self, from_value: Any, into_value: Any) -> bool:
        return True

    def merge(self, from_value: Color, into_value: Color) -> Color:
        r1, g1, b1 = from_value
        r2, g2, b2 = into_value
        return ((r1 + r2) // 2, (g1 + g2) // 2, (b1 + b2) // 2)


COLORS: dict[str, Color] = {
    "R": (255, 0, 0),
    "G": (0, 255, 0),
    "B": (0, 0, 255),
}


def color_label(value: Color) -> str:
    for name, color in COLORS.items():
        if color == value:
            return name
    return "#{:02x}{:02x}{:02x}".format(*value)


# =============================================================================
# Game Definitions
# =============================================================================


@dataclass(frozen=True)
class GameDef:
    """A game: how to build its board and how a turn is played."""

    name: str
    layout: str
    policy: Callable[[], MergePolicy[Any]]
    player: Any = None  # If set, only cells holding this value are pushed
    spawn_values: tuple[Any, ...] = ()  # Values dropped on the trailing edge after a move
    fill_edge: bool = False  # Spawn on every free edge cell instead of the first one
    value_map: dict[str, Any] = field(default_factory=dict)  # Layout token -> value
    label_fn: Callable[[Any], str] = str


LAYOUTS: dict[str, GameDef] = dict(
    sokoban=GameDef(
        name="Sokoban",
        layout="3 3 3 3 3 3|3 1 _ _ _ 3|3 _ 2 _ _ 3|3 _ 2 _ _ 3|3 _ _ _ _ 3|3 3 3 3 3 3",
        policy=SokobanPolicy,
        player=PLAYER,
        label_fn=lambda v: {PLAYER: "@", CRATE: "$", WALL: "#"}.get(v, str(v)),
    ),
    threes=GameDef(
        name="Threes",
        layout="1 2 _ _|_ 3 _ _|_ _ 3 _|2 _ _ 1",
        policy=ThreesPolicy,
        spawn_values=(1, 2, 3),
    ),
    add=GameDef(
        name="2048",
        layout="2 2 _ 4|_ 4 4 _|2 _ _ 2|_ _ 8 8",
        policy=IntMergePolicy,
        spawn_values=(2, 2, 2, 4),
    ),
    color=GameDef(
        name="Colours",
        layout="R _ G _|_ B _ _|_ _ R _|G _ _ B",
        policy=ColorBlendPolicy,
        spawn_values=tuple(COLORS.values()),
        fill_edge=True,
        value_map=dict(COLORS),
        label_fn=color_label,
    ),
)


def load_layout(board: PuzzleBoard[Any], game: GameDef) -> None:
    """Write the game's layout onto an (empty) board through the store API."""
    for y, row in enumerate(parse_cells(game.layout)):
        for x, token in enumerate(row):
            if token is EMPTY:
                continue
            board.update(Position(x, y), game.value_map.get(token, token))


def new_board(game: GameDef) -> PuzzleBoard[Any]:
    rows = parse_cells(game.layout)
    board: PuzzleBoard[Any] = PuzzleBoard(len(rows[0]), len(rows), game.policy())
    board.reset(lambda b: load_layout(b, game))
    return board


def trailing_edge(board: PuzzleBoard[Any], direction: Direction) -> list[Position]:
    """Cells on the edge tiles move away from (the right column for a LEFT push)."""
    searcher = board.searcher
    if direction is Direction.LEFT:
        return searcher.positions_in_column(board.width - 1)
    if direction is Direction.RIGHT:
        return searcher.positions_in_column(0)
    if direction is Direction.UP:
        return searcher.positions_in_row(board.height - 1)
    if direction is Direction.DOWN:
        return searcher.positions_in_row(0)
    return []


def spawn_on_edge(
    board: PuzzleBoard[Any],
    direction: Direction,
    choose: Callable[[], Any],
    fill: bool = False,
) -> list[Position]:
    """
    Insert new tiles on the free cells of the trailing edge.

    Args:
        board: Board to spawn on
        direction: Direction of the move that was just played
        choose: Returns the value for each new tile
        fill: Fill every free edge cell instead of only the first one

    Returns:
        Positions that received a tile
    """
    free = [p for p in trailing_edge(board, direction) if board.store.is_empty(p)]
    if not fill:
        free = free[:1]
    for position in free:
        board.update(position, choose())
    return free


def play_turn(
    board: PuzzleBoard[Any],
    game: GameDef,
    direction: Direction,
    rng: random.Random | None = None,
) -> int:
    """
    Play one turn of `game` on `board` and commit it to history.

    Returns the number of records the move itself produced; nothing spawns
    when the move changed nothing.
    """
    if direction is Direction.ZERO:
        return 0
    rng = rng if rng is not None else random.Random()

    before = board.history.pending
    if game.player is not None:
        board.push_matching(direction, game.player)
    else:
        board.push_all(direction)
    board.apply_move(direction)
    produced = board.history.pending - before

    if produced and game.spawn_values:
        spawned = spawn_on_edge(board, direction, lambda: rng.choice(game.spawn_values), game.fill_edge)
        logger.debug("%s: spawned %d tiles after %s", game.name, len(spawned), direction.name)

    board.end_turn()
    return produced
