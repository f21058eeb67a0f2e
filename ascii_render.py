"""
Terminal rendering for pushgrid boards.

Provides two pieces:
1. render_board: draw the current values of a store as a boxed, coloured grid
2. TileTracker: follow the record stream and keep a stable id per on-screen tile,
   the way a graphical renderer tracks its display objects
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from grid_types import Position, Record, RecordType
from pushgrid import GridStore

logger = logging.getLogger(__name__)

Colorizer = Callable[[str], str]

PALETTE: list[Colorizer] = [
    chalk.red,
    chalk.green,
    chalk.yellow,
    chalk.blue,
    chalk.magenta,
    chalk.cyan,
    chalk.redBright,
    chalk.greenBright,
    chalk.yellowBright,
    chalk.blueBright,
]


# =============================================================================
# Board Rendering
# =============================================================================


def value_colors(
    store: GridStore[Any], label_fn: Callable[[Any], str] = str
) -> dict[str, Colorizer]:
    """Assign a palette colour to each distinct non-empty value label on the board."""
    labels = sorted(
        {label_fn(value) for row in store.rows() for value in row if not store.policy.is_empty(value)}
    )
    return {label: PALETTE[i % len(PALETTE)] for i, label in enumerate(labels)}


def render_board(
    store: GridStore[Any],
    cell_width: int | None = None,
    highlight_pos: Position | None = None,
    title: str | None = None,
    label_fn: Callable[[Any], str] | None = None,
    color: bool = True,
) -> str:
    """
    Render a store as a boxed grid, one text line per row.

    Args:
        store: The store to render
        cell_width: Characters per cell (default: widest label + 2)
        highlight_pos: Optional position to highlight (white background)
        title: Optional title centred in the top border
        label_fn: Optional function turning a non-empty value into its label
        color: Colour labels by value with simple_chalk

    Returns:
        Rendered string, with ANSI colour codes unless color is False
    """
    if label_fn is None:
        label_fn = str

    def label(value: Any) -> str:
        return "_" if store.policy.is_empty(value) else label_fn(value)

    rows = store.rows()
    labels = [[label(value) for value in row] for row in rows]
    if cell_width is None:
        cell_width = max(len(text) for row in labels for text in row) + 2

    colors = value_colors(store, label_fn) if color else {}
    grid_width = store.width * cell_width + 2

    lines: list[str] = []

    # Top border with title
    title_line = "┌" + "─" * (grid_width - 2) + "┐"
    if title is not None and len(f" {title} ") <= grid_width - 2:
        text = f" {title} "
        title_start = (grid_width - len(text)) // 2
        title_line = (
            "┌"
            + "─" * (title_start - 1)
            + text
            + "─" * (grid_width - title_start - len(text) - 1)
            + "┐"
        )
    lines.append(title_line)

    for y, row in enumerate(labels):
        line_parts = ["│"]
        for x, text in enumerate(row):
            content = text.center(cell_width)
            if color and highlight_pos == Position(x, y):
                content = chalk.bgWhite.black(content)
            elif text in colors:
                content = colors[text](content)
            line_parts.append(content)
        line_parts.append("│")
        lines.append("".join(line_parts))

    lines.append("└" + "─" * (grid_width - 2) + "┘")
    return "\n".join(lines)


# =============================================================================
# Record Stream Consumer
# =============================================================================


@dataclass(frozen=True)
class TileEvent:
    """One display-object action derived from the record stream."""

    action: str  # "create", "destroy", "move", "update", "merge", "split"
    tile_id: int
    position: Position
    value: Any


class TileTracker:
    """
    Keeps one tile id per occupied cell, driven only by published records.

    Subscribe `on_record` to a store. Merge and Split records arrive in pairs;
    the first is held until the second arrives, then the pair is told apart by
    which record is static (same old and new position).
    """

    def __init__(self) -> None:
        self.tiles: dict[Position, int] = {}
        self.values: dict[Position, Any] = {}
        self.events: list[TileEvent] = []
        self._next_id = 1
        self._pending: Record[Any] | None = None

    def sync(self, store: GridStore[Any]) -> None:
        """Forget everything and create one tile per occupied cell of `store`."""
        self.tiles.clear()
        self.values.clear()
        self._pending = None
        for position in store.positions():
            if not store.is_empty(position):
                self._create(position, store.get(position))

    def _emit(self, action: str, tile_id: int, position: Position, value: Any) -> None:
        self.events.append(TileEvent(action, tile_id, position, value))

    def _create(self, position: Position, value: Any) -> int:
        tile_id = self._next_id
        self._next_id += 1
        self.tiles[position] = tile_id
        self.values[position] = value
        self._emit("create", tile_id, position, value)
        return tile_id

    def _destroy(self, position: Position) -> None:
        tile_id = self.tiles.pop(position, None)
        value = self.values.pop(position, None)
        if tile_id is not None:
            self._emit("destroy", tile_id, position, value)

    def on_record(self, record: Record[Any]) -> None:
        old, new = record.old_state, record.new_state

        if record.type in (RecordType.MERGE, RecordType.SPLIT):
            if self._pending is None:
                self._pending = record
                return
            first, self._pending = self._pending, None
            if record.is_static():
                static, moving = record, first
            else:
                if not first.is_static():
                    logger.warning("%s pair has no static record: %s, %s", record.type.name, first, record)
                static, moving = first, record
            if record.type is RecordType.MERGE:
                self._merge(moving, static)
            else:
                self._split(moving, static)

        elif record.type is RecordType.MOVE:
            tile_id = self.tiles.pop(old.position, None)
            self.values.pop(old.position, None)
            if tile_id is None:
                tile_id = self._create(new.position, new.value)
            self.tiles[new.position] = tile_id
            self.values[new.position] = new.value
            self._emit("move", tile_id, new.position, new.value)

        elif record.type is RecordType.INSERT:
            self._create(new.position, new.value)

        elif record.type is RecordType.DELETE:
            self._destroy(new.position)

        elif record.type is RecordType.UPDATE:
            tile_id = self.tiles.get(new.position)
            if tile_id is None:
                tile_id = self._create(new.position, new.value)
            self.values[new.position] = new.value
            self._emit("update", tile_id, new.position, new.value)

    def _merge(self, moving: Record[Any], static: Record[Any]) -> None:
        # The moving tile slides into the static one and disappears
        self._destroy(moving.old_state.position)
        target = moving.new_state.position
        tile_id = self.tiles.get(target)
        if tile_id is None:
            tile_id = self._create(target, moving.new_state.value)
        self.values[target] = moving.new_state.value
        self._emit("merge", tile_id, target, moving.new_state.value)

    def _split(self, moving: Record[Any], static: Record[Any]) -> None:
        # The static tile keeps its id; a new tile comes out of it
        origin = static.new_state.position
        tile_id = self.tiles.get(origin)
        if tile_id is None:
            tile_id = self._create(origin, static.new_state.value)
        self.values[origin] = static.new_state.value
        self._emit("split", tile_id, origin, static.new_state.value)
        self._create(moving.new_state.position, moving.new_state.value)
