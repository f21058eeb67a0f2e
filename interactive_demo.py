"""
Interactive demo for pushgrid.
Display a board and play one of the example games with keyboard commands.
"""

import logging
import random
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_board
from games import LAYOUTS, GameDef, new_board, play_turn
from grid_types import Direction, Record

KEYS = {
    readchar.key.UP: Direction.UP,
    readchar.key.DOWN: Direction.DOWN,
    readchar.key.LEFT: Direction.LEFT,
    readchar.key.RIGHT: Direction.RIGHT,
    "w": Direction.UP,
    "s": Direction.DOWN,
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
}


class InteractiveDemo:
    """Interactive demo for push operations."""

    def __init__(self, game: GameDef, seed: int | None = None) -> None:
        self.game = game
        self.rng = random.Random(seed)
        self.board = new_board(game)
        self.console = Console()
        self.status_message = "Ready"
        self.last_records: list[Record] = []
        self.board.subscribe(self.last_records.append)

    def generate_display(self) -> Panel:
        """Generate the current display with board and status."""
        grid_text = render_board(self.board.store, title=self.game.name, label_fn=self.game.label_fn)

        status = Text()
        status.append("Turns: ", style="bold")
        status.append(f"{self.board.history.count}\n\n")

        # Convert ANSI-colored grid text to Rich Text properly
        status.append(Text.from_ansi(grid_text))
        status.append("\n\n")

        if self.last_records:
            status.append("Last records:\n", style="bold")
            for record in self.last_records[-6:]:
                status.append(f"  {record}\n", style="dim")
            status.append("\n")

        status.append("Keys:\n", style="bold cyan")
        status.append("  Arrows / WASD - Push\n")
        status.append("  U - Undo last turn\n")
        status.append("  R - Reset board\n")
        status.append("  Q - Quit\n\n")

        # Status line at the bottom
        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="pushgrid Interactive Demo", border_style="green", width=80)

    def attempt_push(self, direction: Direction) -> None:
        self.last_records.clear()
        produced = play_turn(self.board, self.game, direction, self.rng)
        if produced:
            self.status_message = f"✓ Pushed {direction.name}: {produced} records"
        else:
            self.status_message = f"✗ Nothing moved {direction.name}"

    def undo(self) -> None:
        self.last_records.clear()
        if self.board.undo_last_turn():
            self.status_message = "Undid last turn"
        else:
            self.status_message = "Nothing to undo"

    def reset_board(self) -> None:
        self.board = new_board(self.game)
        self.last_records.clear()
        self.board.subscribe(self.last_records.append)
        self.status_message = "Board reset to starting layout"

    def run(self) -> None:
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey()
                    lowered = key.lower() if len(key) == 1 else key

                    if lowered == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif lowered == "r":
                        self.reset_board()
                    elif lowered == "u":
                        self.undo()
                    elif lowered in KEYS:
                        self.attempt_push(KEYS[lowered])
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


def main(name: str) -> None:
    if name not in LAYOUTS:
        print(f"Unknown game '{name}'. Choose from: {', '.join(sorted(LAYOUTS))}")
        return
    InteractiveDemo(LAYOUTS[name]).run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "sublime":
        # Running from IDE - play a few scripted turns and print each state
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

        game = LAYOUTS[sys.argv[2] if len(sys.argv) > 2 else "add"]
        board = new_board(game)
        rng = random.Random(0)
        print(render_board(board.store, title=game.name, label_fn=game.label_fn, color=False))
        for direction in (Direction.LEFT, Direction.UP, Direction.RIGHT, Direction.DOWN):
            play_turn(board, game, direction, rng)
            print(f"\nafter {direction.name}:")
            print(render_board(board.store, label_fn=game.label_fn, color=False))
        board.undo_last_turn()
        print("\nafter undo:")
        print(render_board(board.store, label_fn=game.label_fn, color=False))
    else:
        main(sys.argv[1] if len(sys.argv) > 1 else "sokoban")
