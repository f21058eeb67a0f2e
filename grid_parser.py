"""
Grid parsing utilities for pushgrid.

Provides two parsing formats:
1. Standard format: rows separated by |, cells separated by spaces
2. Concise format: one character per cell
"""

from __future__ import annotations

from typing import Any

from merge_policy import GenericMergePolicy, MergePolicy, default_policy
from grid_types import Position
from pushgrid import GridStore

__all__ = ["EMPTY", "parse_cells", "parse_cells_concise", "parse_board", "format_board"]


class _EmptyMarker:
    """Placeholder for an empty cell until a policy supplies the real empty value."""

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY: Any = _EmptyMarker()

Rows = tuple[tuple[Any, ...], ...]


def _parse_token(token: str, grid_text: str, row_idx: int, row_str: str, col_idx: int) -> Any:
    if not token or token == "_":
        return EMPTY
    if token.lstrip("-").isdecimal() and token.count("-") <= 1:
        return int(token)
    if token.isalnum():
        return token

    error_msg = (
        f"Invalid cell string: '{token}'\n"
        f"  Grid: \"{grid_text}\"\n"
        f"  Row {row_idx}: \"{row_str}\"\n"
        f"  Position: column {col_idx}\n"
        f"  Valid formats:\n"
        f"    - Integer (e.g., '2', '-1', '2048'): int value\n"
        f"    - Letters and digits (e.g., 'A', 'crate'): str value\n"
        f"    - '_': Empty cell\n"
        f"    - Empty string (multiple spaces): Empty cell"
    )
    raise ValueError(error_msg)


def _check_rows(rows: list[tuple[Any, ...]], row_strings: list[str], grid_text: str) -> Rows:
    if not rows or not rows[0]:
        raise ValueError(f"Grid definition is empty: \"{grid_text}\"")

    cols = len(rows[0])
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != cols]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths in grid \"{grid_text}\"\n"
            f"  Expected: {cols} columns (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{row_strings[row_idx]}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ValueError(error_msg)

    return tuple(rows)


def parse_cells(definition: str) -> Rows:
    """
    Parse a grid of cell values from the standard string format.

    Format:
    - Rows separated by |, top row first
    - Cells separated by single spaces
    - Integers (optionally negative) become int values
    - Other alphanumeric strings are kept as str values
    - Underscore (_) or an empty string (from adjacent spaces) is the EMPTY marker

    Example:
        "2 _ 2|_ 4 crate" -> ((2, EMPTY, 2), (EMPTY, 4, "crate"))

    Args:
        definition: Grid definition string

    Returns:
        Tuple of row tuples; row y is at index y

    Raises:
        ValueError: On an invalid cell or rows of different lengths
    """
    definition = definition.strip()
    if not definition:
        raise ValueError("Grid definition is empty")
    row_strings = definition.split("|")
    rows: list[tuple[Any, ...]] = []

    for row_idx, row_str in enumerate(row_strings):
        # Multiple spaces = multiple empty cells
        cell_strings = row_str.strip().split(" ")
        rows.append(
            tuple(
                _parse_token(cell_str, definition, row_idx, row_str, col_idx)
                for col_idx, cell_str in enumerate(cell_strings)
            )
        )

    return _check_rows(rows, row_strings, definition)


def parse_cells_concise(definition: str) -> Rows:
    """
    Parse a grid where every character is one cell.

    Rows are separated by | or newlines, digits become ints, letters stay
    strings and _ is EMPTY. Whitespace around rows is ignored.

    Example:
        "2_2|_4C" -> ((2, EMPTY, 2), (EMPTY, 4, "C"))
    """
    text = definition.strip()
    row_strings = [row.strip() for row in text.replace("\n", "|").split("|") if row.strip()]
    rows: list[tuple[Any, ...]] = []

    for row_idx, row_str in enumerate(row_strings):
        rows.append(
            tuple(
                _parse_token(char, text, row_idx, row_str, col_idx)
                for col_idx, char in enumerate(row_str)
            )
        )

    return _check_rows(rows, row_strings, text)


def parse_board(
    definition: str,
    policy: MergePolicy[Any] | None = None,
    concise: bool = False,
) -> GridStore[Any]:
    """
    Build a GridStore from a grid definition.

    Without a policy, an all-integer grid gets the additive integer policy and
    anything else gets the generic policy. EMPTY markers become the policy's
    empty value.

    Args:
        definition: Grid definition (see parse_cells / parse_cells_concise)
        policy: Merge policy for the new store
        concise: Use the one-character-per-cell format

    Returns:
        A new GridStore holding the parsed values
    """
    rows = parse_cells_concise(definition) if concise else parse_cells(definition)
    values = [value for row in rows for value in row if value is not EMPTY]

    if policy is None:
        if all(isinstance(value, int) for value in values):
            policy = default_policy(int)
        else:
            policy = GenericMergePolicy()

    store: GridStore[Any] = GridStore(len(rows[0]), len(rows), policy)
    for y, row in enumerate(rows):
        for x, value in enumerate(row):
            if value is not EMPTY:
                store.update(Position(x, y), value)
    return store


def format_board(store: GridStore[Any], empty_marker: str = "_") -> str:
    """Format a store back into the standard format (the inverse of parse_board)."""
    return "|".join(
        " ".join(
            empty_marker if store.policy.is_empty(value) else str(value)
            for value in row
        )
        for row in store.rows()
    )
