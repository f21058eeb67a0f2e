"""Tests for grid_parser module."""

import pytest

from grid_parser import EMPTY, format_board, parse_board, parse_cells, parse_cells_concise
from grid_types import Position
from merge_policy import GenericMergePolicy, IntMergePolicy


class TestParseCells:
    """Tests for the standard cell parser."""

    def test_simple_grid(self) -> None:
        """Rows are split on |, cells on spaces."""
        assert parse_cells("2 _ 2|_ 4 crate") == ((2, EMPTY, 2), (EMPTY, 4, "crate"))

    def test_integers(self) -> None:
        assert parse_cells("2048 -1 0") == ((2048, -1, 0),)

    def test_multiple_spaces_are_empty_cells(self) -> None:
        assert parse_cells("2  4") == ((2, EMPTY, 4),)

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_cells("  A B  ") == (("A", "B"),)

    def test_single_column(self) -> None:
        assert parse_cells("1|2|_") == ((1,), (2,), (EMPTY,))

    @pytest.mark.parametrize("token", ["3-", "--3", "a-b", "#", "x.y"])
    def test_invalid_cell(self, token: str) -> None:
        with pytest.raises(ValueError) as exc_info:
            parse_cells(f"1 {token}")
        message = str(exc_info.value)
        assert f"Invalid cell string: '{token}'" in message
        assert "column 1" in message

    def test_inconsistent_row_lengths(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            parse_cells("1 2|3")
        message = str(exc_info.value)
        assert "Inconsistent row lengths" in message
        assert "Row 1: 1 columns" in message

    def test_empty_definition(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            parse_cells("   ")


class TestParseCellsConcise:
    """Tests for the one-character-per-cell parser."""

    def test_simple_grid(self) -> None:
        assert parse_cells_concise("2_2|_4C") == ((2, EMPTY, 2), (EMPTY, 4, "C"))

    def test_newline_rows(self) -> None:
        definition = """
        12
        _4
        """
        assert parse_cells_concise(definition) == ((1, 2), (EMPTY, 4))

    def test_invalid_character(self) -> None:
        with pytest.raises(ValueError, match="Invalid cell string"):
            parse_cells_concise("1*")

    def test_inconsistent_row_lengths(self) -> None:
        with pytest.raises(ValueError, match="Inconsistent row lengths"):
            parse_cells_concise("12|3")

    def test_empty_definition(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            parse_cells_concise("")


class TestParseBoard:
    """Tests for building a GridStore from a definition."""

    def test_dimensions_and_values(self) -> None:
        store = parse_board("2 _ 4|_ 8 _")
        assert (store.width, store.height) == (3, 2)
        assert store.get(Position(2, 0)) == 4
        assert store.get(Position(1, 1)) == 8
        assert store.is_empty(Position(0, 1))

    def test_integer_grid_gets_additive_policy(self) -> None:
        store = parse_board("2 _|_ 4")
        assert isinstance(store.policy, IntMergePolicy)
        assert store.get(Position(1, 0)) == 0

    def test_other_grids_get_generic_policy(self) -> None:
        store = parse_board("2 A")
        assert type(store.policy) is GenericMergePolicy
        assert store.get(Position(0, 0)) == 2
        assert store.get(Position(1, 0)) == "A"

    def test_explicit_policy(self) -> None:
        policy: GenericMergePolicy[int] = GenericMergePolicy(0)
        store = parse_board("1 _", policy=policy)
        assert store.policy is policy
        assert store.get(Position(1, 0)) == 0

    def test_concise(self) -> None:
        store = parse_board("1_|_2", concise=True)
        assert store.rows() == ((1, 0), (0, 2))


class TestFormatBoard:
    """Tests for writing a store back out."""

    def test_round_trip(self) -> None:
        definition = "2 _ 4|_ 8 _"
        assert format_board(parse_board(definition)) == definition

    def test_custom_empty_marker(self) -> None:
        assert format_board(parse_board("A _"), empty_marker=".") == "A ."
