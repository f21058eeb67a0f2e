"""Tests for merge_policy module."""

import pytest

from merge_policy import GenericMergePolicy, IntMergePolicy, default_policy


class TestGenericMergePolicy:
    """Tests for the generic (slide-only) policy."""

    def test_default_empty_is_none(self) -> None:
        policy: GenericMergePolicy[str] = GenericMergePolicy()
        assert policy.empty() is None
        assert policy.is_empty(None)
        assert not policy.is_empty("A")

    def test_custom_empty(self) -> None:
        policy: GenericMergePolicy[str] = GenericMergePolicy(".")
        assert policy.empty() == "."
        assert policy.is_empty(".")
        assert not policy.is_empty(None)  # type: ignore[arg-type]

    def test_pushes_occupied_cells_only(self) -> None:
        policy: GenericMergePolicy[str] = GenericMergePolicy()
        assert policy.should_push("A", "B")
        assert not policy.should_push("A", None)  # type: ignore[arg-type]

    def test_merges_only_into_empty(self) -> None:
        """Sliding into an empty cell is the only 'merge' the generic policy allows."""
        policy: GenericMergePolicy[str] = GenericMergePolicy()
        assert policy.should_merge("A", None)  # type: ignore[arg-type]
        assert not policy.should_merge("A", "A")
        assert not policy.should_merge("A", "B")

    def test_merge_keeps_from_value(self) -> None:
        policy: GenericMergePolicy[str] = GenericMergePolicy()
        assert policy.merge("A", "B") == "A"


class TestIntMergePolicy:
    """Tests for the additive integer policy."""

    def test_empty_is_zero(self) -> None:
        policy = IntMergePolicy()
        assert policy.empty() == 0
        assert policy.is_empty(0)
        assert not policy.is_empty(2)

    @pytest.mark.parametrize(
        "from_value, into_value, expected",
        [
            (3, 3, True),
            (2, 0, True),
            (3, 5, False),
            (4, 2, False),
        ],
    )
    def test_should_merge(self, from_value: int, into_value: int, expected: bool) -> None:
        assert IntMergePolicy().should_merge(from_value, into_value) is expected

    def test_merge_sums(self) -> None:
        assert IntMergePolicy().merge(3, 3) == 6

    def test_should_push_into_occupied(self) -> None:
        policy = IntMergePolicy()
        assert policy.should_push(2, 4)
        assert not policy.should_push(2, 0)


class TestDefaultPolicy:
    """Tests for picking a stock policy by type."""

    def test_int_gets_additive(self) -> None:
        assert isinstance(default_policy(int), IntMergePolicy)

    def test_bool_is_not_additive(self) -> None:
        policy = default_policy(bool)
        assert not isinstance(policy, IntMergePolicy)
        assert isinstance(policy, GenericMergePolicy)

    def test_other_types_get_generic(self) -> None:
        policy = default_policy(str)
        assert type(policy) is GenericMergePolicy
        assert policy.is_empty(None)
