"""Level computation tests."""

import pytest

from wander.ledger.levels import EXP_PER_LEVEL, compute_level


class TestLevelComputation:
    def test_level_1_at_zero_exp(self):
        result = compute_level(0)
        assert result["level"] == 1
        assert result["title"] == "Newcomer"

    def test_boundary_99_exp(self):
        assert compute_level(99)["level"] == 1

    def test_level_2_at_100_exp(self):
        result = compute_level(100)
        assert result["level"] == 2
        assert result["title"] == "Wanderer"

    def test_title_persists_between_milestones(self):
        assert compute_level(350)["title"] == "Wanderer"  # level 4
        assert compute_level(400)["title"] == "Explorer"  # level 5

    def test_exp_into_level(self):
        result = compute_level(250)
        assert result["exp_into_level"] == 50
        assert result["exp_for_level"] == EXP_PER_LEVEL

    def test_negative_exp_clamped(self):
        assert compute_level(-20)["level"] == 1

    @pytest.mark.parametrize(
        "exp,expected_level",
        [(0, 1), (5, 1), (100, 2), (199, 2), (900, 10), (4900, 50), (10_000, 101)],
    )
    def test_level_formula(self, exp, expected_level):
        assert compute_level(exp)["level"] == expected_level
