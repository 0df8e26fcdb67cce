"""Input rules checked before any unit of work opens."""

from decimal import Decimal

import pytest

from wander.activity.checkin_service import validate_coordinates
from wander.activity.review_service import validate_rating
from wander.errors import ValidationError
from wander.ledger.causes import Cause, CauseKind
from wander.places.stats_service import round_rating


class TestRating:
    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_valid(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "5", None, True])
    def test_invalid(self, rating):
        with pytest.raises(ValidationError):
            validate_rating(rating)


class TestCoordinates:
    def test_both_missing_is_fine(self):
        validate_coordinates(None, None)

    def test_half_specified(self):
        with pytest.raises(ValidationError):
            validate_coordinates(10.0, None)

    @pytest.mark.parametrize("lat,lng", [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_out_of_range(self, lat, lng):
        with pytest.raises(ValidationError):
            validate_coordinates(lat, lng)


class TestRoundRating:
    @pytest.mark.parametrize(
        "mean,expected",
        [
            (4.0, Decimal("4.00")),
            (4.5, Decimal("4.50")),
            (10 / 3, Decimal("3.33")),
            (11 / 3, Decimal("3.67")),
            (Decimal("2.125"), Decimal("2.13")),
            (None, Decimal("0.00")),
        ],
    )
    def test_half_up(self, mean, expected):
        assert round_rating(mean) == expected


class TestCause:
    def test_as_dict(self):
        assert Cause(CauseKind.CHECKIN, 7).as_dict() == {"kind": "Checkin", "id": 7}

    def test_closed_enum(self):
        with pytest.raises(ValueError):
            CauseKind("Lottery")
