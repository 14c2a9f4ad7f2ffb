"""Tests for challenge creation validation."""

import pytest

from repquest.challenges.schemas import ChallengeCreate, ChallengeDetails, CreatorType
from repquest.errors import ChallengeValidationError


def valid(**overrides) -> dict:
    fields = {
        "creator": "user:alice",
        "creator_type": "User",
        "level": 2,
        "exercise": "Plank",
        "frequency": 3,
        "duration": 2,
    }
    fields.update(overrides)
    return fields


def error_for(**overrides) -> str:
    with pytest.raises(ChallengeValidationError) as exc:
        ChallengeCreate.parse(**valid(**overrides))
    return exc.value.message


class TestChallengeCreate:
    """Tests for ChallengeCreate.parse."""

    def test_valid_minimal(self):
        """Test the minimal valid input."""
        data = ChallengeCreate.parse(**valid())

        assert data.level == 2
        assert data.creator_type is CreatorType.USER
        assert data.reps is None
        assert data.weight is None

    def test_integral_float_accepted(self):
        """Test integral floats count as integers."""
        data = ChallengeCreate.parse(**valid(level=2.0, frequency=3.0))
        assert data.level == 2
        assert data.frequency == 3

    @pytest.mark.parametrize("level", [0, 4, -1, 1.5, "2", True, None])
    def test_invalid_level(self, level):
        """Test level must be 1, 2 or 3."""
        assert error_for(level=level) == "Level must be an integer between 1 and 3."

    @pytest.mark.parametrize("reps", [0, -5, 2.5, "10", False])
    def test_invalid_reps(self, reps):
        """Test reps must be a positive integer."""
        assert error_for(reps=reps) == "Reps must be a positive integer if provided."

    @pytest.mark.parametrize("sets", [0, -1, 1.1])
    def test_invalid_sets(self, sets):
        """Test sets must be a positive integer."""
        assert error_for(sets=sets) == "Sets must be a positive integer if provided."

    @pytest.mark.parametrize("weight", [0, -2.5, "heavy", float("inf")])
    def test_invalid_weight(self, weight):
        """Test weight must be a positive number."""
        assert error_for(weight=weight) == "Weight must be a positive number if provided."

    @pytest.mark.parametrize("minutes", [0, -10, float("nan")])
    def test_invalid_minutes(self, minutes):
        """Test minutes must be a positive number."""
        assert error_for(minutes=minutes) == "Minutes must be a positive number if provided."

    @pytest.mark.parametrize("frequency", [0, -1, 2.5, None])
    def test_invalid_frequency(self, frequency):
        """Test frequency must be a positive integer."""
        assert error_for(frequency=frequency) == "Frequency must be a positive integer."

    @pytest.mark.parametrize("duration", [0, -3, 1.5])
    def test_invalid_duration(self, duration):
        """Test duration must be a positive integer."""
        assert error_for(duration=duration) == "Duration must be a positive integer."

    @pytest.mark.parametrize("exercise", ["", "   ", None])
    def test_invalid_exercise(self, exercise):
        """Test the exercise name must not be blank."""
        assert error_for(exercise=exercise) == "Exercise must be a non-empty string."

    def test_invalid_creator_type(self):
        """Test creator type must be User or Group."""
        assert error_for(creator_type="Team") == "Creator type must be either 'User' or 'Group'."

    def test_missing_creator(self):
        """Test a creator must be given."""
        assert error_for(creator=None) == "Creator must be provided."

    def test_first_failure_wins(self):
        """Test errors are reported in validation order."""
        assert error_for(level=5, reps=-1, duration=0) == "Level must be an integer between 1 and 3."
        assert error_for(sets=0, weight=-1) == "Sets must be a positive integer if provided."
        assert error_for(minutes=-1, frequency=0) == "Minutes must be a positive number if provided."
        assert error_for(duration=0, exercise="") == "Duration must be a positive integer."

    def test_error_records_field(self):
        """Test the failing field name is kept on the error."""
        with pytest.raises(ChallengeValidationError) as exc:
            ChallengeCreate.parse(**valid(weight=-1))
        assert exc.value.field == "weight"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"reps": 2**63}, "Reps must be a positive integer if provided."),
            ({"sets": 10**9 + 1}, "Sets must be a positive integer if provided."),
            ({"weight": 1e300}, "Weight must be a positive number if provided."),
            ({"minutes": 1e305}, "Minutes must be a positive number if provided."),
            ({"frequency": 10**4 + 1}, "Frequency must be a positive integer."),
            ({"duration": 2**63}, "Duration must be a positive integer."),
        ],
    )
    def test_too_large(self, overrides, message):
        """Test values too large to store get the field's message."""
        assert error_for(**overrides) == message

    def test_largest_values_accepted(self):
        """Test the upper bounds themselves are valid."""
        data = ChallengeCreate.parse(
            **valid(level=3, reps=10**9, sets=10**9, weight=1e9, minutes=1e9, frequency=10**4, duration=10**4)
        )
        assert data.reps == 10**9
        assert data.duration == 10**4

    def test_long_names_accepted(self):
        """Test exercise and creator have no length limit."""
        data = ChallengeCreate.parse(**valid(exercise="x" * 500, creator="user:" + "a" * 500))
        assert len(data.exercise) == 500


class TestChallengeDetails:
    """Tests for the ChallengeDetails projection."""

    def test_whole_numbers_come_back_as_ints(self):
        """Test whole weight and minutes read back as ints."""
        details = ChallengeDetails(
            exercise="Plank", level=1, frequency=1, duration=1, weight=5.0, minutes=2.5
        )
        assert details.weight == 5
        assert isinstance(details.weight, int)
        assert details.minutes == 2.5
