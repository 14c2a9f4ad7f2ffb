"""Pydantic schemas for exercise challenges."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ChallengeValidationError


class CreatorType(str, Enum):
    """Kind of identity that created a challenge."""

    USER = "User"
    GROUP = "Group"


# Message returned for the first invalid field, in validation order
FIELD_ERRORS = {
    "level": "Level must be an integer between 1 and 3.",
    "reps": "Reps must be a positive integer if provided.",
    "sets": "Sets must be a positive integer if provided.",
    "weight": "Weight must be a positive number if provided.",
    "minutes": "Minutes must be a positive number if provided.",
    "frequency": "Frequency must be a positive integer.",
    "duration": "Duration must be a positive integer.",
    "exercise": "Exercise must be a non-empty string.",
    "creator_type": "Creator type must be either 'User' or 'Group'.",
    "creator": "Creator must be provided.",
}

# Caps keep every stored count, and the points derived from them, inside a
# 64-bit SQLite INTEGER
MAX_QUANTITY = 10**9
MAX_SCHEDULE = 10**4

_NUMERIC_FIELDS = ("level", "reps", "sets", "weight", "minutes", "frequency", "duration")


class ChallengeCreate(BaseModel):
    """Schema for creating a challenge.

    Fields are declared in validation order; pydantic reports errors in
    declaration order, so the first error is the first failing rule.
    """

    level: int = Field(..., ge=1, le=3)
    reps: Optional[int] = Field(None, gt=0, le=MAX_QUANTITY)
    sets: Optional[int] = Field(None, gt=0, le=MAX_QUANTITY)
    weight: Optional[float] = Field(None, gt=0, le=MAX_QUANTITY, allow_inf_nan=False)
    minutes: Optional[float] = Field(None, gt=0, le=MAX_QUANTITY, allow_inf_nan=False)
    frequency: int = Field(..., gt=0, le=MAX_SCHEDULE)
    duration: int = Field(..., gt=0, le=MAX_SCHEDULE)
    exercise: str = Field(..., min_length=1)
    creator_type: CreatorType
    creator: str = Field(..., min_length=1)

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def must_be_number(cls, v: Any) -> Any:
        """Reject booleans and numeric strings before pydantic coerces them."""
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        return v

    @field_validator("exercise")
    @classmethod
    def exercise_not_blank(cls, v: str) -> str:
        """Validate the exercise name has visible characters."""
        if not v.strip():
            raise ValueError("exercise must not be blank")
        return v

    @classmethod
    def parse(cls, **fields: Any) -> "ChallengeCreate":
        """Validate raw input, raising the first field's domain error.

        Raises:
            ChallengeValidationError: carrying the message for the first
                invalid field
        """
        try:
            return cls(**fields)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else ""
            message = FIELD_ERRORS.get(field, first["msg"])
            raise ChallengeValidationError(message, field=field) from e


class ChallengeDetails(BaseModel):
    """Exercise definition of a challenge."""

    exercise: str
    level: int
    frequency: int
    duration: int
    reps: Optional[int] = None
    sets: Optional[int] = None
    minutes: Optional[Union[int, float]] = None
    weight: Optional[Union[int, float]] = None

    model_config = {"from_attributes": True}

    @field_validator("minutes", "weight", mode="before")
    @classmethod
    def integral_as_int(cls, v: Any) -> Any:
        """Give back whole numbers as ints; SQLite REAL columns return 5 as 5.0."""
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class CreatorInfo(BaseModel):
    """Who created a challenge."""

    creator: str
    creator_type: CreatorType

    model_config = {"from_attributes": True}

