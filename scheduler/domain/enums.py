from enum import Enum

from .errors import ValidationError


class DifficultyRating(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value):
        """Return the rating for ``value`` or raise ValidationError.

        Accepts a DifficultyRating or its string value; anything else,
        including None and the empty string, is rejected.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"difficulty_rating must be one of "
                f"{', '.join(r.value for r in cls)}; got {value!r}"
            ) from None

    @property
    def keeps_streak(self):
        return self in (DifficultyRating.GOOD, DifficultyRating.EASY)


RATING_CHOICES = [(r.value, r.value.capitalize()) for r in DifficultyRating]
