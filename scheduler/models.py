from .data.models import CardReview, ReviewLog  # noqa: F401
