"""Error taxonomy shared by the scheduler, the record layer and the client.

Retryable kinds carry ``is_retryable = True``; the session controller uses
that flag to decide between bounded retry and halting.
"""


class ReviewError(Exception):
    """Base class for card review failures."""

    code = "review_error"
    is_retryable = False


class ValidationError(ReviewError):
    """Invalid or missing input, rejected before any state mutation."""

    code = "validation_error"


class NotFoundError(ReviewError):
    """Referenced learner or flashcard does not exist."""

    code = "not_found"


class ConflictError(ReviewError):
    """Concurrent update on the same (learner, flashcard) pair."""

    code = "conflict"
    is_retryable = True


class TransientIOError(ReviewError):
    """Persistence or network failure; safe to retry."""

    code = "transient_io_error"
    is_retryable = True
