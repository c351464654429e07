from contextlib import contextmanager

from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F

from ..domain.errors import ConflictError, TransientIOError
from .models import CardReview, ReviewLog


LOCK_CONTENTION_MARKERS = ("locked", "deadlock", "lock wait timeout", "could not serialize")


def is_lock_contention(exc):
    message = str(exc).lower()
    return any(marker in message for marker in LOCK_CONTENTION_MARKERS)


@contextmanager
def translate_db_errors():
    """Surface connection failures as retryable TransientIOError."""
    try:
        yield
    except OperationalError as exc:
        raise TransientIOError(f"database unavailable: {exc}") from exc


@contextmanager
def lock_contention_as_conflict():
    """
    Another writer holding the pair's row (or the whole SQLite file) is a
    lost race, not an outage: raise ConflictError so the attempt is retried.
    """
    try:
        yield
    except OperationalError as exc:
        if is_lock_contention(exc):
            raise ConflictError(f"card review locked by another writer: {exc}") from exc
        raise


def get_existing_idempotent(learner_id, flashcard_id, idem_key):
    return ReviewLog.objects.filter(
        learner_id=learner_id, flashcard_id=flashcard_id, idempotency_key=idem_key
    ).first()


def lock_review(learner_id, flashcard_id):
    """
    Fetch the pair's review row and lock it for update.
    Must run inside transaction.atomic(). Returns None for a new pair.
    """
    return (CardReview.objects
            .select_for_update()
            .filter(learner_id=learner_id, flashcard_id=flashcard_id)
            .first())


def save_review_state(review, learner_id, flashcard_id, rating, state, now):
    """
    Write the scheduler's result for one pair.

    A new pair is inserted; an existing row is updated only if nobody else
    wrote it since it was read (version check). Losing either race raises
    ConflictError so the caller's transaction rolls back and can be retried.
    """
    fields = dict(
        difficulty_rating=rating.value,
        interval_days=state.interval_days,
        ease_factor=state.ease_factor,
        review_count=state.review_count,
        next_review_at=state.next_review_at,
        updated_at=now,
    )

    if review is None:
        try:
            with transaction.atomic():
                return CardReview.objects.create(
                    learner_id=learner_id, flashcard_id=flashcard_id, created_at=now, **fields
                )
        except IntegrityError as exc:
            raise ConflictError("card review created concurrently") from exc

    updated = (CardReview.objects
               .filter(pk=review.pk, version=review.version)
               .update(version=F("version") + 1, **fields))
    if updated == 0:
        raise ConflictError("card review changed concurrently")

    for name, value in fields.items():
        setattr(review, name, value)
    review.version += 1
    return review


def persist_review(review, rating, idem_key, now):
    """
    Insert the ReviewLog for an applied review. A duplicate idempotency key
    means a concurrent replay won; raise ConflictError so the retry reuses it.
    """
    try:
        with transaction.atomic():
            return ReviewLog.objects.create(
                learner_id=review.learner_id,
                flashcard_id=review.flashcard_id,
                card_review=review,
                difficulty_rating=rating.value,
                idempotency_key=idem_key,
                created_at=now,
                interval_days=review.interval_days,
                ease_factor=review.ease_factor,
                review_count=review.review_count,
                next_review_at=review.next_review_at,
            )
    except IntegrityError as exc:
        raise ConflictError("duplicate idempotency key") from exc


def reviews_for_learner(learner_id, deck_id=None):
    qs = CardReview.objects.filter(learner_id=learner_id).select_related("flashcard")
    if deck_id is not None:
        qs = qs.filter(flashcard__deck_id=deck_id)
    return qs.order_by("next_review_at", "flashcard_id")
