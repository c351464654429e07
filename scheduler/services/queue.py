"""Due-card selection for one learner.

Overdue cards come first, most overdue first, so a learner clears backlog
before seeing new material. Cards of the requested deck (or subject) that
the learner has never reviewed follow in catalog order. Every call queries
the current state; nothing is cached between calls.
"""
from itertools import islice

from django.utils import timezone
import structlog

from catalog.models import Flashcard
from ..data.models import CardReview
from ..data.repos import translate_db_errors
from ..utils.time import ensure_aware

logger = structlog.get_logger()


def _overdue(learner_id, now, deck_id, subject_id):
    qs = CardReview.objects.filter(learner_id=learner_id, next_review_at__lte=now)
    if deck_id is not None:
        qs = qs.filter(flashcard__deck_id=deck_id)
    if subject_id is not None:
        qs = qs.filter(flashcard__deck__subject_id=subject_id)
    return qs.order_by("next_review_at", "flashcard_id").values_list("flashcard_id", flat=True)


def _never_reviewed(learner_id, deck_id, subject_id):
    qs = Flashcard.objects.exclude(card_reviews__learner_id=learner_id)
    if deck_id is not None:
        qs = qs.filter(deck_id=deck_id)
    if subject_id is not None:
        qs = qs.filter(deck__subject_id=subject_id)
        # Subject-wide new cards keep decks together
        return qs.order_by("deck__created_at", "deck_id", "position", "id").values_list("id", flat=True)
    return qs.order_by("position", "id").values_list("id", flat=True)


def iter_due_flashcards(learner_id, now=None, deck_id=None, subject_id=None):
    """
    Yield the ids of the flashcards the learner should review now.

    New cards are only included when a deck or subject is given; without a
    filter only already-scheduled cards are due.
    """
    now = ensure_aware(now) if now is not None else timezone.now()
    with translate_db_errors():
        yield from _overdue(learner_id, now, deck_id, subject_id).iterator()
        if deck_id is not None or subject_id is not None:
            yield from _never_reviewed(learner_id, deck_id, subject_id).iterator()


def due_queue(learner_id, now=None, deck_id=None, subject_id=None, limit=None):
    """Materialize at most ``limit`` ids from iter_due_flashcards."""
    ids = iter_due_flashcards(learner_id, now=now, deck_id=deck_id, subject_id=subject_id)
    result = [str(i) for i in islice(ids, limit)]
    logger.info("review_queue_built",
        learner_id=str(learner_id),
        deck_id=str(deck_id) if deck_id else None,
        subject_id=str(subject_id) if subject_id else None,
        card_count=len(result),
    )
    return result


def count_due(learner_id, now=None, deck_id=None, subject_id=None):
    now = ensure_aware(now) if now is not None else timezone.now()
    with translate_db_errors():
        count = _overdue(learner_id, now, deck_id, subject_id).count()
        if deck_id is not None or subject_id is not None:
            count += _never_reviewed(learner_id, deck_id, subject_id).count()
    return count
