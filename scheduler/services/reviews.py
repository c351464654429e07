from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from accounts.models import ChildProfile
from catalog.models import Flashcard
from ..config import (
    CONFLICT_RETRY_ATTEMPTS,
    CONFLICT_RETRY_INITIAL_WAIT,
    CONFLICT_RETRY_MAX_WAIT,
)
from ..data.repos import (
    get_existing_idempotent,
    lock_contention_as_conflict,
    lock_review,
    persist_review,
    save_review_state,
    translate_db_errors,
)
from ..domain.enums import DifficultyRating
from ..domain.errors import ConflictError, NotFoundError, ValidationError
from ..domain.logic import ReviewState, schedule_next
from ..utils.time import ensure_aware, to_local_iso

logger = structlog.get_logger()

MAX_IDEMPOTENCY_KEY_LENGTH = 128


@dataclass(frozen=True)
class RecordedReview:
    review_id: str
    flashcard_id: str
    difficulty_rating: DifficultyRating
    state: ReviewState
    replayed: bool


def default_idempotency_key(submitted_at):
    # Unique per (learner, flashcard) through the ReviewLog constraint
    return f"at:{submitted_at.isoformat()}"


def _check_references(learner_id, flashcard_id):
    try:
        if not ChildProfile.objects.filter(pk=learner_id).exists():
            raise NotFoundError(f"learner {learner_id} does not exist")
        if not Flashcard.objects.filter(pk=flashcard_id).exists():
            raise NotFoundError(f"flashcard {flashcard_id} does not exist")
    except DjangoValidationError as exc:
        raise ValidationError(f"malformed identifier: {exc.messages[0]}") from exc


def _from_log(log, replayed):
    return RecordedReview(
        review_id=str(log.card_review_id),
        flashcard_id=str(log.flashcard_id),
        difficulty_rating=DifficultyRating(log.difficulty_rating),
        state=log.to_state(),
        replayed=replayed,
    )


def _apply_once(learner_id, flashcard_id, rating, now, idem_key):
    # Fast path: return previous result if same idempotency_key
    existing = get_existing_idempotent(learner_id, flashcard_id, idem_key)
    if existing:
        return _from_log(existing, replayed=True)

    # Serialize read-modify-write per (learner, flashcard)
    with transaction.atomic():
        review = lock_review(learner_id, flashcard_id)
        existing = get_existing_idempotent(learner_id, flashcard_id, idem_key)
        if existing:
            return _from_log(existing, replayed=True)

        current = review.to_state() if review else ReviewState.fresh(now)
        state = schedule_next(current, rating, now)
        review = save_review_state(review, learner_id, flashcard_id, rating, state, now)
        log = persist_review(review, rating, idem_key, now)

    return _from_log(log, replayed=False)


def _conflict_logger(learner_id, flashcard_id):
    def log_retry(retry_state):
        logger.warning("review_conflict_retry",
            learner_id=str(learner_id),
            flashcard_id=str(flashcard_id),
            attempt=retry_state.attempt_number,
        )
    return log_retry


def submit_review(learner_id, flashcard_id, rating, now=None, idempotency_key=None):
    """
    Apply one rating to the (learner, flashcard) pair and return the result.

    Replaying a call with the same idempotency key returns the state the
    first call produced without applying the transition again. Lost races
    on the pair are retried with fresh state a bounded number of times.
    """
    rating = DifficultyRating.parse(rating)
    now = ensure_aware(now) if now is not None else timezone.now()
    idem_key = idempotency_key or default_idempotency_key(now)
    if len(idem_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise ValidationError(
            f"idempotency_key longer than {MAX_IDEMPOTENCY_KEY_LENGTH} characters"
        )

    logger.info("review_received",
        learner_id=str(learner_id),
        flashcard_id=str(flashcard_id),
        rating=rating.value,
        idempotency_key=idem_key,
    )

    with translate_db_errors():
        _check_references(learner_id, flashcard_id)

        for attempt in Retrying(
            stop=stop_after_attempt(CONFLICT_RETRY_ATTEMPTS),
            wait=wait_exponential_jitter(
                initial=CONFLICT_RETRY_INITIAL_WAIT, max=CONFLICT_RETRY_MAX_WAIT
            ),
            retry=retry_if_exception_type(ConflictError),
            before_sleep=_conflict_logger(learner_id, flashcard_id),
            reraise=True,
        ):
            with attempt, lock_contention_as_conflict():
                result = _apply_once(learner_id, flashcard_id, rating, now, idem_key)

    if result.replayed:
        logger.info("idempotent_reuse",
            learner_id=str(learner_id),
            flashcard_id=str(flashcard_id),
            next_review_utc=result.state.next_review_at.isoformat(),
        )
    else:
        logger.info("review_scheduled",
            learner_id=str(learner_id),
            flashcard_id=str(flashcard_id),
            rating=rating.value,
            interval_days=result.state.interval_days,
            ease_factor=result.state.ease_factor,
            review_count=result.state.review_count,
            next_review_utc=result.state.next_review_at.isoformat(),
            next_review_local=to_local_iso(result.state.next_review_at),
        )

    return result
