"""Review session controller.

State machine::

    IDLE --load_queue--> PRESENTING --reveal--> AWAITING_RATING
    AWAITING_RATING --rate--> ADVANCING --> PRESENTING | COMPLETE

Terminal states: COMPLETE, FAILED (terminal error), ABANDONED.

A rating is only counted once the gateway has durably recorded it.
Retryable errors are retried with backoff under one idempotency key, so a
retried submission never applies the scheduler twice.
"""
from collections import deque
from datetime import datetime, timezone
from enum import Enum

import structlog
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..config import (
    CLIENT_RETRY_ATTEMPTS,
    CLIENT_RETRY_INITIAL_WAIT,
    CLIENT_RETRY_MAX_WAIT,
)
from ..domain.enums import DifficultyRating
from ..domain.errors import ReviewError

logger = structlog.get_logger()


class SessionState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    AWAITING_RATING = "awaiting_rating"
    ADVANCING = "advancing"
    COMPLETE = "complete"
    FAILED = "failed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self):
        return self in (SessionState.COMPLETE, SessionState.FAILED, SessionState.ABANDONED)


class SessionStateError(Exception):
    """Raised when an action is not allowed in the current state."""

    def __init__(self, action, state):
        self.action = action
        self.state = state
        super().__init__(f"cannot {action} while {state.value}")


def deck_queue(deck_id):
    """Queue source: every card of a deck, in catalog order."""
    def load(gateway):
        return gateway.deck_flashcards(deck_id)
    return load


def due_queue(deck_id=None, subject_id=None):
    """Queue source: only the cards the scheduler says are due."""
    def load(gateway):
        return gateway.due_flashcards(deck_id=deck_id, subject_id=subject_id)
    return load


def _is_retryable(exc):
    return isinstance(exc, ReviewError) and exc.is_retryable


def _utc_now():
    return datetime.now(timezone.utc)


class ReviewSession:
    def __init__(
        self,
        gateway,
        queue_source,
        clock=_utc_now,
        max_attempts=CLIENT_RETRY_ATTEMPTS,
        wait=None,
    ):
        self.gateway = gateway
        self.queue_source = queue_source
        self.clock = clock
        self.max_attempts = max_attempts
        self.wait = wait or wait_exponential_jitter(
            initial=CLIENT_RETRY_INITIAL_WAIT, max=CLIENT_RETRY_MAX_WAIT
        )

        self.state = SessionState.IDLE
        self.current = None
        self.reviewed = 0
        self.streak = 0
        self.best_streak = 0
        self.results = []
        self.last_error = None

        self._queue = deque()
        self._submitted = set()
        self._pending = None

    # Transitions

    def load_queue(self):
        self._require("load queue", SessionState.IDLE)
        try:
            card_ids = self._with_retry("load_queue", lambda: list(self.queue_source(self.gateway)))
        except ReviewError as exc:
            if not exc.is_retryable:
                self._fail(exc)
            raise
        self._queue = deque(str(card_id) for card_id in card_ids)
        logger.info("session_loaded", card_count=len(self._queue))
        self._advance()
        return self.current

    def reveal(self):
        self._require("reveal", SessionState.PRESENTING)
        self.state = SessionState.AWAITING_RATING
        return self.current

    def rate(self, rating):
        self._require("rate", SessionState.AWAITING_RATING)
        card_id = self.current
        try:
            rating = DifficultyRating.parse(rating)
        except ReviewError as exc:
            self._fail(exc)
            raise

        # A failed submission may still have been applied: any later rating of
        # the same card goes out under the original key, so at most one lands
        if self._pending and self._pending[0] == card_id:
            submitted_at, idem_key = self._pending[1:]
        else:
            submitted_at = self.clock()
            idem_key = f"{card_id}:{submitted_at.isoformat()}"
            self._pending = (card_id, submitted_at, idem_key)

        self.state = SessionState.ADVANCING
        try:
            result = self._with_retry(
                "submit_review",
                lambda: self.gateway.submit_review(card_id, rating, idem_key, submitted_at),
            )
        except ReviewError as exc:
            if exc.is_retryable:
                self._await_retry(card_id, exc)
            else:
                self._fail(exc)
            raise
        except Exception as exc:
            self._await_retry(card_id, exc)
            raise

        self._pending = None
        self.last_error = None
        self._submitted.add(card_id)
        # On a replay the server reports the rating it recorded first
        recorded = DifficultyRating.parse(result.get("difficulty_rating", rating))
        self._count(recorded)
        self.results.append(result)
        logger.info("session_rating_submitted",
            flashcard_id=card_id,
            rating=recorded.value,
            interval_days=result.get("interval_days"),
            reviewed=self.reviewed,
            streak=self.streak,
        )
        self._advance()
        return result

    def abandon(self):
        """Stop the session; the presented card is left untouched."""
        if self.state.is_terminal:
            return
        logger.info("session_abandoned", flashcard_id=self.current, reviewed=self.reviewed)
        self.state = SessionState.ABANDONED
        self.current = None
        self._pending = None

    # Session-local aggregates

    @property
    def remaining(self):
        return sum(1 for card_id in self._queue if card_id not in self._submitted)

    def summary(self):
        return {
            "state": self.state.value,
            "reviewed": self.reviewed,
            "streak": self.streak,
            "best_streak": self.best_streak,
        }

    # Internals

    def _require(self, action, expected):
        if self.state is not expected:
            raise SessionStateError(action, self.state)

    def _advance(self):
        while self._queue:
            card_id = self._queue.popleft()
            if card_id in self._submitted:
                continue
            self.current = card_id
            self.state = SessionState.PRESENTING
            return
        self.current = None
        self.state = SessionState.COMPLETE
        logger.info("session_complete", **self.summary())

    def _count(self, rating):
        self.reviewed += 1
        if rating.keeps_streak:
            self.streak += 1
            self.best_streak = max(self.best_streak, self.streak)
        else:
            self.streak = 0

    def _await_retry(self, card_id, exc):
        self.last_error = exc
        self.state = SessionState.AWAITING_RATING
        logger.warning("session_submit_gave_up",
            flashcard_id=card_id,
            error=getattr(exc, "code", type(exc).__name__),
        )

    def _fail(self, exc):
        self.last_error = exc
        self.state = SessionState.FAILED
        logger.warning("session_failed", flashcard_id=self.current, error=exc.code, detail=str(exc))

    def _with_retry(self, operation, fn):
        def log_retry(retry_state):
            logger.warning("session_retry",
                operation=operation,
                attempt=retry_state.attempt_number,
                error=repr(retry_state.outcome.exception()),
            )

        for attempt in Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=log_retry,
            reraise=True,
        ):
            with attempt:
                return fn()
