import pytest
import logging
from datetime import datetime, timedelta, timezone

from tenacity import wait_none

from scheduler.client.gateways import LocalReviewGateway
from scheduler.client.session import (
    ReviewSession,
    SessionState,
    SessionStateError,
    deck_queue,
    due_queue,
)
from scheduler.data.models import CardReview, ReviewLog
from scheduler.domain.enums import DifficultyRating
from scheduler.domain.errors import (
    ConflictError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)

logger = logging.getLogger(__name__)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# Helpers

class FakeGateway:
    """In-memory gateway; ``failures`` queues exceptions for submit_review."""

    def __init__(self, deck=None, due=None, failures=None):
        self.deck = list(deck or [])
        self.due = list(due or [])
        self.failures = list(failures or [])
        self.calls = []
        self.applied = {}

    def deck_flashcards(self, deck_id):
        return list(self.deck)

    def due_flashcards(self, deck_id=None, subject_id=None):
        return list(self.due)

    def submit_review(self, flashcard_id, rating, idempotency_key, submitted_at):
        self.calls.append((flashcard_id, rating, idempotency_key))
        if self.failures:
            raise self.failures.pop(0)
        # Idempotent by key, like the server
        _, recorded = self.applied.setdefault(idempotency_key, (flashcard_id, rating))
        return {"flashcard_id": flashcard_id, "difficulty_rating": recorded.value, "interval_days": 1}


def ticking_clock():
    ticks = iter(range(10_000))
    return lambda: T0 + timedelta(seconds=next(ticks))


def make_session(gateway, source=None, **kwargs):
    return ReviewSession(
        gateway,
        source or deck_queue("deck-1"),
        clock=ticking_clock(),
        wait=wait_none(),
        **kwargs,
    )


def review(session, rating):
    session.reveal()
    return session.rate(rating)


# Tests

def test_happy_path_state_machine():
    gw = FakeGateway(deck=["c1", "c2"])
    session = make_session(gw)
    assert session.state is SessionState.IDLE

    assert session.load_queue() == "c1"
    assert session.state is SessionState.PRESENTING
    session.reveal()
    assert session.state is SessionState.AWAITING_RATING

    session.rate("good")
    assert session.state is SessionState.PRESENTING
    assert session.current == "c2"

    review(session, "easy")
    assert session.state is SessionState.COMPLETE
    assert session.current is None
    assert [c[0] for c in gw.calls] == ["c1", "c2"]
    logger.info("✓ Passed: %s", session.summary())


def test_empty_queue_completes_immediately():
    session = make_session(FakeGateway(deck=[]))

    assert session.load_queue() is None
    assert session.state is SessionState.COMPLETE


def test_illegal_transitions_raise():
    session = make_session(FakeGateway(deck=["c1"]))

    with pytest.raises(SessionStateError):
        session.reveal()
    session.load_queue()
    with pytest.raises(SessionStateError):
        session.rate("good")
    with pytest.raises(SessionStateError):
        session.load_queue()


def test_streak_and_counters():
    gw = FakeGateway(deck=["c1", "c2", "c3", "c4", "c5"])
    session = make_session(gw)
    session.load_queue()

    for rating in ["good", "easy", "hard", "good", "again"]:
        review(session, rating)

    assert session.summary() == {
        "state": "complete",
        "reviewed": 5,
        "streak": 0,
        "best_streak": 2,
    }


def test_transient_error_is_retried_under_one_key():
    gw = FakeGateway(deck=["c1"], failures=[TransientIOError("timeout"), ConflictError("race")])
    session = make_session(gw)
    session.load_queue()

    review(session, "good")

    keys = {c[2] for c in gw.calls}
    assert len(gw.calls) == 3
    assert len(keys) == 1
    assert len(gw.applied) == 1
    assert session.state is SessionState.COMPLETE
    assert session.reviewed == 1


def test_exhausted_retries_do_not_advance():
    gw = FakeGateway(deck=["c1", "c2"], failures=[TransientIOError("down")] * 3)
    session = make_session(gw, max_attempts=3)
    session.load_queue()
    session.reveal()

    with pytest.raises(TransientIOError):
        session.rate("good")

    assert session.state is SessionState.AWAITING_RATING
    assert session.current == "c1"
    assert session.reviewed == 0

    # Retrying the same rating reuses the original idempotency key
    session.rate("good")
    assert len({c[2] for c in gw.calls}) == 1
    assert session.current == "c2"
    assert session.reviewed == 1


def test_changed_rating_after_exhausted_retries_keeps_original_key():
    # First attempt lands on the server but its response is lost
    class LostResponseGateway(FakeGateway):
        def submit_review(self, flashcard_id, rating, idempotency_key, submitted_at):
            if not self.calls:
                self.calls.append((flashcard_id, rating, idempotency_key))
                self.applied[idempotency_key] = (flashcard_id, rating)
                raise TransientIOError("read timed out")
            return super().submit_review(flashcard_id, rating, idempotency_key, submitted_at)

    gw = LostResponseGateway(deck=["c1", "c2"])
    session = make_session(gw, max_attempts=1)
    session.load_queue()
    session.reveal()

    with pytest.raises(TransientIOError):
        session.rate("easy")
    session.rate("again")

    assert len({c[2] for c in gw.calls}) == 1
    assert list(gw.applied.values()) == [("c1", DifficultyRating.EASY)]
    # Counters follow the rating that was actually recorded
    assert session.summary()["streak"] == 1
    assert session.current == "c2"


def test_unexpected_gateway_error_allows_retry():
    gw = FakeGateway(deck=["c1"], failures=[RuntimeError("connection reset mid-body")])
    session = make_session(gw)
    session.load_queue()
    session.reveal()

    with pytest.raises(RuntimeError):
        session.rate("good")

    assert session.state is SessionState.AWAITING_RATING
    assert isinstance(session.last_error, RuntimeError)

    session.rate("good")
    assert len({c[2] for c in gw.calls}) == 1
    assert session.state is SessionState.COMPLETE
    assert session.reviewed == 1


@pytest.mark.parametrize("error", [ValidationError("bad"), NotFoundError("gone")])
def test_terminal_errors_halt_session(error):
    gw = FakeGateway(deck=["c1", "c2"], failures=[error])
    session = make_session(gw)
    session.load_queue()
    session.reveal()

    with pytest.raises(type(error)):
        session.rate("good")

    assert len(gw.calls) == 1
    assert session.state is SessionState.FAILED
    assert session.last_error is error
    with pytest.raises(SessionStateError):
        session.reveal()


def test_invalid_rating_halts_without_submitting():
    gw = FakeGateway(deck=["c1"])
    session = make_session(gw)
    session.load_queue()
    session.reveal()

    with pytest.raises(ValidationError):
        session.rate("perfect")

    assert gw.calls == []
    assert session.state is SessionState.FAILED


def test_session_does_not_represent_submitted_cards():
    gw = FakeGateway(due=["c1", "c2", "c1", "c3"])
    session = make_session(gw, due_queue())
    session.load_queue()

    seen = []
    while session.state is SessionState.PRESENTING:
        seen.append(session.current)
        review(session, "again")

    assert seen == ["c1", "c2", "c3"]


def test_abandon_leaves_presented_card_untouched():
    gw = FakeGateway(deck=["c1", "c2"])
    session = make_session(gw)
    session.load_queue()
    review(session, "good")
    session.reveal()

    session.abandon()

    assert session.state is SessionState.ABANDONED
    assert [c[0] for c in gw.calls] == ["c1"]
    with pytest.raises(SessionStateError):
        session.rate("good")


def test_load_queue_retries_transient_failures():
    class FlakyQueue:
        def __init__(self):
            self.attempts = 0

        def __call__(self, gateway):
            self.attempts += 1
            if self.attempts == 1:
                raise TransientIOError("timeout")
            return ["c1"]

    source = FlakyQueue()
    session = make_session(FakeGateway(), source)

    assert session.load_queue() == "c1"
    assert source.attempts == 2


@pytest.mark.django_db
def test_local_gateway_session_over_deck(learner, cards):
    session = ReviewSession(LocalReviewGateway(learner.id), deck_queue(cards[0].deck_id), wait=wait_none())
    session.load_queue()

    ratings = [DifficultyRating.GOOD, DifficultyRating.AGAIN, DifficultyRating.EASY]
    results = [review(session, rating) for rating in ratings]

    assert session.state is SessionState.COMPLETE
    assert [r["interval_days"] for r in results] == [1, 0, 4]
    assert CardReview.objects.filter(learner=learner).count() == 3
    assert ReviewLog.objects.filter(learner=learner).count() == 3


@pytest.mark.django_db
def test_local_gateway_due_queue_skips_scheduled_cards(learner, cards):
    gateway = LocalReviewGateway(learner.id)
    first = ReviewSession(gateway, due_queue(deck_id=cards[0].deck_id), wait=wait_none())
    first.load_queue()
    review(first, "easy")
    first.abandon()

    second = ReviewSession(gateway, due_queue(deck_id=cards[0].deck_id), wait=wait_none())
    second.load_queue()

    assert second.current == str(cards[1].id)
    assert second.remaining == 1
    assert CardReview.objects.filter(learner=learner).count() == 1


@pytest.mark.django_db
def test_lost_response_then_new_rating_applies_once(learner, cards):
    class LostResponseGateway(LocalReviewGateway):
        lost = 0

        def submit_review(self, *args):
            result = super().submit_review(*args)
            if not self.lost:
                self.lost += 1
                raise TransientIOError("read timed out")
            return result

    session = ReviewSession(
        LostResponseGateway(learner.id), deck_queue(cards[0].deck_id), max_attempts=1, wait=wait_none()
    )
    session.load_queue()
    session.reveal()

    with pytest.raises(TransientIOError):
        session.rate("easy")
    result = session.rate("again")

    review = CardReview.objects.get(learner=learner, flashcard=cards[0])
    assert review.review_count == 1
    assert review.difficulty_rating == "easy"
    assert result["idempotent"] is True
    assert ReviewLog.objects.filter(learner=learner).count() == 1


@pytest.mark.django_db
def test_local_gateway_deck_in_position_order(learner, cards):
    cards[0].position = 9
    cards[0].save()

    ids = LocalReviewGateway(learner.id).deck_flashcards(cards[0].deck_id)

    assert ids == [str(cards[1].id), str(cards[2].id), str(cards[0].id)]
