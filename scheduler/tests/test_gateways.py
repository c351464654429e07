import pytest
from datetime import datetime, timezone

import requests

from scheduler.client.gateways import HttpReviewGateway, error_for_status
from scheduler.domain.enums import DifficultyRating
from scheduler.domain.errors import (
    ConflictError,
    NotFoundError,
    ReviewError,
    TransientIOError,
    ValidationError,
)

# Helpers

class StubResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class StubSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_gateway(*responses):
    session = StubSession(responses)
    return HttpReviewGateway("http://api.test/api/v1/", "child-1", session=session), session


# Tests

def test_sets_child_profile_header():
    gateway, session = make_gateway()

    assert session.headers["X-Child-Profile-Id"] == "child-1"
    assert gateway.base_url == "http://api.test/api/v1"


def test_deck_flashcards_unwraps_resources():
    body = {"data": [{"id": "c1", "type": "flashcard", "attributes": {}}, {"id": "c2"}]}
    gateway, session = make_gateway(StubResponse(200, body))

    assert gateway.deck_flashcards("d1") == ["c1", "c2"]
    assert session.requests[0][1] == "http://api.test/api/v1/decks/d1/flashcards"


def test_due_flashcards_passes_filters():
    gateway, session = make_gateway(StubResponse(200, {"flashcard_ids": ["c3"]}))

    assert gateway.due_flashcards(deck_id="d1") == ["c3"]
    assert session.requests[0][2]["params"] == {"deck_id": "d1"}


def test_submit_review_payload():
    submitted = datetime(2026, 3, 1, tzinfo=timezone.utc)
    gateway, session = make_gateway(StubResponse(201, {"interval_days": 1}))

    result = gateway.submit_review("c1", DifficultyRating.GOOD, "c1:key", submitted)

    assert result == {"interval_days": 1}
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "http://api.test/api/v1/card_reviews")
    assert kwargs["json"] == {
        "flashcard_id": "c1",
        "difficulty_rating": "good",
        "idempotency_key": "c1:key",
        "submitted_at": submitted.isoformat(),
    }


@pytest.mark.parametrize(
    "status_code, error",
    [
        (400, ValidationError),
        (401, NotFoundError),
        (404, NotFoundError),
        (409, ConflictError),
        (429, TransientIOError),
        (503, TransientIOError),
        (418, ReviewError),
    ],
)
def test_error_for_status(status_code, error):
    exc = error_for_status(status_code, {"error": "x", "detail": "boom"})

    assert type(exc) is error
    assert "boom" in str(exc)


def test_http_errors_raise_taxonomy():
    gateway, _ = make_gateway(StubResponse(409, {"error": "conflict", "detail": "race"}))

    with pytest.raises(ConflictError):
        gateway.submit_review("c1", DifficultyRating.HARD, "k", datetime.now(timezone.utc))


def test_non_json_error_body():
    gateway, _ = make_gateway(StubResponse(502, ValueError("not json")))

    with pytest.raises(TransientIOError):
        gateway.deck_flashcards("d1")


@pytest.mark.parametrize("exc", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_network_failures_are_transient(exc):
    gateway, _ = make_gateway(exc)

    with pytest.raises(TransientIOError):
        gateway.due_flashcards()


@pytest.mark.parametrize(
    "exc",
    [requests.exceptions.ChunkedEncodingError("cut"), requests.exceptions.ContentDecodingError("gz")],
)
def test_broken_transfers_are_transient(exc):
    gateway, _ = make_gateway(exc)

    with pytest.raises(TransientIOError):
        gateway.submit_review("c1", DifficultyRating.GOOD, "k", datetime.now(timezone.utc))


def test_unreadable_success_body_is_transient():
    gateway, _ = make_gateway(StubResponse(201, ValueError("Expecting value")))

    with pytest.raises(TransientIOError):
        gateway.submit_review("c1", DifficultyRating.GOOD, "k", datetime.now(timezone.utc))
