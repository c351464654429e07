"""Transports used by the review session controller.

``HttpReviewGateway`` talks to the REST API the way the web client does;
``LocalReviewGateway`` calls the services in process (management commands,
tests). Both raise the shared error taxonomy, never transport exceptions.
"""
from typing import Protocol

import requests
import structlog

from ..config import CLIENT_REQUEST_TIMEOUT
from ..domain.errors import (
    ConflictError,
    NotFoundError,
    ReviewError,
    TransientIOError,
    ValidationError,
)

logger = structlog.get_logger()

CHILD_PROFILE_HEADER = "X-Child-Profile-Id"


class ReviewGateway(Protocol):
    def deck_flashcards(self, deck_id) -> list:
        ...

    def due_flashcards(self, deck_id=None, subject_id=None) -> list:
        ...

    def submit_review(self, flashcard_id, rating, idempotency_key, submitted_at) -> dict:
        ...


def error_for_status(status_code, body):
    """Map an HTTP error response back onto the review error taxonomy."""
    detail = body.get("detail") or body.get("error") or str(body)
    if status_code == 400:
        return ValidationError(detail)
    if status_code in (401, 404):
        return NotFoundError(detail)
    if status_code == 409:
        return ConflictError(detail)
    if status_code == 429 or status_code >= 500:
        return TransientIOError(f"HTTP {status_code}: {detail}")
    return ReviewError(f"HTTP {status_code}: {detail}")


class HttpReviewGateway:
    def __init__(self, base_url, child_profile_id, session=None, timeout=CLIENT_REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            CHILD_PROFILE_HEADER: str(child_profile_id),
            "Content-Type": "application/json",
        })

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransientIOError(f"{method} {path} failed: {exc}") from exc

        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {"detail": r.text}
            if not isinstance(body, dict):
                body = {"detail": str(body)}
            logger.info("gateway_error_response", method=method, path=path, status=r.status_code)
            raise error_for_status(r.status_code, body)

        # Truncated or mangled body: the request may still have been applied
        try:
            return r.json()
        except (requests.RequestException, ValueError) as exc:
            raise TransientIOError(f"{method} {path} returned an unreadable body: {exc}") from exc

    def deck_flashcards(self, deck_id):
        data = self._request("GET", f"/decks/{deck_id}/flashcards")
        return [item["id"] for item in data["data"]]

    def due_flashcards(self, deck_id=None, subject_id=None):
        params = {}
        if deck_id is not None:
            params["deck_id"] = str(deck_id)
        if subject_id is not None:
            params["subject_id"] = str(subject_id)
        return self._request("GET", "/review_queue", params=params)["flashcard_ids"]

    def submit_review(self, flashcard_id, rating, idempotency_key, submitted_at):
        payload = {
            "flashcard_id": str(flashcard_id),
            "difficulty_rating": rating.value,
            "idempotency_key": idempotency_key,
            "submitted_at": submitted_at.isoformat(),
        }
        return self._request("POST", "/card_reviews", json=payload)


class LocalReviewGateway:
    def __init__(self, learner_id):
        self.learner_id = learner_id

    def deck_flashcards(self, deck_id):
        from catalog.models import Flashcard

        ids = (Flashcard.objects
               .filter(deck_id=deck_id)
               .order_by("position", "id")
               .values_list("id", flat=True))
        return [str(i) for i in ids]

    def due_flashcards(self, deck_id=None, subject_id=None):
        from ..services.queue import due_queue

        return due_queue(self.learner_id, deck_id=deck_id, subject_id=subject_id)

    def submit_review(self, flashcard_id, rating, idempotency_key, submitted_at):
        from ..api.serializers import recorded_review_data
        from ..services.reviews import submit_review

        recorded = submit_review(
            self.learner_id,
            flashcard_id,
            rating,
            now=submitted_at,
            idempotency_key=idempotency_key,
        )
        return recorded_review_data(recorded)
