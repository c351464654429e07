import uuid

from django.db import models
from django.utils import timezone

from ..config import DEFAULT_EASE_FACTOR
from ..domain.enums import RATING_CHOICES
from ..domain.logic import ReviewState


class CardReview(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    learner = models.ForeignKey(
        "accounts.ChildProfile", on_delete=models.CASCADE, related_name="card_reviews"
    )
    flashcard = models.ForeignKey(
        "catalog.Flashcard", on_delete=models.CASCADE, related_name="card_reviews"
    )
    difficulty_rating = models.CharField(max_length=10, choices=RATING_CHOICES)
    interval_days = models.PositiveIntegerField(default=0)
    ease_factor = models.FloatField(default=DEFAULT_EASE_FACTOR)
    review_count = models.PositiveIntegerField(default=0)
    next_review_at = models.DateTimeField(default=timezone.now)  # UTC
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = (("learner", "flashcard"),)
        indexes = [
            models.Index(fields=["learner", "next_review_at"], name="card_review_learner_due_idx"),
        ]

    def to_state(self) -> ReviewState:
        return ReviewState(
            interval_days=self.interval_days,
            ease_factor=self.ease_factor,
            review_count=self.review_count,
            next_review_at=self.next_review_at,
        )


class ReviewLog(models.Model):
    learner = models.ForeignKey(
        "accounts.ChildProfile", on_delete=models.CASCADE, related_name="review_logs"
    )
    flashcard = models.ForeignKey(
        "catalog.Flashcard", on_delete=models.CASCADE, related_name="review_logs"
    )
    card_review = models.ForeignKey(CardReview, on_delete=models.CASCADE, related_name="logs")
    difficulty_rating = models.CharField(max_length=10, choices=RATING_CHOICES)
    idempotency_key = models.CharField(max_length=128)
    created_at = models.DateTimeField(default=timezone.now)
    # Resulting state, returned verbatim on replay
    interval_days = models.PositiveIntegerField()
    ease_factor = models.FloatField()
    review_count = models.PositiveIntegerField()
    next_review_at = models.DateTimeField()

    class Meta:
        unique_together = (("learner", "flashcard", "idempotency_key"),)
        indexes = [
            models.Index(fields=["learner", "flashcard", "created_at"], name="review_log_history_idx"),
        ]

    def to_state(self) -> ReviewState:
        return ReviewState(
            interval_days=self.interval_days,
            ease_factor=self.ease_factor,
            review_count=self.review_count,
            next_review_at=self.next_review_at,
        )
