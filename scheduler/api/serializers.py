from rest_framework import serializers

from ..domain.enums import DifficultyRating
from ..utils.time import to_local_iso


class ReviewInSerializer(serializers.Serializer):
    flashcard_id = serializers.UUIDField()
    difficulty_rating = serializers.ChoiceField(choices=[r.value for r in DifficultyRating])
    idempotency_key = serializers.CharField(max_length=128, required=False)
    submitted_at = serializers.DateTimeField(required=False)  # ISO-8601


class QueueQuerySerializer(serializers.Serializer):
    deck_id = serializers.UUIDField(required=False)
    subject_id = serializers.UUIDField(required=False)
    limit = serializers.IntegerField(min_value=1, max_value=500, required=False)


class CardReviewQuerySerializer(serializers.Serializer):
    deck_id = serializers.UUIDField(required=False)


def recorded_review_data(recorded):
    """Response body for a submitted (or replayed) review."""
    state = recorded.state
    return {
        "id": recorded.review_id,
        "flashcard_id": recorded.flashcard_id,
        "difficulty_rating": recorded.difficulty_rating.value,
        "interval_days": state.interval_days,
        "ease_factor": state.ease_factor,
        "review_count": state.review_count,
        "next_review_at": state.next_review_at.isoformat(),
        "next_review_local": to_local_iso(state.next_review_at),
        "idempotent": recorded.replayed,
    }


class CardReviewSerializer(serializers.Serializer):
    id = serializers.CharField()
    flashcard_id = serializers.CharField()
    difficulty_rating = serializers.CharField()
    interval_days = serializers.IntegerField()
    ease_factor = serializers.FloatField()
    review_count = serializers.IntegerField()
    next_review_at = serializers.DateTimeField()
