from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import views, status
from rest_framework.response import Response
import structlog
import uuid

from accounts.permissions import learner_required
from catalog.models import Flashcard
from ..data.models import CardReview
from ..data.repos import reviews_for_learner
from ..domain.logic import ReviewState, preview_intervals
from ..services.queue import count_due, due_queue
from ..services.reviews import submit_review
from .serializers import (
    CardReviewQuerySerializer,
    CardReviewSerializer,
    QueueQuerySerializer,
    ReviewInSerializer,
    recorded_review_data,
)

base_logger = structlog.get_logger()


class CardReviewView(views.APIView):
    @learner_required
    def post(self, request):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        flashcard_id = s.validated_data["flashcard_id"]
        rating = s.validated_data["difficulty_rating"]
        idem = (s.validated_data.get("idempotency_key")
                or request.headers.get("Idempotency-Key"))

        recorded = submit_review(
            request.learner.id,
            flashcard_id,
            rating,
            now=s.validated_data.get("submitted_at"),
            idempotency_key=idem,
        )
        status_code = status.HTTP_200_OK if recorded.replayed else status.HTTP_201_CREATED

        logger.info(
            "card_review_api_response",
            learner_id=str(request.learner.id),
            flashcard_id=str(flashcard_id),
            rating=rating,
            idempotent=recorded.replayed,
            interval_days=recorded.state.interval_days,
            next_review_utc=recorded.state.next_review_at.isoformat(),
            status=status_code,
        )

        return Response(recorded_review_data(recorded), status=status_code)

    @learner_required
    def get(self, request):
        qs = CardReviewQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)

        reviews = reviews_for_learner(request.learner.id, qs.validated_data.get("deck_id"))
        return Response({"card_reviews": CardReviewSerializer(reviews, many=True).data})


class ReviewQueueView(views.APIView):
    @learner_required
    def get(self, request):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = QueueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        filters = {
            "deck_id": qs.validated_data.get("deck_id"),
            "subject_id": qs.validated_data.get("subject_id"),
        }

        now = timezone.now()
        card_ids = due_queue(request.learner.id, now=now, limit=qs.validated_data.get("limit"), **filters)
        total = count_due(request.learner.id, now=now, **filters)

        logger.info(
            "review_queue_api_response",
            learner_id=str(request.learner.id),
            card_count=len(card_ids),
            due_count=total,
        )

        return Response(
            {
                "as_of": now.isoformat(),
                "flashcard_ids": card_ids,
                "due_count": total,
            }
        )


class ReviewPreviewView(views.APIView):
    @learner_required
    def get(self, request, flashcard_id):
        flashcard = get_object_or_404(Flashcard, pk=flashcard_id)
        review = CardReview.objects.filter(learner=request.learner, flashcard=flashcard).first()
        state = review.to_state() if review else ReviewState.fresh(timezone.now())

        return Response(
            {
                "flashcard_id": str(flashcard.id),
                "review_count": state.review_count,
                "ratings": preview_intervals(state),
            }
        )
