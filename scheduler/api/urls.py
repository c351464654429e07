from django.urls import path
from .views import CardReviewView, ReviewPreviewView, ReviewQueueView

urlpatterns = [
    path("card_reviews", CardReviewView.as_view(), name="card-reviews"),
    path("review_queue", ReviewQueueView.as_view(), name="review-queue"),
    path(
        "flashcards/<uuid:flashcard_id>/review_preview",
        ReviewPreviewView.as_view(),
        name="review-preview",
    ),
]
