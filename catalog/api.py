from django.shortcuts import get_object_or_404
from django.urls import path
from rest_framework import serializers, views
from rest_framework.response import Response

from .models import Deck, Flashcard


class FlashcardSerializer(serializers.ModelSerializer):
    id = serializers.CharField(read_only=True)

    class Meta:
        model = Flashcard
        fields = [
            "id",
            "front_text",
            "back_text",
            "front_image_url",
            "back_image_url",
            "position",
        ]


def as_resource(resource_type, attributes):
    """Wrap serialized attributes the way the client unpacks them."""
    return {"id": attributes["id"], "type": resource_type, "attributes": attributes}


class DeckFlashcardsView(views.APIView):
    def get(self, request, deck_id):
        deck = get_object_or_404(Deck, pk=deck_id)
        cards = FlashcardSerializer(deck.flashcards.all(), many=True).data
        return Response(
            {
                "data": [as_resource("flashcard", card) for card in cards],
                "meta": {"deck_id": str(deck.id), "count": len(cards)},
            }
        )


urlpatterns = [
    path("decks/<uuid:deck_id>/flashcards", DeckFlashcardsView.as_view(), name="deck-flashcards"),
]
