import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import ChildProfile
from catalog.models import Deck, Flashcard

User = get_user_model()


@pytest.fixture
def parent(db):
    return User.objects.create_user(username="parent", password="testpassword")


@pytest.fixture
def learner(parent):
    return ChildProfile.objects.create(parent=parent, name="Mia", age_range="6-8")


@pytest.fixture
def other_learner(parent):
    return ChildProfile.objects.create(parent=parent, name="Leo", age_range="9-11")


@pytest.fixture
def deck(db):
    return Deck.objects.create(name="Animal Sounds", is_published=True)


@pytest.fixture
def cards(deck):
    """Three flashcards of ``deck`` in position order."""
    return [
        Flashcard.objects.create(deck=deck, front_text=front, back_text=back, position=position)
        for position, (front, back) in enumerate(
            [("Cow?", "Moo"), ("Duck?", "Quack"), ("Cat?", "Meow")], start=1
        )
    ]


@pytest.fixture
def now():
    return timezone.now().replace(microsecond=0)


@pytest.fixture
def api_client(learner):
    """API client with the learner selected, as the web client sends it."""
    client = APIClient()
    client.credentials(HTTP_X_CHILD_PROFILE_ID=str(learner.id))
    return client
