import json
import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import ChildProfile
from catalog.models import Deck, Flashcard

User = get_user_model()


class Command(BaseCommand):
    help = "Replace parents, child profiles, decks and flashcards with demo data"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file", default="demo_data.json", help="JSON file name to load data from"
        )

    def handle(self, *args, **options):
        file_name = options.get("file", "demo_data.json")
        json_file_path = os.path.join(os.path.dirname(__file__), file_name)

        try:
            with open(json_file_path) as json_file:
                data = json.load(json_file)
        except (OSError, json.JSONDecodeError) as e:
            raise CommandError(f"Error loading data: {e}") from e

        with transaction.atomic():
            # Cascades to child profiles, card reviews and review logs
            User.objects.all().delete()
            Deck.objects.all().delete()
            self.stdout.write(self.style.SUCCESS("All existing demo data has been deleted"))

            for parent in data.get("parents", []):
                user = User.objects.create_user(
                    parent["username"],
                    email=parent.get("email", ""),
                    password=parent.get("password", "testpassword"),
                )
                for child in parent.get("children", []):
                    ChildProfile.objects.create(
                        parent=user,
                        name=child["name"],
                        age_range=child.get("age_range", ""),
                        avatar=child.get("avatar"),
                        daily_goal_minutes=child.get("daily_goal_minutes", 15),
                    )

            for deck_data in data.get("decks", []):
                deck = Deck.objects.create(
                    name=deck_data["name"],
                    difficulty=deck_data.get("difficulty", "medium"),
                    tags=deck_data.get("tags", []),
                    is_published=deck_data.get("is_published", True),
                    subject_id=deck_data.get("subject_id"),
                )
                Flashcard.objects.bulk_create(
                    Flashcard(
                        deck=deck,
                        front_text=card["front"],
                        back_text=card["back"],
                        position=position,
                    )
                    for position, card in enumerate(deck_data.get("cards", []), start=1)
                )

        self.stdout.write(
            self.style.SUCCESS(
                f"Demo data loaded from {file_name}: "
                f"{ChildProfile.objects.count()} child profiles, "
                f"{Deck.objects.count()} decks, {Flashcard.objects.count()} flashcards"
            )
        )
