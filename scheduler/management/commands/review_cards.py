from django.core.management.base import BaseCommand, CommandError

from catalog.models import Flashcard
from scheduler.client.gateways import LocalReviewGateway
from scheduler.client.session import ReviewSession, SessionState, deck_queue, due_queue
from scheduler.domain.enums import DifficultyRating
from scheduler.domain.errors import ReviewError

PROMPT = "Rate [a]gain/[h]ard/[g]ood/[e]asy, [q]uit: "
SHORTCUTS = {r.value[0]: r for r in DifficultyRating}


class Command(BaseCommand):
    help = "Review flashcards for a child profile from the terminal"

    def add_arguments(self, parser):
        parser.add_argument("--child", required=True, help="Child profile id")
        parser.add_argument("--deck", help="Deck id")
        parser.add_argument("--subject", help="Subject id")
        parser.add_argument(
            "--whole-deck",
            action="store_true",
            help="Review every card of --deck instead of only the due ones",
        )

    def handle(self, *args, **options):
        if options["whole_deck"] and not options["deck"]:
            raise CommandError("--whole-deck needs --deck")

        if options["whole_deck"]:
            source = deck_queue(options["deck"])
        else:
            source = due_queue(deck_id=options["deck"], subject_id=options["subject"])
        session = ReviewSession(LocalReviewGateway(options["child"]), source)

        try:
            session.load_queue()
            while session.state is SessionState.PRESENTING:
                card = Flashcard.objects.get(pk=session.current)
                self.stdout.write(f"\nQ: {card.front_text}")
                input("(press Enter to reveal) ")
                session.reveal()
                self.stdout.write(f"A: {card.back_text}")

                rating = self._ask_rating()
                if rating is None:
                    session.abandon()
                    break
                result = session.rate(rating)
                self.stdout.write(f"next review in {result['interval_days']} day(s)")
        except ReviewError as e:
            raise CommandError(f"Review stopped: {e}") from e

        summary = session.summary()
        self.stdout.write(
            self.style.SUCCESS(
                f"Session {summary['state']}: reviewed {summary['reviewed']} cards, "
                f"best streak {summary['best_streak']}"
            )
        )

    def _ask_rating(self):
        while True:
            answer = input(PROMPT).strip().lower()[:1]
            if answer == "q":
                return None
            if answer in SHORTCUTS:
                return SHORTCUTS[answer]
            self.stdout.write("Please answer a, h, g, e or q.")
