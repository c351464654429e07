import uuid

from django.db import models


class Deck(models.Model):
    DECK_TYPES = [
        ("flashcards", "Flashcards"),
        ("quiz", "Quiz"),
        ("exam", "Exam"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    difficulty = models.CharField(max_length=20, default="medium")
    deck_type = models.CharField(max_length=20, choices=DECK_TYPES, default="flashcards")
    tags = models.JSONField(default=list, blank=True)
    is_published = models.BooleanField(default=False)
    subject_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Flashcard(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    deck = models.ForeignKey(Deck, on_delete=models.CASCADE, related_name="flashcards")
    front_text = models.TextField()
    back_text = models.TextField()
    front_image_url = models.URLField(null=True, blank=True)
    back_image_url = models.URLField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]
        indexes = [
            models.Index(fields=["deck", "position"], name="catalog_flashcard_deck_pos_idx"),
        ]

    def __str__(self):
        return self.front_text[:50]
