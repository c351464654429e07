import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Deck",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("difficulty", models.CharField(default="medium", max_length=20)),
                (
                    "deck_type",
                    models.CharField(
                        choices=[("flashcards", "Flashcards"), ("quiz", "Quiz"), ("exam", "Exam")],
                        default="flashcards",
                        max_length=20,
                    ),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("is_published", models.BooleanField(default=False)),
                ("subject_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="Flashcard",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("front_text", models.TextField()),
                ("back_text", models.TextField()),
                ("front_image_url", models.URLField(blank=True, null=True)),
                ("back_image_url", models.URLField(blank=True, null=True)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "deck",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="flashcards",
                        to="catalog.deck",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
                "indexes": [models.Index(fields=["deck", "position"], name="catalog_flashcard_deck_pos_idx")],
            },
        ),
    ]
