import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

RATING_CHOICES = [("again", "Again"), ("hard", "Hard"), ("good", "Good"), ("easy", "Easy")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CardReview",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("difficulty_rating", models.CharField(choices=RATING_CHOICES, max_length=10)),
                ("interval_days", models.PositiveIntegerField(default=0)),
                ("ease_factor", models.FloatField(default=2.5)),
                ("review_count", models.PositiveIntegerField(default=0)),
                ("next_review_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "flashcard",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="card_reviews",
                        to="catalog.flashcard",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="card_reviews",
                        to="accounts.childprofile",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["learner", "next_review_at"], name="card_review_learner_due_idx"),
                ],
                "unique_together": {("learner", "flashcard")},
            },
        ),
        migrations.CreateModel(
            name="ReviewLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("difficulty_rating", models.CharField(choices=RATING_CHOICES, max_length=10)),
                ("idempotency_key", models.CharField(max_length=128)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("interval_days", models.PositiveIntegerField()),
                ("ease_factor", models.FloatField()),
                ("review_count", models.PositiveIntegerField()),
                ("next_review_at", models.DateTimeField()),
                (
                    "card_review",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="scheduler.cardreview",
                    ),
                ),
                (
                    "flashcard",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="review_logs",
                        to="catalog.flashcard",
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="review_logs",
                        to="accounts.childprofile",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["learner", "flashcard", "created_at"], name="review_log_history_idx"),
                ],
                "unique_together": {("learner", "flashcard", "idempotency_key")},
            },
        ),
    ]
