import uuid

from django.conf import settings
from django.db import models


class ChildProfile(models.Model):
    """
    A learner. Every card review belongs to exactly one child profile,
    and a child profile belongs to the parent account that manages it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="child_profiles",
    )
    name = models.CharField(max_length=100)
    age_range = models.CharField(max_length=20, blank=True)
    avatar = models.CharField(max_length=100, null=True, blank=True)
    daily_goal_minutes = models.PositiveSmallIntegerField(default=15)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return self.name
