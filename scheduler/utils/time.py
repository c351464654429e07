from datetime import datetime, timezone as dt_tz

from django.utils import timezone


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, dt_tz.utc)
    return dt


def to_local_iso(dt_utc: datetime) -> str:
    # settings.TIME_ZONE
    return timezone.localtime(dt_utc).isoformat()


def overdue_days(next_review_at: datetime, now: datetime) -> int:
    """Whole days ``now`` is past the due date; 0 when not yet due."""
    return max((now - next_review_at).days, 0)
