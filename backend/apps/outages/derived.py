# apps/outages/derived.py
from typing import Optional

from django.utils import timezone

ONGOING = "ongoing"
COMPLETED = "completed"

STATUS_CHOICES = (
    (ONGOING, "Ongoing"),
    (COMPLETED, "Completed"),
)


def derive_day_of_week(start_time) -> int:
    """
    0 = Sunday ... 6 = Saturday, in the configured time zone (UTC by default),
    not the offset the client sent: 2024-01-07T23:30-05:00 is a Monday.
    """
    if timezone.is_aware(start_time):
        start_time = timezone.localtime(start_time)
    return start_time.isoweekday() % 7


def outage_status(outage) -> str:
    return ONGOING if outage.end_time is None else COMPLETED


def duration_minutes(outage, now=None) -> Optional[int]:
    """
    Whole minutes from start_time to end_time, or to `now` while ongoing.
    """
    if outage.start_time is None:
        return None
    end = outage.end_time or now or timezone.now()
    return max(0, int((end - outage.start_time).total_seconds() // 60))
