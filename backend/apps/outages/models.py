# apps/outages/models.py
from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import DateTimeField, DurationField, ExpressionWrapper, F, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class OutageQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)

    def ongoing(self):
        return self.filter(end_time__isnull=True)

    def completed(self):
        return self.filter(end_time__isnull=False)

    def with_duration(self, now=None):
        """
        Annotates `duration`: end_time - start_time, or now - start_time while ongoing.
        """
        now = now or timezone.now()
        return self.annotate(
            duration=ExpressionWrapper(
                Coalesce(F("end_time"), Value(now, output_field=DateTimeField())) - F("start_time"),
                output_field=DurationField(),
            )
        )

    def duration_between(self, min_minutes=None, max_minutes=None, now=None):
        """
        Bounds are whole minutes, inclusive, matching the truncated minute count
        reported for each outage: floor(d) <= max  <=>  d < max + 1.
        """
        qs = self if "duration" in self.query.annotations else self.with_duration(now)
        if min_minutes is not None:
            qs = qs.filter(duration__gte=timedelta(minutes=int(min_minutes)))
        if max_minutes is not None:
            qs = qs.filter(duration__lt=timedelta(minutes=int(max_minutes) + 1))
        return qs


class Outage(models.Model):
    """
    A power outage at a Location, with the weather observed when it was logged.
    `end_time` is null while the outage is ongoing.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="outages",
    )
    location = models.ForeignKey(
        "locations.Location",
        on_delete=models.PROTECT,
        related_name="outages",
        null=True,
        blank=True,
    )

    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(null=True, blank=True, db_index=True)

    # Weather snapshot, written by OutageService only
    weather_condition = models.CharField(max_length=255, db_index=True)
    temperature = models.FloatField(help_text="Celsius")
    wind_speed = models.FloatField(help_text="km/h")
    precipitation = models.FloatField(help_text="mm")
    humidity = models.IntegerField(null=True, blank=True, help_text="%")
    pressure = models.FloatField(null=True, blank=True, help_text="mb")
    cloud = models.IntegerField(null=True, blank=True, help_text="% cover")

    # 0 = Sunday ... 6 = Saturday
    day_of_week = models.PositiveSmallIntegerField(
        db_index=True,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    is_holiday = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OutageQuerySet.as_manager()

    def __str__(self):
        return f"Outage #{self.pk} @ {self.start_time:%Y-%m-%d %H:%M}"
