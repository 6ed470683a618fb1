# apps/locations/models.py
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

User = settings.AUTH_USER_MODEL


class LocationQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)


class Location(models.Model):
    """
    A place registered by a user, referenced by Outages.
    Coordinates are unique across all locations (checked by LocationService).
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="locations",
    )

    name = models.CharField(max_length=255, db_index=True)
    address = models.CharField(max_length=255)
    locality = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    city = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    country = models.CharField(max_length=255, null=True, blank=True)

    latitude = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LocationQuerySet.as_manager()

    def __str__(self):
        return f"{self.name} ({self.latitude}, {self.longitude})"
