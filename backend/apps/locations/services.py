# apps/locations/services.py
import logging

from django.db import transaction

from apps.utils.exceptions import DuplicateLocation, HasDependents, RecordNotFound
from .models import Location

logger = logging.getLogger(__name__)


class LocationService:
    EARTH_RADIUS_KM = 6371
    ADDRESS_PARTS = ("address", "locality", "city", "country")

    @staticmethod
    def full_address(location) -> str:
        """
        Comma-joined non-empty parts of address, locality, city and country.
        """
        parts = (getattr(location, field, None) for field in LocationService.ADDRESS_PARTS)
        return ", ".join(part for part in parts if part)

    @staticmethod
    def get_location(location_id) -> Location:
        try:
            return Location.objects.get(pk=location_id)
        except (Location.DoesNotExist, ValueError, TypeError):
            raise RecordNotFound("Location")

    @staticmethod
    def get_owned_location(user, location_id):
        """
        Returns the user's location with this id, or None.
        """
        return Location.objects.for_user(user).filter(pk=location_id).first()

    @staticmethod
    def find_duplicate(latitude, longitude, exclude_id=None):
        qs = Location.objects.filter(latitude=latitude, longitude=longitude)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.first()

    @staticmethod
    @transaction.atomic
    def create_location(user, data: dict) -> Location:
        existing = LocationService.find_duplicate(data["latitude"], data["longitude"])
        if existing:
            raise DuplicateLocation(existing)

        location = Location.objects.create(user=user, **data)
        logger.info(
            "Location created",
            extra={"metadata": {"location_id": location.id, "user_id": user.id}},
        )
        return location

    @staticmethod
    @transaction.atomic
    def update_location(location: Location, data: dict) -> Location:
        if "latitude" in data or "longitude" in data:
            existing = LocationService.find_duplicate(
                data.get("latitude", location.latitude),
                data.get("longitude", location.longitude),
                exclude_id=location.pk,
            )
            if existing:
                raise DuplicateLocation(existing)

        for field, value in data.items():
            setattr(location, field, value)
        location.save()
        return location

    @staticmethod
    @transaction.atomic
    def delete_location(location: Location) -> None:
        dependents = location.outages.count()
        if dependents:
            raise HasDependents(count=dependents)

        location_id = location.pk
        location.delete()
        logger.info("Location deleted", extra={"metadata": {"location_id": location_id}})
