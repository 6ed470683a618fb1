# apps/outages/services.py
import logging

from django.db import transaction

from apps.locations.services import LocationService
from apps.utils.exceptions import (
    AlreadyEnded,
    InvalidEndTime,
    LocationNotFound,
    RecordNotFound,
    WeatherServiceException,
)
from apps.weather.services import WeatherService, WeatherUnavailable
from .derived import derive_day_of_week
from .models import Outage

logger = logging.getLogger(__name__)


class OutageService:
    """
    Enrichment workflow: resolve location -> fetch weather -> merge -> persist.
    Nothing is written unless the weather fetch succeeded.
    """

    @staticmethod
    def get_outage(outage_id) -> Outage:
        try:
            return Outage.objects.select_related("location").get(pk=outage_id)
        except (Outage.DoesNotExist, ValueError, TypeError):
            raise RecordNotFound("Outage")

    @staticmethod
    def resolve_location(user, location_id):
        location = LocationService.get_owned_location(user, location_id)
        if location is None:
            raise LocationNotFound(location_id)
        return location

    @staticmethod
    def fetch_weather(location) -> dict:
        result = WeatherService().get_current_weather(location.latitude, location.longitude)
        if isinstance(result, WeatherUnavailable):
            raise WeatherServiceException(result.coordinates)
        return result.as_outage_fields()

    @staticmethod
    def create_outage(user, data: dict) -> Outage:
        data = dict(data)
        location = OutageService.resolve_location(user, data.pop("location_id"))
        weather = OutageService.fetch_weather(location)

        outage = Outage(user=user, location=location, **data, **weather)
        outage.day_of_week = derive_day_of_week(outage.start_time)

        with transaction.atomic():
            outage.save()

        logger.info(
            "Outage created",
            extra={"metadata": {
                "outage_id": outage.id,
                "user_id": user.id,
                "location_id": location.id,
                "ongoing": outage.end_time is None,
            }},
        )
        return outage

    @staticmethod
    def update_outage(outage: Outage, data: dict) -> Outage:
        """
        Partial update. Weather is re-fetched when the location or the start
        time changes; a failed fetch leaves the stored outage untouched.
        """
        changes = dict(data)
        location = outage.location
        refetch = False

        if "location_id" in changes:
            location_id = changes.pop("location_id")
            if location_id != outage.location_id:
                location = OutageService.resolve_location(outage.user, location_id)
                refetch = True

        if "start_time" in changes and changes["start_time"] != outage.start_time:
            refetch = True

        start_time = changes.get("start_time", outage.start_time)
        end_time = changes.get("end_time", outage.end_time)
        if end_time is not None and end_time < start_time:
            raise InvalidEndTime()

        weather = {}
        if refetch and location is not None:
            weather = OutageService.fetch_weather(location)

        for field, value in {**changes, **weather}.items():
            setattr(outage, field, value)
        outage.location = location
        if "start_time" in changes:
            outage.day_of_week = derive_day_of_week(outage.start_time)

        with transaction.atomic():
            outage.save()

        logger.info(
            "Outage updated",
            extra={"metadata": {
                "outage_id": outage.id,
                "fields": sorted(changes),
                "weather_refreshed": bool(weather),
            }},
        )
        return outage

    @staticmethod
    @transaction.atomic
    def end_outage(outage: Outage, end_time) -> Outage:
        """
        The only sanctioned Ongoing -> Completed transition besides update.
        """
        outage = Outage.objects.select_for_update().get(pk=outage.pk)

        if outage.end_time is not None:
            raise AlreadyEnded()
        if end_time < outage.start_time:
            raise InvalidEndTime()

        outage.end_time = end_time
        outage.save(update_fields=["end_time", "updated_at"])
        logger.info("Outage ended", extra={"metadata": {"outage_id": outage.id}})
        return outage

    @staticmethod
    @transaction.atomic
    def delete_outage(outage: Outage) -> None:
        outage_id = outage.pk
        outage.delete()
        logger.info("Outage deleted", extra={"metadata": {"outage_id": outage_id}})
