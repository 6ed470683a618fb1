# apps/locations/serializers.py
from rest_framework import serializers

from .models import Location
from .services import LocationService


class LocationSerializer(serializers.ModelSerializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    full_address = serializers.SerializerMethodField()
    distance = serializers.SerializerMethodField()

    class Meta:
        model = Location
        fields = (
            "id",
            "user_id",
            "name",
            "address",
            "locality",
            "city",
            "country",
            "latitude",
            "longitude",
            "full_address",
            "distance",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "user_id", "created_at", "updated_at")
        extra_kwargs = {
            "locality": {"allow_blank": True},
            "city": {"allow_blank": True},
            "country": {"allow_blank": True},
        }

    def get_full_address(self, obj) -> str:
        return LocationService.full_address(obj)

    def get_distance(self, obj):
        distance = getattr(obj, "distance", None)
        return round(distance, 3) if distance is not None else None


class LocationSummarySerializer(serializers.ModelSerializer):
    """Embedded in outage payloads."""

    class Meta:
        model = Location
        fields = ("id", "name", "address", "locality", "city", "country", "latitude", "longitude")
