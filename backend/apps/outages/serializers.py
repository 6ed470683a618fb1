# apps/outages/serializers.py
from django.utils import timezone
from rest_framework import serializers

from apps.locations.serializers import LocationSummarySerializer
from .derived import duration_minutes, outage_status
from .models import Outage


class OutageSerializer(serializers.ModelSerializer):
    duration = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    location = LocationSummarySerializer(read_only=True, allow_null=True)
    weather = serializers.SerializerMethodField()

    class Meta:
        model = Outage
        fields = (
            "id",
            "user_id",
            "start_time",
            "end_time",
            "duration",
            "status",
            "location",
            "weather",
            "day_of_week",
            "is_holiday",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_duration(self, obj) -> int:
        return duration_minutes(obj, now=self.context.get("now"))

    def get_status(self, obj) -> str:
        return outage_status(obj)

    def get_weather(self, obj) -> dict:
        return {
            "condition": obj.weather_condition,
            "temperature": obj.temperature,
            "wind_speed": obj.wind_speed,
            "precipitation": obj.precipitation,
            "humidity": obj.humidity,
            "pressure": obj.pressure,
            "cloud": obj.cloud,
        }


class OutageWriteSerializer(serializers.Serializer):
    """
    Input for create (full) and update (partial).
    Weather fields and day_of_week are derived server-side and never read from input.
    """
    start_time = serializers.DateTimeField(
        error_messages={"required": "Please specify when the outage started."},
    )
    end_time = serializers.DateTimeField(required=False, allow_null=True)
    location_id = serializers.IntegerField(
        min_value=1,
        error_messages={"required": "A location is required to fetch weather data."},
    )
    is_holiday = serializers.BooleanField()

    def validate_start_time(self, value):
        if value > timezone.now():
            raise serializers.ValidationError("The start time cannot be in the future.")
        return value

    def validate_end_time(self, value):
        if value is None and self.instance is not None:
            raise serializers.ValidationError("The end time of an outage cannot be cleared.")
        return value

    def validate(self, attrs):
        if self.instance is None:
            start, end = attrs.get("start_time"), attrs.get("end_time")
            if start and end and end <= start:
                raise serializers.ValidationError({"end_time": "The end time must be after the start time."})
        return attrs


class EndOutageSerializer(serializers.Serializer):
    end_time = serializers.DateTimeField()
