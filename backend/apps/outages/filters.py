# apps/outages/filters.py
import django_filters
from django import forms
from django.core.exceptions import ValidationError
from django.db.models import Q

from .derived import COMPLETED, ONGOING, STATUS_CHOICES
from .models import Outage


class FlagField(forms.Field):
    """
    Accepts 1/0, true/false, yes/no and on/off (case-insensitive).
    """
    TRUE_VALUES = {"1", "true", "yes", "on"}
    FALSE_VALUES = {"0", "false", "no", "off"}

    def to_python(self, value):
        if value in self.empty_values:
            return None
        text = str(value).strip().lower()
        if text in self.TRUE_VALUES:
            return True
        if text in self.FALSE_VALUES:
            return False
        raise ValidationError("Enter a boolean: true/false, 1/0, yes/no or on/off.", code="invalid")


class FlagFilter(django_filters.Filter):
    field_class = FlagField


class WholeNumberFilter(django_filters.NumberFilter):
    field_class = forms.IntegerField


class OutageFilter(django_filters.FilterSet):
    """
    Every filter is optional and ANDed with the others.
    Duration bounds are applied together against the per-row duration
    (end_time, or now for ongoing outages).
    """
    start_date = django_filters.DateTimeFilter(field_name="start_time", lookup_expr="gte")
    end_date = django_filters.DateTimeFilter(method="filter_end_date")

    duration_min = WholeNumberFilter(method="filter_duration", min_value=0)
    duration_max = WholeNumberFilter(method="filter_duration", min_value=0)

    status = django_filters.ChoiceFilter(choices=STATUS_CHOICES, method="filter_status")
    weather_condition = django_filters.CharFilter(field_name="weather_condition")

    temperature_min = django_filters.NumberFilter(field_name="temperature", lookup_expr="gte")
    temperature_max = django_filters.NumberFilter(field_name="temperature", lookup_expr="lte")
    wind_speed_min = django_filters.NumberFilter(field_name="wind_speed", lookup_expr="gte")

    is_holiday = FlagFilter(field_name="is_holiday")
    day_of_week = django_filters.NumberFilter(field_name="day_of_week", min_value=0, max_value=6)
    location_id = django_filters.NumberFilter(field_name="location_id")

    class Meta:
        model = Outage
        fields = []

    def filter_end_date(self, queryset, name, value):
        return queryset.filter(Q(end_time__lte=value) | Q(end_time__isnull=True))

    def filter_status(self, queryset, name, value):
        if value == ONGOING:
            return queryset.ongoing()
        if value == COMPLETED:
            return queryset.completed()
        return queryset

    def filter_duration(self, queryset, name, value):
        # Applied once in filter_queryset, where both bounds are known
        return queryset

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        data = self.form.cleaned_data
        low, high = data.get("duration_min"), data.get("duration_max")
        if low is not None or high is not None:
            queryset = queryset.duration_between(low, high)
        return queryset
