# apps/locations/filters.py
import math

import django_filters
from django.db.models import ExpressionWrapper, FloatField, Q, Value
from django.db.models.functions import ACos, Cos, Greatest, Least, Radians, Sin

from .models import Location
from .services import LocationService


def within_radius(queryset, latitude, longitude, radius_km):
    """
    Keeps rows whose great-circle distance (spherical law of cosines) from the
    centre is below `radius_km`, and annotates that distance as `distance`.
    """
    lat_r = math.radians(float(latitude))
    lng_r = math.radians(float(longitude))

    cos_angle = (
        Value(math.cos(lat_r)) * Cos(Radians("latitude")) * Cos(Radians("longitude") - Value(lng_r))
        + Value(math.sin(lat_r)) * Sin(Radians("latitude"))
    )
    # Rounding can push identical points just past 1.0, outside acos' domain
    clamped = Greatest(Value(-1.0), Least(Value(1.0), cos_angle))
    distance = ExpressionWrapper(
        Value(float(LocationService.EARTH_RADIUS_KM)) * ACos(clamped),
        output_field=FloatField(),
    )
    return queryset.annotate(distance=distance).filter(distance__lt=float(radius_km))


class LocationFilter(django_filters.FilterSet):
    """
    Every filter is optional and ANDed with the others.
    The radius search only applies when latitude, longitude and radius are all present.
    """
    city = django_filters.CharFilter(field_name="city")
    locality = django_filters.CharFilter(field_name="locality")
    country = django_filters.CharFilter(field_name="country")
    search = django_filters.CharFilter(method="filter_search")

    latitude = django_filters.NumberFilter(method="filter_centre", min_value=-90, max_value=90)
    longitude = django_filters.NumberFilter(method="filter_centre", min_value=-180, max_value=180)
    radius = django_filters.NumberFilter(method="filter_centre", min_value=0)

    class Meta:
        model = Location
        fields = ["city", "locality", "country"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(Q(name__icontains=value) | Q(address__icontains=value))

    def filter_centre(self, queryset, name, value):
        # Applied as a whole in filter_queryset once all three parts are known
        return queryset

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        data = self.form.cleaned_data
        centre = [data.get(key) for key in ("latitude", "longitude", "radius")]
        if all(part is not None for part in centre):
            queryset = within_radius(queryset, *centre)
        return queryset
