# apps/locations/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsRecordOwner, can_view
from apps.utils.exceptions import DuplicateLocation
from apps.utils.ordering import SortByOrderFilter
from apps.utils.pagination import StandardResultsSetPagination
from .filters import LocationFilter
from .models import Location
from .serializers import LocationSerializer
from .services import LocationService


class DuplicateAwareMixin:
    def _raise_duplicate(self, exc: DuplicateLocation):
        # Only the owner gets to see the colliding record
        if can_view(self.request.user, exc.existing):
            exc.details = {"location": LocationSerializer(exc.existing).data}
        raise exc


class LocationListCreateAPIView(DuplicateAwareMixin, generics.ListCreateAPIView):
    """
    GET: the caller's locations (filter, sort, paginate).
    POST: register a new location.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = LocationSerializer
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, SortByOrderFilter]
    filterset_class = LocationFilter

    sort_fields = (
        "name", "address", "locality", "city", "country",
        "latitude", "longitude", "created_at", "updated_at",
    )
    default_sort_by = "name"
    default_order = "asc"

    def get_queryset(self):
        return Location.objects.for_user(self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            location = LocationService.create_location(request.user, serializer.validated_data)
        except DuplicateLocation as exc:
            self._raise_duplicate(exc)

        return Response({
            "message": "Location created successfully",
            "location": LocationSerializer(location).data,
        }, status=status.HTTP_201_CREATED)


class LocationDetailAPIView(DuplicateAwareMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    Lookup is unscoped so a foreign record answers 403, a missing one 404.
    """
    permission_classes = [IsAuthenticated, IsRecordOwner]
    serializer_class = LocationSerializer
    queryset = Location.objects.all()

    def get_object(self):
        location = LocationService.get_location(self.kwargs["pk"])
        self.check_object_permissions(self.request, location)
        return location

    def retrieve(self, request, *args, **kwargs):
        return Response({"location": self.get_serializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        location = self.get_object()
        serializer = self.get_serializer(location, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            location = LocationService.update_location(location, serializer.validated_data)
        except DuplicateLocation as exc:
            self._raise_duplicate(exc)

        return Response({
            "message": "Location updated successfully",
            "location": LocationSerializer(location).data,
        })

    def destroy(self, request, *args, **kwargs):
        LocationService.delete_location(self.get_object())
        return Response({"message": "Location deleted successfully"})
