# apps/outages/views.py
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.permissions import IsRecordOwner
from apps.utils.ordering import SortByOrderFilter
from apps.utils.pagination import StandardResultsSetPagination
from .filters import OutageFilter
from .models import Outage
from .serializers import EndOutageSerializer, OutageSerializer, OutageWriteSerializer
from .services import OutageService


class OutageClockMixin:
    """
    Pins one `now` per request so filtering and the reported durations agree.
    """

    def initial(self, request, *args, **kwargs):
        self.now = timezone.now()
        super().initial(request, *args, **kwargs)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["now"] = getattr(self, "now", None)
        return context

    def render_outage(self, outage):
        return OutageSerializer(outage, context=self.get_serializer_context()).data


class OutageListCreateAPIView(OutageClockMixin, generics.ListCreateAPIView):
    """
    GET: the caller's outages (filter, sort, paginate).
    POST: log an outage at one of the caller's locations; weather is attached automatically.
    """
    permission_classes = [IsAuthenticated]
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, SortByOrderFilter]
    filterset_class = OutageFilter

    sort_fields = (
        "start_time", "end_time", "duration", "temperature", "wind_speed",
        "precipitation", "weather_condition", "day_of_week", "is_holiday",
        "created_at", "updated_at",
    )
    default_sort_by = "start_time"
    default_order = "desc"

    def get_queryset(self):
        return (
            Outage.objects.for_user(self.request.user)
            .select_related("location")
            .with_duration(getattr(self, "now", None))
        )

    def get_serializer_class(self):
        if self.request.method == "POST":
            return OutageWriteSerializer
        return OutageSerializer

    @extend_schema(request=OutageWriteSerializer, responses={201: OutageSerializer})
    def create(self, request, *args, **kwargs):
        serializer = OutageWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        outage = OutageService.create_outage(request.user, serializer.validated_data)

        message = "Outage created successfully" if outage.end_time else "Ongoing outage created successfully"
        return Response({
            "message": message,
            "outage": self.render_outage(outage),
        }, status=status.HTTP_201_CREATED)


class OutageDetailAPIView(OutageClockMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    Lookup is unscoped so a foreign record answers 403, a missing one 404.
    """
    permission_classes = [IsAuthenticated, IsRecordOwner]
    serializer_class = OutageSerializer
    queryset = Outage.objects.all()

    def get_object(self):
        outage = OutageService.get_outage(self.kwargs["pk"])
        self.check_object_permissions(self.request, outage)
        return outage

    def retrieve(self, request, *args, **kwargs):
        return Response({"outage": self.render_outage(self.get_object())})

    @extend_schema(request=OutageWriteSerializer, responses={200: OutageSerializer})
    def update(self, request, *args, **kwargs):
        outage = self.get_object()
        serializer = OutageWriteSerializer(outage, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        outage = OutageService.update_outage(outage, serializer.validated_data)

        return Response({
            "message": "Outage updated successfully",
            "outage": self.render_outage(outage),
        })

    def destroy(self, request, *args, **kwargs):
        OutageService.delete_outage(self.get_object())
        return Response({"message": "Outage deleted successfully"})


class OutageEndAPIView(OutageClockMixin, APIView):
    """
    Marks an ongoing outage as ended.
    """
    permission_classes = [IsAuthenticated, IsRecordOwner]

    def get_serializer_context(self):
        return {"request": self.request, "view": self, "now": getattr(self, "now", None)}

    @extend_schema(request=EndOutageSerializer, responses={200: OutageSerializer})
    def post(self, request, pk):
        outage = OutageService.get_outage(pk)
        self.check_object_permissions(request, outage)

        serializer = EndOutageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        outage = OutageService.end_outage(outage, serializer.validated_data["end_time"])
        return Response({
            "message": "Outage has been marked as ended",
            "outage": self.render_outage(outage),
        })

    @extend_schema(request=EndOutageSerializer, responses={200: OutageSerializer})
    def patch(self, request, pk):
        return self.post(request, pk)
