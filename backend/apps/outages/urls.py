from django.urls import path
from .views import OutageListCreateAPIView, OutageDetailAPIView, OutageEndAPIView

urlpatterns = [
    path("", OutageListCreateAPIView.as_view(), name="outage-list"),
    path("<int:pk>/", OutageDetailAPIView.as_view(), name="outage-detail"),
    path("<int:pk>/end/", OutageEndAPIView.as_view(), name="outage-end"),
]
