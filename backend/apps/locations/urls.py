from django.urls import path
from .views import LocationListCreateAPIView, LocationDetailAPIView

urlpatterns = [
    path("", LocationListCreateAPIView.as_view(), name="location-list"),
    path("<int:pk>/", LocationDetailAPIView.as_view(), name="location-detail"),
]
