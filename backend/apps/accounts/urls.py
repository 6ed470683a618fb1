# apps/accounts/urls.py
from django.urls import path
from .views import (
    MeAPIView,
    RegisterAPIView,
    LoginAPIView,
    LogoutAPIView,
    SecureTokenRefreshView,
)

urlpatterns = [
    path("register/", RegisterAPIView.as_view(), name="auth-register"),
    path("login/", LoginAPIView.as_view(), name="auth-login"),
    path("refresh/", SecureTokenRefreshView.as_view(), name="token_refresh"),
    path("logout/", LogoutAPIView.as_view(), name="auth-logout"),
    path("me/", MeAPIView.as_view(), name="auth-me"),
]
