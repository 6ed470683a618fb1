from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.throttling import AnonRateThrottle
from rest_framework import status
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from django.core.cache import cache

from .authentication import blocklist_key
from .serializers import UserSerializer, RegisterSerializer, LoginSerializer, LogoutSerializer
from .services import AccountService


class AuthThrottle(AnonRateThrottle):
    scope = 'auth'


class MeAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class RegisterAPIView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = AccountService.register(**serializer.validated_data)

        return Response({
            "message": "Registration successful",
            "user": UserSerializer(user).data,
            **AccountService.issue_tokens(user),
        }, status=status.HTTP_201_CREATED)


class LoginAPIView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [AuthThrottle]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = AccountService.login(request, **serializer.validated_data)

        return Response({
            "message": "Login successful",
            "user": UserSerializer(user).data,
            **AccountService.issue_tokens(user),
        })


class SecureTokenRefreshSerializer(TokenRefreshSerializer):
    def validate(self, attrs):
        token = RefreshToken(attrs["refresh"])
        if cache.get(blocklist_key(token["jti"])):
            raise InvalidToken("This session has been logged out.")
        return super().validate(attrs)


class SecureTokenRefreshView(TokenRefreshView):
    serializer_class = SecureTokenRefreshSerializer


class LogoutAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AccountService.revoke(
            access_token=request.auth if hasattr(request.auth, "get") else None,
            refresh_token=serializer.validated_data.get("refresh"),
        )
        return Response({"status": "logged_out"})
