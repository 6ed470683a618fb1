# apps/accounts/authentication.py
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, AuthenticationFailed
from django.core.cache import cache


def blocklist_key(jti):
    return f"blocklist:{jti}"


class SecureJWTAuthentication(JWTAuthentication):
    """
    Extends JWT Authentication with forceful logout
    (revocation via a cache-backed blocklist keyed by token jti).
    """

    def get_validated_token(self, raw_token):
        try:
            validated_token = super().get_validated_token(raw_token)
        except InvalidToken:
            raise InvalidToken("Token is invalid or expired")

        jti = validated_token.get('jti')
        if jti and cache.get(blocklist_key(jti)):
            raise AuthenticationFailed("This session has been logged out.")

        return validated_token
