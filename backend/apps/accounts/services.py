import logging
import time

from django.contrib.auth import authenticate
from django.core.cache import cache
from django.db import transaction
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.utils.exceptions import BusinessLogicException
from .authentication import blocklist_key
from .models import User

logger = logging.getLogger(__name__)


class AccountService:
    @staticmethod
    @transaction.atomic
    def register(name, email, password):
        user = User.objects.create_user(email=email, password=password, name=name)
        logger.info("User registered", extra={"metadata": {"user_id": user.id}})
        return user

    @staticmethod
    def login(request, email, password):
        user = authenticate(request, email=email, password=password)
        if user is None:
            raise BusinessLogicException("Invalid credentials", code="invalid_credentials")
        return user

    @staticmethod
    def issue_tokens(user):
        refresh = RefreshToken.for_user(user)
        return {
            "user_id": user.id,
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

    @staticmethod
    def revoke(access_token=None, refresh_token=None):
        """
        Blocklists the given tokens until they would have expired anyway.
        Unparseable tokens are ignored; the session ends either way.
        """
        if access_token is not None:
            jti = access_token.get("jti")
            ttl = int(access_token.get("exp", 0) - time.time())
            if jti and ttl > 0:
                cache.set(blocklist_key(jti), "true", timeout=ttl)

        if refresh_token:
            try:
                token = RefreshToken(refresh_token)
            except TokenError:
                return
            ttl = int(token["exp"] - time.time())
            if ttl > 0:
                cache.set(blocklist_key(token["jti"]), "true", timeout=ttl)
