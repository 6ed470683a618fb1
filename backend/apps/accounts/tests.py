# apps/accounts/tests.py
from types import SimpleNamespace

from django.core.cache import cache
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.permissions import can_delete, can_update, can_view

User = get_user_model()


class AccountServiceTestCase(TestCase):
    def test_create_user_manager(self):
        user = User.objects.create_user(email="Ada@Example.COM", password="password123", name="Ada")
        self.assertEqual(user.email, "Ada@example.com")
        self.assertTrue(user.check_password("password123"))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email="admin@example.com", password="adminpass")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email=None, password="pass")


class OwnershipPolicyTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pw-123456")
        self.other = User.objects.create_user(email="other@example.com", password="pw-123456")
        self.record = SimpleNamespace(user_id=self.owner.id)

    def test_owner_allowed(self):
        self.assertTrue(can_view(self.owner, self.record))
        self.assertTrue(can_update(self.owner, self.record))
        self.assertTrue(can_delete(self.owner, self.record))

    def test_non_owner_denied(self):
        self.assertFalse(can_view(self.other, self.record))
        self.assertFalse(can_update(self.other, self.record))
        self.assertFalse(can_delete(self.other, self.record))

    def test_anonymous_denied(self):
        self.assertFalse(can_view(None, self.record))


class AuthAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(email="jane@example.com", password="Str0ng-pass!", name="Jane")

    def test_registration(self):
        payload = {"name": "New User", "email": "new@example.com", "password": "An0ther-pass!"}
        response = self.client.post("/api/v1/auth/register/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.filter(email="new@example.com").exists())
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["email"], "new@example.com")

    def test_registration_duplicate_email(self):
        payload = {"name": "Jane", "email": "JANE@example.com", "password": "An0ther-pass!"}
        response = self.client.post("/api/v1/auth/register/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"]["code"], "validation_failed")
        self.assertIn("email", response.data["error"]["details"])

    def test_login(self):
        response = self.client.post(
            "/api/v1/auth/login/", {"email": "jane@example.com", "password": "Str0ng-pass!"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["user_id"], self.user.id)

    def test_login_bad_password(self):
        response = self.client.post(
            "/api/v1/auth/login/", {"email": "jane@example.com", "password": "wrong"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_credentials")

    def test_me_endpoint_authenticated(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/v1/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], self.user.email)

    def test_me_endpoint_unauthenticated(self):
        response = self.client.get("/api/v1/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.data)

    def test_logout_revokes_tokens(self):
        login = self.client.post(
            "/api/v1/auth/login/", {"email": "jane@example.com", "password": "Str0ng-pass!"}, format="json"
        )
        access, refresh = login.data["access"], login.data["refresh"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        self.assertEqual(self.client.get("/api/v1/auth/me/").status_code, status.HTTP_200_OK)

        response = self.client.post("/api/v1/auth/logout/", {"refresh": refresh}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        # Access token is now rejected
        self.assertEqual(self.client.get("/api/v1/auth/me/").status_code, status.HTTP_401_UNAUTHORIZED)

        # Refresh token can no longer mint new access tokens
        self.client.credentials()
        response = self.client.post("/api/v1/auth/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
