# apps/locations/tests.py
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.locations.filters import within_radius
from apps.locations.models import Location
from apps.locations.services import LocationService
from apps.outages.models import Outage

User = get_user_model()


def make_location(user, name="Home", latitude=6.5244, longitude=3.3792, **extra):
    return Location.objects.create(
        user=user, name=name, address=extra.pop("address", "12 Marina Rd"),
        latitude=latitude, longitude=longitude, **extra,
    )


class LocationServiceTestCase(TestCase):
    def test_full_address_skips_empty_parts(self):
        location = SimpleNamespace(address="12 Marina Rd", locality="", city="Lagos", country=None)
        self.assertEqual(LocationService.full_address(location), "12 Marina Rd, Lagos")

    def test_full_address_all_parts(self):
        location = SimpleNamespace(address="1 Main St", locality="Ikeja", city="Lagos", country="Nigeria")
        self.assertEqual(LocationService.full_address(location), "1 Main St, Ikeja, Lagos, Nigeria")

    def test_within_radius_annotates_distance(self):
        user = User.objects.create_user(email="geo@example.com", password="pw-123456")
        near = make_location(user, "Near", 6.53, 3.38)
        make_location(user, "Far", 9.0765, 7.3986)

        results = list(within_radius(Location.objects.all(), 6.5244, 3.3792, 10))

        self.assertEqual([loc.pk for loc in results], [near.pk])
        self.assertLess(results[0].distance, 1.0)

    def test_within_radius_includes_exact_centre(self):
        user = User.objects.create_user(email="geo2@example.com", password="pw-123456")
        centre = make_location(user, "Centre", 51.5074, -0.1278)

        results = list(within_radius(Location.objects.all(), 51.5074, -0.1278, 0.5))

        self.assertEqual([loc.pk for loc in results], [centre.pk])
        self.assertAlmostEqual(results[0].distance, 0.0, places=3)


class LocationAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="owner@example.com", password="pw-123456")
        self.other = User.objects.create_user(email="other@example.com", password="pw-123456")
        self.client.force_authenticate(user=self.user)

    def test_create_location(self):
        payload = {
            "name": "Office",
            "address": "1 Broad St",
            "city": "Lagos",
            "country": "Nigeria",
            "latitude": 6.45,
            "longitude": 3.39,
        }
        response = self.client.post("/api/v1/locations/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Location created successfully")
        self.assertEqual(response.data["location"]["user_id"], self.user.id)
        self.assertEqual(response.data["location"]["full_address"], "1 Broad St, Lagos, Nigeria")

    def test_create_location_validation(self):
        response = self.client.post(
            "/api/v1/locations/", {"name": "Bad", "address": "x", "latitude": 95, "longitude": 3.39}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("latitude", response.data["error"]["details"])

    def test_create_requires_name_and_coordinates(self):
        response = self.client.post("/api/v1/locations/", {"address": "x"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        details = response.data["error"]["details"]
        for field in ("name", "latitude", "longitude"):
            self.assertIn(field, details)

    def test_duplicate_coordinates_echo_own_location(self):
        existing = make_location(self.user, latitude=6.45, longitude=3.39)
        payload = {"name": "Again", "address": "x", "latitude": 6.45, "longitude": 3.39}

        response = self.client.post("/api/v1/locations/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "duplicate_location")
        self.assertEqual(response.data["error"]["details"]["location"]["id"], existing.id)
        self.assertEqual(Location.objects.count(), 1)

    def test_duplicate_coordinates_are_global(self):
        make_location(self.other, latitude=10.0, longitude=10.0)
        payload = {"name": "Mine", "address": "x", "latitude": 10.0, "longitude": 10.0}

        response = self.client.post("/api/v1/locations/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        # Another user's record is never disclosed
        self.assertNotIn("details", response.data["error"])

    def test_list_is_scoped_to_caller(self):
        make_location(self.user, "Mine", 1, 1)
        make_location(self.other, "Theirs", 2, 2)

        response = self.client.get("/api/v1/locations/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([loc["name"] for loc in response.data["data"]], ["Mine"])

    def test_list_filters(self):
        make_location(self.user, "Lagos Home", 6.53, 3.38, city="Lagos")
        make_location(self.user, "Abuja Flat", 9.0765, 7.3986, city="Abuja", address="Garki")
        make_location(self.user, "Cabin", 40.0, -3.0, city="Madrid", address="Calle Lagos 2")

        by_city = self.client.get("/api/v1/locations/", {"city": "Abuja"})
        self.assertEqual([loc["name"] for loc in by_city.data["data"]], ["Abuja Flat"])

        # Name or address, case-insensitive
        by_search = self.client.get("/api/v1/locations/", {"search": "lagos"})
        self.assertEqual(sorted(loc["name"] for loc in by_search.data["data"]), ["Cabin", "Lagos Home"])

        by_radius = self.client.get(
            "/api/v1/locations/", {"latitude": 6.5244, "longitude": 3.3792, "radius": 10}
        )
        self.assertEqual([loc["name"] for loc in by_radius.data["data"]], ["Lagos Home"])
        self.assertIsNotNone(by_radius.data["data"][0]["distance"])

    def test_radius_needs_all_three_parts(self):
        make_location(self.user, "Lagos Home", 6.53, 3.38)
        make_location(self.user, "Abuja Flat", 9.0765, 7.3986)

        response = self.client.get("/api/v1/locations/", {"latitude": 6.5244, "radius": 10})

        self.assertEqual(response.data["meta"]["total"], 2)

    def test_sorting(self):
        make_location(self.user, "B", 1, 1, city="Accra")
        make_location(self.user, "A", 2, 2, city="Lome")

        default = self.client.get("/api/v1/locations/")
        self.assertEqual([loc["name"] for loc in default.data["data"]], ["A", "B"])

        by_city = self.client.get("/api/v1/locations/", {"sort_by": "city", "order": "desc"})
        self.assertEqual([loc["name"] for loc in by_city.data["data"]], ["A", "B"])

        invalid = self.client.get("/api/v1/locations/", {"sort_by": "password"})
        self.assertEqual(invalid.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_pagination_defaults_and_cap(self):
        for i in range(20):
            make_location(self.user, f"Loc {i:02d}", i, i)

        response = self.client.get("/api/v1/locations/")
        self.assertEqual(len(response.data["data"]), 15)
        self.assertEqual(response.data["meta"], {"current_page": 1, "per_page": 15, "total": 20, "last_page": 2})
        self.assertIsNotNone(response.data["links"]["next"])

        capped = self.client.get("/api/v1/locations/", {"per_page": 500})
        self.assertEqual(capped.data["meta"]["per_page"], 100)
        self.assertEqual(len(capped.data["data"]), 20)

    def test_page_past_the_end_is_empty(self):
        response = self.client.get("/api/v1/locations/", {"page": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"], [])
        self.assertEqual(response.data["meta"], {"current_page": 2, "per_page": 15, "total": 0, "last_page": 1})
        self.assertIsNone(response.data["links"]["next"])
        self.assertIsNotNone(response.data["links"]["prev"])

        for i in range(20):
            make_location(self.user, f"Loc {i:02d}", i, i)

        far = self.client.get("/api/v1/locations/", {"page": 5})
        self.assertEqual(far.status_code, status.HTTP_200_OK)
        self.assertEqual(far.data["data"], [])
        self.assertEqual(far.data["meta"]["last_page"], 2)
        self.assertIn("page=2", far.data["links"]["prev"])

        invalid = self.client.get("/api/v1/locations/", {"page": "abc"})
        self.assertEqual(invalid.status_code, status.HTTP_404_NOT_FOUND)

    def test_retrieve(self):
        location = make_location(self.user)
        response = self.client.get(f"/api/v1/locations/{location.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["location"]["id"], location.id)

    def test_foreign_location_is_forbidden(self):
        theirs = make_location(self.other, "Theirs", 2, 2)

        response = self.client.get(f"/api/v1/locations/{theirs.id}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["code"], "forbidden")

        response = self.client.patch(f"/api/v1/locations/{theirs.id}/", {"name": "Hijacked"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        theirs.refresh_from_db()
        self.assertEqual(theirs.name, "Theirs")

        response = self.client.delete(f"/api/v1/locations/{theirs.id}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Location.objects.filter(pk=theirs.id).exists())

    def test_missing_location_is_not_found(self):
        response = self.client.get("/api/v1/locations/99999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "not_found")

    def test_partial_update(self):
        location = make_location(self.user, latitude=1, longitude=1)

        response = self.client.patch(f"/api/v1/locations/{location.id}/", {"name": "Renamed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Location updated successfully")
        location.refresh_from_db()
        self.assertEqual(location.name, "Renamed")
        self.assertEqual(location.latitude, 1)

    def test_update_to_duplicate_coordinates(self):
        make_location(self.user, "A", 1, 1)
        b = make_location(self.user, "B", 2, 2)

        response = self.client.patch(
            f"/api/v1/locations/{b.id}/", {"latitude": 1, "longitude": 1}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        # Moving only one axis does not collide
        response = self.client.patch(f"/api/v1/locations/{b.id}/", {"latitude": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_delete(self):
        location = make_location(self.user)
        response = self.client.delete(f"/api/v1/locations/{location.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Location deleted successfully")
        self.assertFalse(Location.objects.filter(pk=location.id).exists())

    def test_delete_with_outages_is_refused(self):
        location = make_location(self.user)
        Outage.objects.create(
            user=self.user, location=location, start_time=timezone.now(),
            weather_condition="Clear", temperature=20, wind_speed=5, precipitation=0, day_of_week=0,
        )

        response = self.client.delete(f"/api/v1/locations/{location.id}/")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "has_dependents")
        self.assertTrue(Location.objects.filter(pk=location.id).exists())

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get("/api/v1/locations/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
