# apps/outages/tests.py
from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace
from unittest import mock

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.locations.models import Location
from apps.outages.admin import OutageAdmin
from apps.outages.derived import derive_day_of_week, duration_minutes, outage_status
from apps.outages.models import Outage
from apps.weather.services import WeatherSnapshot, WeatherUnavailable

User = get_user_model()

WEATHER_PATH = "apps.outages.services.WeatherService.get_current_weather"

SUNNY = WeatherSnapshot(
    condition="Sunny", temperature_c=31.0, wind_kph=8.5, precipitation_mm=0.0,
    humidity=40, pressure_mb=1012.0, cloud_pct=10,
)
STORM = WeatherSnapshot(
    condition="Thunderstorm", temperature_c=22.0, wind_kph=55.0, precipitation_mm=18.2,
)

# 2024-01-07 is a Sunday
SUNDAY = datetime(2024, 1, 7, 10, 0, tzinfo=dt_timezone.utc)


def make_outage(user, location, start, end=None, **fields):
    values = {
        "weather_condition": "Sunny",
        "temperature": 25.0,
        "wind_speed": 10.0,
        "precipitation": 0.0,
        "is_holiday": False,
    }
    values.update(fields)
    return Outage.objects.create(
        user=user, location=location, start_time=start, end_time=end,
        day_of_week=derive_day_of_week(start), **values,
    )


class DerivedValuesTestCase(TestCase):
    def test_day_of_week_sunday_is_zero(self):
        self.assertEqual(derive_day_of_week(SUNDAY), 0)
        self.assertEqual(derive_day_of_week(SUNDAY + timedelta(days=1)), 1)
        self.assertEqual(derive_day_of_week(SUNDAY + timedelta(days=6)), 6)

    def test_day_of_week_uses_configured_zone_not_client_offset(self):
        # Sunday evening in UTC-5 is already Monday in UTC
        late_sunday = datetime(2024, 1, 7, 23, 30, tzinfo=dt_timezone(timedelta(hours=-5)))
        self.assertEqual(derive_day_of_week(late_sunday), 1)

    def test_duration_truncates_to_whole_minutes(self):
        outage = SimpleNamespace(start_time=SUNDAY, end_time=SUNDAY + timedelta(minutes=90, seconds=59))
        self.assertEqual(duration_minutes(outage), 90)

    def test_duration_of_ongoing_outage_uses_now(self):
        outage = SimpleNamespace(start_time=SUNDAY, end_time=None)
        self.assertEqual(duration_minutes(outage, now=SUNDAY + timedelta(hours=2)), 120)

    def test_duration_never_negative(self):
        outage = SimpleNamespace(start_time=SUNDAY, end_time=None)
        self.assertEqual(duration_minutes(outage, now=SUNDAY - timedelta(minutes=5)), 0)

    def test_status(self):
        self.assertEqual(outage_status(SimpleNamespace(end_time=None)), "ongoing")
        self.assertEqual(outage_status(SimpleNamespace(end_time=SUNDAY)), "completed")


class OutageAPITestBase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="owner@example.com", password="pw-123456")
        self.other = User.objects.create_user(email="other@example.com", password="pw-123456")
        self.location = Location.objects.create(
            user=self.user, name="Home", address="12 Marina Rd", latitude=6.5244, longitude=3.3792,
        )
        self.second_location = Location.objects.create(
            user=self.user, name="Shop", address="3 Allen Ave", latitude=6.6018, longitude=3.3515,
        )
        self.foreign_location = Location.objects.create(
            user=self.other, name="Theirs", address="9 Garki", latitude=9.0765, longitude=7.3986,
        )
        self.client.force_authenticate(user=self.user)


class OutageCreateTestCase(OutageAPITestBase):
    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_create_ongoing_outage(self, weather):
        start = timezone.now() - timedelta(hours=1)
        payload = {
            "start_time": start.isoformat(),
            "location_id": self.location.id,
            "is_holiday": False,
        }

        response = self.client.post("/api/v1/outages/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Ongoing outage created successfully")
        weather.assert_called_once_with(6.5244, 3.3792)

        data = response.data["outage"]
        self.assertEqual(data["status"], "ongoing")
        self.assertIsNone(data["end_time"])
        self.assertIn(data["duration"], (59, 60))
        self.assertEqual(data["location"]["id"], self.location.id)
        self.assertEqual(data["weather"], {
            "condition": "Sunny",
            "temperature": 31.0,
            "wind_speed": 8.5,
            "precipitation": 0.0,
            "humidity": 40,
            "pressure": 1012.0,
            "cloud": 10,
        })

        outage = Outage.objects.get(pk=data["id"])
        self.assertEqual(outage.user, self.user)
        self.assertEqual(outage.day_of_week, derive_day_of_week(start))

    @mock.patch(WEATHER_PATH, return_value=STORM)
    def test_create_completed_outage(self, weather):
        payload = {
            "start_time": SUNDAY.isoformat(),
            "end_time": (SUNDAY + timedelta(minutes=95)).isoformat(),
            "location_id": self.location.id,
            "is_holiday": True,
        }

        response = self.client.post("/api/v1/outages/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Outage created successfully")
        data = response.data["outage"]
        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["duration"], 95)
        self.assertEqual(data["day_of_week"], 0)
        self.assertTrue(data["is_holiday"])
        self.assertIsNone(data["weather"]["humidity"])

    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_client_weather_and_day_of_week_are_ignored(self, weather):
        payload = {
            "start_time": SUNDAY.isoformat(),
            "location_id": self.location.id,
            "is_holiday": False,
            "weather_condition": "Blizzard",
            "temperature": -40,
            "day_of_week": 4,
            "user_id": self.other.id,
        }

        response = self.client.post("/api/v1/outages/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        outage = Outage.objects.get(pk=response.data["outage"]["id"])
        self.assertEqual(outage.weather_condition, "Sunny")
        self.assertEqual(outage.temperature, 31.0)
        self.assertEqual(outage.day_of_week, 0)
        self.assertEqual(outage.user, self.user)

    @mock.patch(WEATHER_PATH, return_value=WeatherUnavailable(6.5244, 3.3792, "timeout"))
    def test_weather_failure_persists_nothing(self, weather):
        payload = {"start_time": SUNDAY.isoformat(), "location_id": self.location.id, "is_holiday": False}

        response = self.client.post("/api/v1/outages/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["error"]["code"], "weather_unavailable")
        self.assertFalse(Outage.objects.exists())

    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_foreign_location_is_rejected_before_weather_call(self, weather):
        payload = {"start_time": SUNDAY.isoformat(), "location_id": self.foreign_location.id, "is_holiday": False}

        response = self.client.post("/api/v1/outages/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "location_not_found")
        weather.assert_not_called()
        self.assertFalse(Outage.objects.exists())

    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_validation_errors(self, weather):
        response = self.client.post("/api/v1/outages/", {"is_holiday": False}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        details = response.data["error"]["details"]
        self.assertIn("start_time", details)
        self.assertEqual(details["location_id"], ["A location is required to fetch weather data."])

        future = {
            "start_time": (timezone.now() + timedelta(hours=1)).isoformat(),
            "location_id": self.location.id,
            "is_holiday": False,
        }
        response = self.client.post("/api/v1/outages/", future, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("start_time", response.data["error"]["details"])

        backwards = {
            "start_time": SUNDAY.isoformat(),
            "end_time": SUNDAY.isoformat(),
            "location_id": self.location.id,
            "is_holiday": False,
        }
        response = self.client.post("/api/v1/outages/", backwards, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("end_time", response.data["error"]["details"])

        weather.assert_not_called()
        self.assertFalse(Outage.objects.exists())


class OutageEndTestCase(OutageAPITestBase):
    def test_end_transitions(self):
        outage = make_outage(self.user, self.location, SUNDAY)
        url = f"/api/v1/outages/{outage.id}/end/"

        response = self.client.post(url, {"end_time": (SUNDAY - timedelta(minutes=1)).isoformat()}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"]["code"], "invalid_end_time")

        response = self.client.post(url, {"end_time": (SUNDAY + timedelta(hours=3)).isoformat()}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Outage has been marked as ended")
        self.assertEqual(response.data["outage"]["status"], "completed")
        self.assertEqual(response.data["outage"]["duration"], 180)

        response = self.client.patch(url, {"end_time": (SUNDAY + timedelta(hours=4)).isoformat()}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"]["code"], "already_ended")

        outage.refresh_from_db()
        self.assertEqual(outage.end_time, SUNDAY + timedelta(hours=3))

    def test_end_requires_end_time(self):
        outage = make_outage(self.user, self.location, SUNDAY)
        response = self.client.post(f"/api/v1/outages/{outage.id}/end/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_end_foreign_outage_is_forbidden(self):
        theirs = make_outage(self.other, self.foreign_location, SUNDAY)
        response = self.client.post(
            f"/api/v1/outages/{theirs.id}/end/", {"end_time": (SUNDAY + timedelta(hours=1)).isoformat()}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        theirs.refresh_from_db()
        self.assertIsNone(theirs.end_time)


class OutageDetailTestCase(OutageAPITestBase):
    def test_retrieve(self):
        outage = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=30))
        response = self.client.get(f"/api/v1/outages/{outage.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["outage"]["duration"], 30)

    def test_missing_outage(self):
        response = self.client.get("/api/v1/outages/424242/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_foreign_outage_is_forbidden_and_unchanged(self, weather):
        theirs = make_outage(self.other, self.foreign_location, SUNDAY)
        url = f"/api/v1/outages/{theirs.id}/"

        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            self.client.patch(url, {"is_holiday": True}, format="json").status_code,
            status.HTTP_403_FORBIDDEN,
        )
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)

        theirs.refresh_from_db()
        self.assertFalse(theirs.is_holiday)
        weather.assert_not_called()

    @mock.patch(WEATHER_PATH, return_value=STORM)
    def test_update_without_weather_inputs_keeps_snapshot(self, weather):
        outage = make_outage(self.user, self.location, SUNDAY)

        response = self.client.patch(f"/api/v1/outages/{outage.id}/", {"is_holiday": True}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Outage updated successfully")
        weather.assert_not_called()
        outage.refresh_from_db()
        self.assertTrue(outage.is_holiday)
        self.assertEqual(outage.weather_condition, "Sunny")

    @mock.patch(WEATHER_PATH, return_value=STORM)
    def test_start_time_change_refreshes_weather_and_day_of_week(self, weather):
        outage = make_outage(self.user, self.location, SUNDAY)
        new_start = SUNDAY + timedelta(days=3)

        response = self.client.patch(
            f"/api/v1/outages/{outage.id}/", {"start_time": new_start.isoformat()}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        weather.assert_called_once_with(6.5244, 3.3792)
        outage.refresh_from_db()
        self.assertEqual(outage.day_of_week, 3)
        self.assertEqual(outage.weather_condition, "Thunderstorm")
        self.assertEqual(outage.wind_speed, 55.0)

    @mock.patch(WEATHER_PATH, return_value=STORM)
    def test_location_change_refreshes_weather(self, weather):
        outage = make_outage(self.user, self.location, SUNDAY)

        response = self.client.patch(
            f"/api/v1/outages/{outage.id}/", {"location_id": self.second_location.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        weather.assert_called_once_with(6.6018, 3.3515)
        self.assertEqual(response.data["outage"]["location"]["id"], self.second_location.id)
        self.assertEqual(response.data["outage"]["weather"]["condition"], "Thunderstorm")

    @mock.patch(WEATHER_PATH, return_value=WeatherUnavailable(6.6018, 3.3515, "upstream_error", 500))
    def test_failed_refresh_leaves_outage_untouched(self, weather):
        outage = make_outage(self.user, self.location, SUNDAY)

        response = self.client.patch(
            f"/api/v1/outages/{outage.id}/",
            {"location_id": self.second_location.id, "is_holiday": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        outage.refresh_from_db()
        self.assertEqual(outage.location_id, self.location.id)
        self.assertFalse(outage.is_holiday)

    @mock.patch(WEATHER_PATH, return_value=SUNNY)
    def test_update_to_foreign_location(self, weather):
        outage = make_outage(self.user, self.location, SUNDAY)

        response = self.client.patch(
            f"/api/v1/outages/{outage.id}/", {"location_id": self.foreign_location.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "location_not_found")

    def test_update_end_time_rules(self):
        outage = make_outage(self.user, self.location, SUNDAY)
        url = f"/api/v1/outages/{outage.id}/"

        response = self.client.patch(url, {"end_time": (SUNDAY - timedelta(hours=1)).isoformat()}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"]["code"], "invalid_end_time")

        response = self.client.patch(url, {"end_time": (SUNDAY + timedelta(hours=1)).isoformat()}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["outage"]["status"], "completed")

        # Once ended, an outage cannot become ongoing again
        response = self.client.patch(url, {"end_time": None}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        outage.refresh_from_db()
        self.assertIsNotNone(outage.end_time)

    def test_delete(self):
        outage = make_outage(self.user, self.location, SUNDAY)
        response = self.client.delete(f"/api/v1/outages/{outage.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Outage deleted successfully")
        self.assertFalse(Outage.objects.filter(pk=outage.id).exists())


class OutageListTestCase(OutageAPITestBase):
    def _ids(self, params=None):
        response = self.client.get("/api/v1/outages/", params or {})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        return {row["id"] for row in response.data["data"]}

    def test_list_is_scoped_and_sorted_newest_first(self):
        older = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=10))
        newer = make_outage(self.user, self.location, SUNDAY + timedelta(days=1))
        make_outage(self.other, self.foreign_location, SUNDAY)

        response = self.client.get("/api/v1/outages/")

        self.assertEqual([row["id"] for row in response.data["data"]], [newer.id, older.id])
        self.assertEqual(response.data["meta"]["total"], 2)

    def test_duration_bounds_match_reported_minutes(self):
        thirty = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=30))
        sixty = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=60, seconds=40))
        sixty_one = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=61))
        ninety = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=90))

        self.assertEqual(self._ids({"duration_min": 60, "duration_max": 60}), {sixty.id})
        self.assertEqual(self._ids({"duration_min": 61}), {sixty_one.id, ninety.id})
        self.assertEqual(self._ids({"duration_max": 30}), {thirty.id})

    def test_duration_of_ongoing_outage_counts_until_now(self):
        ongoing = make_outage(self.user, self.location, timezone.now() - timedelta(minutes=45))
        make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=5))

        self.assertEqual(self._ids({"duration_min": 40, "duration_max": 50}), {ongoing.id})

    def test_sort_by_duration(self):
        short = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=5))
        long = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=500))

        response = self.client.get("/api/v1/outages/", {"sort_by": "duration", "order": "asc"})

        self.assertEqual([row["id"] for row in response.data["data"]], [short.id, long.id])

    def test_status_filter(self):
        ongoing = make_outage(self.user, self.location, SUNDAY)
        done = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(hours=1))

        self.assertEqual(self._ids({"status": "ongoing"}), {ongoing.id})
        self.assertEqual(self._ids({"status": "completed"}), {done.id})

        response = self.client.get("/api/v1/outages/", {"status": "paused"})
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_date_window(self):
        early = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(hours=1))
        late = make_outage(self.user, self.location, SUNDAY + timedelta(days=5), SUNDAY + timedelta(days=5, hours=1))
        ongoing = make_outage(self.user, self.location, SUNDAY + timedelta(days=2))

        self.assertEqual(self._ids({"start_date": (SUNDAY + timedelta(days=1)).isoformat()}), {late.id, ongoing.id})
        # Ongoing outages always satisfy the end bound
        self.assertEqual(self._ids({"end_date": (SUNDAY + timedelta(days=1)).isoformat()}), {early.id, ongoing.id})

    def test_weather_and_calendar_filters(self):
        hot = make_outage(
            self.user, self.location, SUNDAY, weather_condition="Sunny", temperature=35, wind_speed=5, is_holiday=True,
        )
        windy = make_outage(
            self.user, self.second_location, SUNDAY + timedelta(days=1),
            weather_condition="Windy", temperature=15, wind_speed=70,
        )

        self.assertEqual(self._ids({"weather_condition": "Windy"}), {windy.id})
        self.assertEqual(self._ids({"temperature_min": 20}), {hot.id})
        self.assertEqual(self._ids({"temperature_max": 20}), {windy.id})
        self.assertEqual(self._ids({"wind_speed_min": 50}), {windy.id})
        self.assertEqual(self._ids({"is_holiday": "true"}), {hot.id})
        self.assertEqual(self._ids({"is_holiday": 1}), {hot.id})
        self.assertEqual(self._ids({"is_holiday": "yes"}), {hot.id})
        self.assertEqual(self._ids({"is_holiday": 0}), {windy.id})
        self.assertEqual(self._ids({"is_holiday": "off"}), {windy.id})
        self.assertEqual(self._ids({"day_of_week": 1}), {windy.id})
        self.assertEqual(self._ids({"location_id": self.location.id}), {hot.id})
        self.assertEqual(self._ids({"temperature_min": 20, "is_holiday": "false"}), set())

    def test_invalid_day_of_week(self):
        response = self.client.get("/api/v1/outages/", {"day_of_week": 7})
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_unrecognised_holiday_flag_is_rejected(self):
        make_outage(self.user, self.location, SUNDAY, is_holiday=True)

        response = self.client.get("/api/v1/outages/", {"is_holiday": "maybe"})

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("is_holiday", response.data["error"]["details"])

    def test_fractional_duration_bound_is_rejected(self):
        make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(minutes=60))

        response = self.client.get("/api/v1/outages/", {"duration_min": "60.5"})

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("duration_min", response.data["error"]["details"])


class OutageAdminFormTestCase(OutageAPITestBase):
    def setUp(self):
        super().setUp()
        self.superuser = User.objects.create_superuser(email="admin@example.com", password="adminpass")
        request = RequestFactory().get("/admin/outages/outage/")
        request.user = self.superuser
        self.request = request
        self.model_admin = OutageAdmin(Outage, admin.site)

    def _form(self, outage, **data):
        form_class = self.model_admin.get_form(self.request, obj=outage)
        return form_class(data=data, instance=outage)

    def test_location_and_start_time_are_read_only(self):
        outage = make_outage(self.user, self.location, SUNDAY)
        form_class = self.model_admin.get_form(self.request, obj=outage)

        self.assertNotIn("location", form_class.base_fields)
        self.assertNotIn("start_time", form_class.base_fields)
        self.assertNotIn("user", form_class.base_fields)
        self.assertIn("end_time", form_class.base_fields)

    def test_end_time_before_start_time_is_rejected(self):
        outage = make_outage(self.user, self.location, SUNDAY)

        form = self._form(outage, end_time_0="2024-01-07", end_time_1="09:00:00")

        self.assertFalse(form.is_valid())
        self.assertIn("end_time", form.errors)

    def test_end_time_cannot_be_cleared(self):
        outage = make_outage(self.user, self.location, SUNDAY, SUNDAY + timedelta(hours=1))

        form = self._form(outage, end_time_0="", end_time_1="")

        self.assertFalse(form.is_valid())
        self.assertIn("end_time", form.errors)

    def test_valid_end_time_is_accepted(self):
        outage = make_outage(self.user, self.location, SUNDAY)

        form = self._form(outage, end_time_0="2024-01-07", end_time_1="11:30:00", is_holiday="on")

        self.assertTrue(form.is_valid(), form.errors)
        saved = form.save()
        self.assertEqual(saved.end_time, SUNDAY + timedelta(hours=1, minutes=30))
        self.assertTrue(saved.is_holiday)
        self.assertEqual(saved.location_id, self.location.id)
