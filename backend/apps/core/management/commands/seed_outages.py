import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from faker import Faker

from apps.locations.models import Location
from apps.outages.derived import derive_day_of_week
from apps.outages.models import Outage

WEATHER_CONDITIONS = [
    "Sunny", "Partly cloudy", "Overcast", "Light rain", "Heavy rain",
    "Thundery outbreaks possible", "Moderate snow", "Mist", "Blizzard",
]


class Command(BaseCommand):
    help = "Seeds demo users, locations and outages with synthetic weather (no provider calls)."

    def add_arguments(self, parser):
        parser.add_argument("--users", type=int, default=2)
        parser.add_argument("--locations", type=int, default=5, help="Locations per user")
        parser.add_argument("--outages", type=int, default=20, help="Outages per user")
        parser.add_argument("--password", default="password123")
        parser.add_argument("--seed", type=int, default=42)
        parser.add_argument("--flush", action="store_true", help="Delete existing outages and locations first")

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding outage data..."))

        fake = Faker()
        Faker.seed(options["seed"])
        random.seed(options["seed"])
        User = get_user_model()
        now = timezone.now()

        def unique_coordinates():
            while True:
                lat = float(fake.latitude())
                lng = float(fake.longitude())
                if not Location.objects.filter(latitude=lat, longitude=lng).exists():
                    return lat, lng

        with transaction.atomic():
            if options["flush"]:
                self.stdout.write("Clearing old outages and locations...")
                Outage.objects.all().delete()
                Location.objects.all().delete()

            outage_count = 0
            location_count = 0
            for i in range(options["users"]):
                email = f"demo{i + 1}@example.com"
                user = User.objects.filter(email=email).first()
                if user is None:
                    user = User.objects.create_user(
                        email=email, password=options["password"], name=fake.name()
                    )

                locations = []
                for _ in range(options["locations"]):
                    lat, lng = unique_coordinates()
                    locations.append(Location.objects.create(
                        user=user,
                        name=fake.street_name()[:255],
                        address=fake.street_address()[:255],
                        locality=fake.city_suffix(),
                        city=fake.city(),
                        country=fake.country()[:255],
                        latitude=lat,
                        longitude=lng,
                    ))
                location_count += len(locations)

                for _ in range(options["outages"]):
                    start = now - timedelta(minutes=random.randint(60, 60 * 24 * 60))
                    # Roughly one in five stays ongoing
                    end = None
                    if random.random() > 0.2:
                        end = min(start + timedelta(minutes=random.randint(1, 600)), now)
                    Outage.objects.create(
                        user=user,
                        location=random.choice(locations) if locations else None,
                        start_time=start,
                        end_time=end,
                        weather_condition=random.choice(WEATHER_CONDITIONS),
                        temperature=round(random.uniform(-15, 42), 1),
                        wind_speed=round(random.uniform(0, 90), 1),
                        precipitation=round(random.uniform(0, 25), 1),
                        humidity=random.randint(10, 100),
                        pressure=round(random.uniform(980, 1040), 1),
                        cloud=random.randint(0, 100),
                        day_of_week=derive_day_of_week(start),
                        is_holiday=random.random() < 0.1,
                    )
                    outage_count += 1

        self.stdout.write(self.style.SUCCESS("Seed complete:"))
        self.stdout.write(f"  - Users: {options['users']}")
        self.stdout.write(f"  - Locations: {location_count}")
        self.stdout.write(f"  - Outages: {outage_count}")
