from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

User = get_user_model()

TEST_SET = [
    # (username, is_superuser)
    ("staff1", False),
    ("admin", True),
]


class Command(BaseCommand):
    help = "Ensure development staff logins exist with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="clinic-dev-123", help="password to set for every test user")

    def handle(self, *args, **opts):
        password = opts["password"]
        for username, is_superuser in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"is_active": True, "is_staff": True, "is_superuser": is_superuser},
            )
            u.set_password(password)
            u.is_active = True
            u.is_staff = True
            u.is_superuser = is_superuser
            u.save(update_fields=["password", "is_active", "is_staff", "is_superuser"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({'created' if created else 'reset'})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
