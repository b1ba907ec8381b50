"""
Management command: seed_users
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Creates the demo accounts used in local development: one verified
citizen and one administrator.

The command is **idempotent** and safe to run multiple times.  Existing
accounts (matched by email) get their name, phone, role and verification
flag reset to the values below; passwords are only set on creation
unless ``--reset-passwords`` is given.

Usage::

    python manage.py seed_users
    python manage.py seed_users --reset-passwords
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Role, User

# (name, email, phone_number, role, password)
DEMO_USERS: list[tuple[str, str, str, str, str]] = [
    ("John Doe", "john@example.com", "1112223333", Role.USER, "password123"),
    ("Jane Smith", "jane.admin@example.com", "9998886666", Role.ADMIN, "adminpass"),
]


class Command(BaseCommand):
    help = "Create (or refresh) the demo citizen and administrator accounts."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset-passwords",
            action="store_true",
            help="Also reset the password of accounts that already exist.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        for name, email, phone, role, password in DEMO_USERS:
            user, created = User.objects.update_or_create(
                email=email,
                defaults={
                    "username": email,
                    "name": name,
                    "phone_number": phone,
                    "role": role,
                    "is_verified": True,
                    "is_staff": role == Role.ADMIN,
                },
            )
            if created or options["reset_passwords"]:
                user.set_password(password)
                user.save(update_fields=["password"])

            verb = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(f"{verb} {user}"))
