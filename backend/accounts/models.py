"""
Accounts app models.

Defines a custom User model that extends Django's ``AbstractUser`` with
the two-role scheme of the complaint system (citizen / administrator),
a one-way email-verification flag, and the contact fields used to log in.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    """The two roles known to the complaint lifecycle."""

    USER = "user", "Citizen"
    ADMIN = "admin", "Administrator"


class User(AbstractUser):
    """
    Custom user model for the civic complaint system.

    Registration requires a name, email and password; a phone number is
    optional.  Login is supported via *any one* of username / email /
    phone_number together with the password.

    New citizens start unverified and cannot log in or file complaints
    until ``is_verified`` is set by the verification step.  The flag
    never goes back to ``False``.
    """

    name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        verbose_name="Full Name",
    )
    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    phone_number = models.CharField(
        max_length=15,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Phone Number",
        db_index=True,
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.USER,
        verbose_name="Role",
        db_index=True,
    )
    is_verified = models.BooleanField(
        default=False,
        verbose_name="Email Verified",
    )

    # Fields required when creating a superuser via CLI
    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == Role.ADMIN

    @property
    def can_authenticate(self) -> bool:
        """Administrators always may; citizens only once verified."""
        return self.is_admin or self.is_verified
