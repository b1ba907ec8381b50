"""
Custom authentication backend for multi-field login.

Allows users to authenticate using any one of:
``username``, ``email``, or ``phone_number`` together with their
``password``.

This backend is registered in ``settings.AUTHENTICATION_BACKENDS``
so that Django's ``authenticate()`` call dispatches to it.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class MultiFieldAuthBackend(ModelBackend):
    """
    Authenticate against username, email, or phone_number.

    When ``django.contrib.auth.authenticate(identifier=..., password=...)``
    is called, this backend resolves the user from the ``identifier``
    keyword argument by checking all three unique fields.

    Verification is *not* checked here; the login serializer reports
    unverified accounts separately so the client can tell the two
    failures apart.
    """

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        if identifier is None or password is None:
            return None

        try:
            user = User.objects.get(
                Q(username=identifier)
                | Q(email__iexact=identifier)
                | Q(phone_number=identifier)
            )
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
