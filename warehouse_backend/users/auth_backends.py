"""
PATH: users/auth_backends.py

AUTH BACKEND: Email OR Username login (not both)

Rules:
- Login accepts EITHER:
  - email (identifier contains "@"), OR
  - username (identifier without "@")
- If request supplies both email + username -> authentication fails (returns None).
- Deactivated users never authenticate.

Used by django.contrib.auth.authenticate() from the login view and the admin.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend

logger = logging.getLogger(__name__)

User = get_user_model()


class EmailOrUsernameBackend(BaseBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        email_kw = (kwargs.get("email") or "").strip()
        username_kw = (kwargs.get("identifier") or "").strip()

        if email_kw and username_kw:
            return None

        identifier = (username or email_kw or username_kw or "").strip()
        if not identifier or password is None:
            return None

        lookup = {"email__iexact": identifier} if "@" in identifier else {"username__iexact": identifier}

        user = User.objects.select_related("role").filter(**lookup).first()
        if user is None:
            # Run the hasher anyway so unknown identifiers cost the same as bad passwords.
            User().set_password(password)
            return None

        if not user.is_active:
            logger.info("auth.inactive_user", extra={"user_id": str(user.pk)})
            return None

        if user.check_password(password):
            return user

        return None

    def get_user(self, user_id):
        return User.objects.select_related("role").filter(pk=user_id).first()
