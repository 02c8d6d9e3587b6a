# permissions/tests/helpers.py

"""
Test seeding helpers shared across app test suites.

make_user() creates a user attached to a throwaway role holding exactly the
capabilities a test needs, so permission behaviour is explicit per test.
"""

from __future__ import annotations

import uuid

from django.contrib.auth import get_user_model

from permissions.models import Capability, Role

User = get_user_model()


def make_role(name: str | None = None, capabilities=()) -> Role:
    role = Role.objects.create(
        name=name or f"role-{uuid.uuid4().hex[:8]}",
        display_name=name or "Test Role",
    )
    caps = []
    for code in capabilities:
        cap, _ = Capability.objects.get_or_create(
            code=code, defaults={"module": code.split(".", 1)[0]}
        )
        caps.append(cap)
    role.capabilities.set(caps)
    return role


def make_user(email: str | None = None, *, capabilities=(), role: Role | None = None, password="pass12345!", **extra):
    if role is None and capabilities:
        role = make_role(capabilities=capabilities)
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    return User.objects.create_user(email=email, password=password, role=role, **extra)
