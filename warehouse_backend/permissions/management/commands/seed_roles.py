# permissions/management/commands/seed_roles.py

"""
Seed the default role table.

- Upserts every capability in CAPABILITY_DESCRIPTIONS.
- Upserts the system roles and sets their capabilities from ROLE_CAPABILITIES.
- Idempotent; --keep-existing only adds capabilities, never removes.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db import transaction

from permissions.models import Capability, Role
from permissions.roles import CAPABILITY_DESCRIPTIONS, ROLE_CAPABILITIES, SYSTEM_ROLES


class Command(BaseCommand):
    help = "Seed default capabilities and system roles (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--keep-existing",
            action="store_true",
            help="Only add missing role capabilities; never remove customised ones.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        keep_existing = options["keep_existing"]

        caps = {}
        for code, description in CAPABILITY_DESCRIPTIONS.items():
            cap, _ = Capability.objects.update_or_create(
                code=code,
                defaults={
                    "module": code.split(".", 1)[0],
                    "description": description,
                    "is_active": True,
                },
            )
            caps[code] = cap

        for name, display_name in SYSTEM_ROLES.items():
            role, created = Role.objects.get_or_create(
                name=name,
                defaults={"display_name": display_name, "is_system": True},
            )
            if not role.is_system:
                role.is_system = True
                role.save(update_fields=["is_system", "updated_at"])

            wanted = [caps[c] for c in sorted(ROLE_CAPABILITIES.get(name, set()))]
            if keep_existing and not created:
                role.capabilities.add(*wanted)
            else:
                role.capabilities.set(wanted)

            self.stdout.write(f"  {name}: {role.capabilities.count()} capabilities")

        self.stdout.write(self.style.SUCCESS("Roles and capabilities seeded."))
