"""
PATH: users/management/commands/ensure_superuser.py

Store-operator bootstrap.

- Reads AUTO_ADMIN_EMAIL + AUTO_ADMIN_PASSWORD from env.
- Idempotent: creates the admin if missing; otherwise re-asserts the admin
  role/flags and resets the password.
- Does NOT print the password.
"""

from __future__ import annotations

import environ
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

env = environ.Env()


class Command(BaseCommand):
    help = "Create/update the store admin account from env vars (idempotent)."

    def handle(self, *args, **options):
        email = (env.str("AUTO_ADMIN_EMAIL", default="") or "").strip()
        password = (env.str("AUTO_ADMIN_PASSWORD", default="") or "").strip()

        if not email or not password:
            self.stdout.write(self.style.WARNING("AUTO_ADMIN_* env vars not set. Skipping."))
            return

        User = get_user_model()

        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()

            if user is None:
                User.objects.create_superuser(email=email, password=password)
                self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (created)"))
                return

            user.role = User.ROLE_ADMIN
            user.is_active = True
            user.is_staff = True
            user.is_superuser = True
            user.set_password(password)
            user.save()

        self.stdout.write(self.style.SUCCESS(f"Admin ensured: {email} (updated)"))
