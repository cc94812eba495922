#!/usr/bin/env python
"""
PATH: manage.py

Django management entrypoint for the storefront backend.

DJANGO_SETTINGS_MODULE:
- unset, or pointing at the settings package itself ("backend.settings"):
    `manage.py test` -> backend.settings.test, anything else -> backend.settings.dev
- anything else (e.g. backend.settings.prod) is respected as-is
"""

from __future__ import annotations

import os
import sys


def _default_settings_module(argv) -> str:
    if len(argv) > 1 and argv[1] == "test":
        return "backend.settings.test"
    return "backend.settings.dev"


def main() -> None:
    current = (os.environ.get("DJANGO_SETTINGS_MODULE") or "").strip()
    if current in ("", "backend.settings"):
        os.environ["DJANGO_SETTINGS_MODULE"] = _default_settings_module(sys.argv)

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
