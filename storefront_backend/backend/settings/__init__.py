"""
PATH: backend/settings/__init__.py

Pick a concrete module via DJANGO_SETTINGS_MODULE:
- backend.settings.dev   (local)
- backend.settings.test  (manage.py test / pytest)
- backend.settings.prod  (deployments)
"""
