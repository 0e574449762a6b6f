"""
Celery configuration for the deposit release service.

Celery runs the periodic reconciliation sweep that releases eligible held
deposits. The schedule lives in the database (django-celery-beat) and is
seeded by a data migration in the deposits app.

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from the tasks.py module of each installed app.

Usage:
    # Queue a sweep:
    from deposits.tasks import sweep_deposits
    sweep_deposits.delay(limit=100)

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
