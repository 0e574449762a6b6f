"""
Django app configuration for inspections.
"""

from django.apps import AppConfig


class InspectionsConfig(AppConfig):
    """Configuration for the inspections application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inspections"
    verbose_name = "Inspections"
