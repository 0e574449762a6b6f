"""
Django app configuration for claims.
"""

from django.apps import AppConfig


class ClaimsConfig(AppConfig):
    """Configuration for the claims application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "claims"
    verbose_name = "Damage Claims"
