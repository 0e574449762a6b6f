from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Accounts for renters, owners and staff."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Accounts"
