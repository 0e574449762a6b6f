"""
Deposits app configuration.

This app provides the deposit release engine:
- Payment ledger with deposit escrow status
- Eligibility evaluation and compare-and-swap state machine
- Stripe refund gateway
- Manual release coordinator and periodic reconciliation sweep
"""

from django.apps import AppConfig


class DepositsConfig(AppConfig):
    """Configuration for the deposits application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "deposits"
    verbose_name = "Deposits"
