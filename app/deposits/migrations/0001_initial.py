import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Total charged to the renter, deposit included",
                        max_digits=10,
                    ),
                ),
                (
                    "deposit_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Refundable security deposit portion",
                        max_digits=10,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "deposit_status",
                    models.CharField(
                        choices=[
                            ("none", "None"),
                            ("held", "Held"),
                            ("releasing", "Releasing"),
                            ("released", "Released"),
                        ],
                        db_index=True,
                        default="none",
                        help_text="Escrow status of the deposit",
                        max_length=20,
                    ),
                ),
                (
                    "deposit_released_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the deposit refund was finalized",
                        null=True,
                    ),
                ),
                (
                    "gateway_charge_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe PaymentIntent or Charge id of the original charge",
                        max_length=255,
                    ),
                ),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment",
                        to="bookings.booking",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments_as_owner",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "renter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments_as_renter",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["deposit_status", "created_at"],
                        name="payment_deposit_status_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("deposit_amount__gte", 0)),
                        name="payment_deposit_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("deposit_released_at__isnull", False),
                                ("deposit_status", "released"),
                            ),
                            models.Q(
                                models.Q(("deposit_status", "released"), _negated=True),
                                ("deposit_released_at__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="payment_released_at_matches_status",
                    ),
                ],
            },
        ),
    ]
