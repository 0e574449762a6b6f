import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="EquipmentInspection",
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
                    "inspection_type",
                    models.CharField(
                        choices=[("pickup", "Pickup"), ("return", "Return")],
                        db_index=True,
                        max_length=10,
                    ),
                ),
                ("condition_notes", models.TextField(blank=True, default="")),
                ("photos", models.JSONField(blank=True, default=list)),
                ("checklist", models.JSONField(blank=True, default=dict)),
                ("verified_by_owner", models.BooleanField(default=False)),
                ("verified_by_renter", models.BooleanField(default=False)),
                (
                    "owner_signature",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "renter_signature",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("timestamp", models.DateTimeField(blank=True, null=True)),
                ("auto_accepted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inspections",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Equipment inspection",
                "verbose_name_plural": "Equipment inspections",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["booking", "inspection_type"],
                        name="inspection_booking_type_idx",
                    )
                ],
            },
        ),
    ]
