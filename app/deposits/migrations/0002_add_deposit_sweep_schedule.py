"""
Add celery-beat schedule for the deposit reconciliation sweep.

This migration creates the periodic task that runs sweep_deposits every
15 minutes to release held deposits whose bookings are settled.
"""

from django.db import migrations

TASK_NAME = "Sweep Held Deposits"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for the deposit sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "deposits.workers.deposit_sweeper.sweep_deposits",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Releases held security deposits once the return is verified "
                "and no damage claim blocks them. Auto-accepts returns whose "
                "owner claim window has lapsed."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("deposits", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
