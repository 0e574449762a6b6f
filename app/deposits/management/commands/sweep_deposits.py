import json

from django.core.management.base import BaseCommand, CommandError

from deposits.services import DepositSweeper


class Command(BaseCommand):
    help = "Run one deposit reconciliation sweep and print the result as JSON."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Maximum held deposits to evaluate (clamped to the configured maximum).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            dest="dry_run",
            help="Evaluate and count only; do not lock, auto-accept or refund.",
        )

    def handle(self, *args, **options):
        limit = options.get("limit")
        if limit is not None and limit < 1:
            raise CommandError("--limit must be at least 1.")

        result = DepositSweeper.sweep(limit=limit, dry_run=options["dry_run"])

        self.stdout.write(json.dumps(result.to_dict(), indent=2))
        if result.errors:
            self.stderr.write(
                self.style.WARNING(f"{len(result.errors)} deposit(s) failed to release.")
            )
        else:
            self.stdout.write(self.style.SUCCESS(f"Released {result.released} deposit(s)."))
