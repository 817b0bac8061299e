from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db.models import Max, Q

from donor.models import Donation, Donor


class Command(BaseCommand):
    help = (
        "Set each donor's last_donated_at to their most recent COMPLETED donation. "
        "Defaults to dry-run; pass --apply to write changes."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually write changes to DB (default is dry-run).",
        )

    def handle(self, *args, **options):
        apply_changes = bool(options.get("apply"))

        donors = (
            Donor.objects.annotate(
                latest_completed=Max("donations__donation_date", filter=Q(donations__status=Donation.Status.COMPLETED))
            )
            .only("id", "last_donated_at")
            .order_by("id")
        )

        changed = 0
        for donor in donors:
            # Never clear a date recorded outside this system
            if donor.latest_completed is None:
                continue
            if donor.last_donated_at and donor.last_donated_at >= donor.latest_completed:
                continue

            changed += 1
            self.stdout.write(f"- donor={donor.id} {donor.last_donated_at} -> {donor.latest_completed}")
            if apply_changes:
                Donor.objects.filter(pk=donor.pk).update(last_donated_at=donor.latest_completed)

        if not apply_changes:
            self.stdout.write(self.style.WARNING(f"DRY-RUN: {changed} donor(s) would change. Re-run with --apply to commit."))
            return
        self.stdout.write(self.style.SUCCESS(f"Updated {changed} donor(s)."))
