from __future__ import annotations

from django.core.management.base import BaseCommand
from django.utils import timezone

from blood import models
from blood.services import lifecycle


class Command(BaseCommand):
    help = (
        "Move open blood requests whose required date has passed to EXPIRED. "
        "Defaults to dry-run; pass --apply to write changes."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually write changes to DB (default is dry-run).",
        )

    def handle(self, *args, **options):
        today = timezone.localdate()

        if not options.get("apply"):
            overdue = models.BloodRequest.objects.filter(
                status__in=models.OPEN_REQUEST_STATUSES,
                required_date__lt=today,
            ).order_by("required_date", "id")
            count = overdue.count()
            self.stdout.write(f"{count} open request(s) are past their required date.")
            for blood_request in overdue[:10]:
                self.stdout.write(
                    f"- id={blood_request.id} status={blood_request.status} required_date={blood_request.required_date}"
                )
            self.stdout.write(self.style.WARNING("DRY-RUN: no changes written. Re-run with --apply to commit."))
            return

        transitions = lifecycle.expire_overdue_requests(today=today)
        for transition in transitions:
            self.stdout.write(f"- id={transition.request_id} {transition.status_before} -> {transition.status_after}")
        self.stdout.write(self.style.SUCCESS(f"Updated {len(transitions)} request(s)."))
