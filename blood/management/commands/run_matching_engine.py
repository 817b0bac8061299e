from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from blood.exceptions import FulfillmentError
from blood.services import fulfillment


class Command(BaseCommand):
    help = "Rank eligible donors for a blood request; with --notify, run the full matching pass."

    def add_arguments(self, parser):
        parser.add_argument("request_id", type=int, help="Blood request id")
        parser.add_argument(
            "--notify",
            action="store_true",
            help="Refresh the request lifecycle and notify the top candidates (default: print only).",
        )

    def handle(self, *args, **options):
        request_id = options["request_id"]

        if options.get("notify"):
            try:
                result = fulfillment.run_matching_pass(request_id)
            except FulfillmentError as exc:
                raise CommandError(exc.message)
            if result is None:
                self.stdout.write(self.style.WARNING(f"Request {request_id} is closed; nobody notified."))
                return
            self.stdout.write(
                self.style.SUCCESS(f"Notified {result.delivered}/{result.attempted} donor(s) for request {request_id}.")
            )
            return

        try:
            candidates = fulfillment.find_matching_donors(request_id)
        except FulfillmentError as exc:
            raise CommandError(exc.message)

        if not candidates:
            self.stdout.write(self.style.WARNING("No eligible donors."))
            return

        for position, candidate in enumerate(candidates, start=1):
            self.stdout.write(
                f"{position:>2}. donor={candidate.donor_id} {candidate.donor.get_name} score={candidate.score:g}"
            )
