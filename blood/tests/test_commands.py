from datetime import timedelta
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase
from django.utils import timezone

from blood.models import Notification, RequestStatus

from .helpers import FulfillmentFixtures


class RunMatchingEngineCommandTests(FulfillmentFixtures, TestCase):
    def setUp(self):
        self.blood_request = self._create_request(required_date=timezone.localdate() + timedelta(days=3))

    def test_prints_ranked_donors(self):
        donor = self._create_donor()
        out = StringIO()
        call_command("run_matching_engine", self.blood_request.pk, stdout=out)
        self.assertIn(f"donor={donor.pk}", out.getvalue())
        self.assertFalse(Notification.objects.exists())

    def test_notify_runs_matching_pass(self):
        self._create_donor()
        out = StringIO()
        call_command("run_matching_engine", self.blood_request.pk, "--notify", stdout=out)
        self.assertIn("Notified 1/1", out.getvalue())
        self.assertEqual(Notification.objects.count(), 1)

    def test_unknown_request(self):
        with self.assertRaises(CommandError):
            call_command("run_matching_engine", 999999, stdout=StringIO())


class ExpireRequestsCommandTests(FulfillmentFixtures, TestCase):
    def setUp(self):
        self.overdue = self._create_request(required_date=timezone.localdate() - timedelta(days=1))

    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command("expire_requests", stdout=out)
        self.assertIn("1 open request(s)", out.getvalue())
        self.overdue.refresh_from_db()
        self.assertEqual(self.overdue.status, RequestStatus.PENDING)

    def test_apply(self):
        out = StringIO()
        call_command("expire_requests", "--apply", stdout=out)
        self.assertIn("Updated 1 request(s).", out.getvalue())
        self.overdue.refresh_from_db()
        self.assertEqual(self.overdue.status, RequestStatus.EXPIRED)
