from datetime import timedelta
from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase
from django.utils import timezone

from blood import tasks
from blood.models import Notification, RequestStatus

from .helpers import FulfillmentFixtures


class MatchDonorsTaskTests(FulfillmentFixtures, TestCase):
    def setUp(self):
        self.blood_request = self._create_request(required_date=timezone.localdate() + timedelta(days=2))

    def test_runs_matching_pass(self):
        self._create_donor()
        result = tasks.match_donors_for_request(self.blood_request.pk)
        self.assertEqual(result, {"status": "ok", "notified": 1, "failed": 0})
        self.assertEqual(Notification.objects.count(), 1)

    def test_missing_request(self):
        self.assertEqual(tasks.match_donors_for_request(999999), {"status": "missing"})

    def test_closed_request_is_skipped(self):
        self.blood_request.status = RequestStatus.CANCELLED
        self.blood_request.save(update_fields=["status"])
        self.assertEqual(tasks.match_donors_for_request(self.blood_request.pk), {"status": "skipped"})

    def test_unexpected_error_is_logged_not_raised(self):
        with patch("blood.tasks.fulfillment.run_matching_pass", side_effect=RuntimeError("boom")):
            with self.assertLogs("blood.tasks", level="ERROR") as logs:
                result = tasks.match_donors_for_request(self.blood_request.pk)
        self.assertEqual(result, {"status": "failed"})
        self.assertIn("Matching pass failed", logs.output[0])
        self.blood_request.refresh_from_db()
        self.assertEqual(self.blood_request.status, RequestStatus.PENDING)

    def test_database_errors_propagate_for_retry(self):
        with patch("blood.tasks.fulfillment.run_matching_pass", side_effect=OperationalError("locked")):
            with self.assertRaises(OperationalError):
                tasks.match_donors_for_request.run(self.blood_request.pk)


class ExpireOverdueTaskTests(FulfillmentFixtures, TestCase):
    def test_expires_overdue_requests(self):
        overdue = self._create_request(required_date=timezone.localdate() - timedelta(days=1))
        self._create_request(required_date=timezone.localdate() + timedelta(days=1))

        self.assertEqual(tasks.expire_overdue_requests(), 1)
        overdue.refresh_from_db()
        self.assertEqual(overdue.status, RequestStatus.EXPIRED)


class SendMatchAlertTaskTests(FulfillmentFixtures, TestCase):
    def test_delegates_to_sms_service(self):
        donor = self._create_donor()
        blood_request = self._create_request()
        notification = Notification.objects.create(
            recipient=donor.user,
            blood_request=blood_request,
            type=Notification.Type.MATCH_FOUND,
            title="Blood Request Match Found!",
            message="A patient in Dhaka needs O+ blood. Your blood type matches!",
            link=blood_request.link,
        )
        with patch("blood.tasks.sms_service.send_match_alert") as send:
            tasks.send_match_alert_sms.run(notification.pk)
        send.assert_called_once_with(notification)
