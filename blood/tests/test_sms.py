"""Unit tests for the AWS SNS match alert helper."""

from unittest.mock import MagicMock

from botocore.exceptions import ClientError
from django.test import TestCase, override_settings

from blood.models import Notification
from blood.services import notifier, sms

from .helpers import FulfillmentFixtures


class SNSAlertTests(FulfillmentFixtures, TestCase):
	def setUp(self):
		self.blood_request = self._create_request(bloodgroup="A_NEGATIVE", urgency="CRITICAL")

	def _notification_for(self, donor):
		notification = notifier.build_match_notification(self.blood_request, donor.user_id)
		notification.save()
		return Notification.objects.select_related("recipient__donor", "blood_request").get(pk=notification.pk)

	@override_settings(AWS_SNS_ENABLED=False)
	def test_skips_when_disabled(self):
		notification = self._notification_for(self._create_donor(bloodgroup="A_NEGATIVE"))
		mock_client = MagicMock()

		result = sms.send_match_alert(notification, sns_client=mock_client)

		self.assertFalse(result.enabled)
		self.assertEqual(result.reason, "sns-disabled")
		mock_client.publish.assert_not_called()

	@override_settings(AWS_SNS_ENABLED=True, AWS_SNS_DEFAULT_COUNTRY_CODE="+880", AWS_SNS_SENDER_ID="DonorSync")
	def test_publishes_to_donor_phone(self):
		donor = self._create_donor(bloodgroup="A_NEGATIVE", mobile="017-1100 0000")
		notification = self._notification_for(donor)
		mock_client = MagicMock()

		result = sms.send_match_alert(notification, sns_client=mock_client)

		self.assertTrue(result.delivered)
		self.assertEqual(result.to, "+8801711000000")
		kwargs = mock_client.publish.call_args.kwargs
		self.assertEqual(kwargs["PhoneNumber"], "+8801711000000")
		self.assertIn("A- blood at Dhaka Medical College", kwargs["Message"])
		self.assertEqual(kwargs["MessageAttributes"]["AWS.SNS.SMS.SenderID"]["StringValue"], "DonorSync")
		donor.refresh_from_db()
		self.assertIsNotNone(donor.last_notified_at)

	@override_settings(AWS_SNS_ENABLED=True)
	def test_missing_phone(self):
		donor = self._create_donor(bloodgroup="A_NEGATIVE", mobile="")
		mock_client = MagicMock()

		result = sms.send_match_alert(self._notification_for(donor), sns_client=mock_client)

		self.assertEqual(result.reason, "no-phone")
		mock_client.publish.assert_not_called()

	@override_settings(AWS_SNS_ENABLED=True)
	def test_publish_failure_is_reported(self):
		donor = self._create_donor(bloodgroup="A_NEGATIVE")
		mock_client = MagicMock()
		mock_client.publish.side_effect = ClientError({"Error": {"Code": "Throttling", "Message": "Rate exceeded"}}, "Publish")

		result = sms.send_match_alert(self._notification_for(donor), sns_client=mock_client)

		self.assertFalse(result.delivered)
		self.assertEqual(result.reason, "publish-failed")
		donor.refresh_from_db()
		self.assertIsNone(donor.last_notified_at)


class PhoneNumberTests(TestCase):
	@override_settings(AWS_SNS_DEFAULT_COUNTRY_CODE="880")
	def test_local_numbers_get_country_code(self):
		self.assertEqual(sms.normalize_phone_number("01711000000"), "+8801711000000")
		self.assertEqual(sms.normalize_phone_number("8801711000000"), "+8801711000000")

	def test_international_numbers_are_kept(self):
		self.assertEqual(sms.normalize_phone_number("+1 (555) 123-4567"), "+15551234567")

	def test_unusable_numbers(self):
		self.assertIsNone(sms.normalize_phone_number(None))
		self.assertIsNone(sms.normalize_phone_number("123"))
		self.assertIsNone(sms.normalize_phone_number("+12"))
