"""AWS SNS delivery of donor match alerts.

Only delivery lives here; the notification records themselves are written by
``blood.services.notifier``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.utils import timezone

from blood import models as bmodels
from donor.models import Donor


logger = logging.getLogger(__name__)


@dataclass
class AlertResult:
	"""Lightweight summary of an alert dispatch attempt."""

	enabled: bool
	delivered: bool
	to: Optional[str] = None
	reason: Optional[str] = None


def send_match_alert(notification: bmodels.Notification, *, sns_client=None) -> AlertResult:
	"""Text the matched donor behind ``notification``."""

	if not settings.AWS_SNS_ENABLED:
		logger.info("AWS SNS alerts disabled; skipping notification %s", notification.pk)
		return AlertResult(False, False, reason="sns-disabled")

	donor = getattr(notification.recipient, "donor", None)
	phone = normalize_phone_number(donor.mobile if donor else None)
	if not phone:
		logger.warning("No usable phone number for notification %s (user %s)", notification.pk, notification.recipient_id)
		return AlertResult(True, False, reason="no-phone")

	if sns_client is None:
		sns_client = _get_sns_client()

	try:
		sns_client.publish(PhoneNumber=phone, Message=build_match_message(notification), MessageAttributes=_message_attributes())
	except (BotoCoreError, ClientError) as exc:
		logger.error(
			"Failed to publish match alert for notification %s (request %s) to %s: %s",
			notification.pk,
			notification.blood_request_id,
			phone,
			exc,
		)
		return AlertResult(True, False, to=phone, reason="publish-failed")

	Donor.objects.filter(pk=donor.pk).update(last_notified_at=timezone.now())
	return AlertResult(True, True, to=phone)


def build_match_message(notification: bmodels.Notification) -> str:
	blood_request = notification.blood_request
	if blood_request is None:
		return notification.message[:1200]
	return (
		f"{blood_request.get_urgency_display()} need: {blood_request.get_bloodgroup_display()} blood at "
		f"{blood_request.hospital_name}, {blood_request.city} by {blood_request.required_date:%d %b}. "
		f"Contact {blood_request.contact_person} ({blood_request.contact_phone}) if you can donate."
	)[:1200]


def _get_sns_client():
	return boto3.client('sns', region_name=settings.AWS_SNS_REGION)


def _message_attributes():
	attributes = {
		'AWS.SNS.SMS.SMSType': {'DataType': 'String', 'StringValue': 'Transactional'},
	}
	sender_id = getattr(settings, 'AWS_SNS_SENDER_ID', '')
	if sender_id:
		attributes['AWS.SNS.SMS.SenderID'] = {
			'DataType': 'String',
			'StringValue': sender_id[:11],
		}
	return attributes


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
	"""E.164 form of ``raw`` using ``AWS_SNS_DEFAULT_COUNTRY_CODE`` for local numbers."""

	if not raw:
		return None
	cleaned = re.sub(r"[\s\-()]+", "", str(raw).strip())
	if cleaned.startswith('+'):
		digits = '+' + re.sub(r"[^0-9]", "", cleaned)
		return digits if len(digits) >= 8 else None
	digits_only = re.sub(r"[^0-9]", "", cleaned).lstrip('0')
	if len(digits_only) < 6:
		return None
	default_code = str(getattr(settings, 'AWS_SNS_DEFAULT_COUNTRY_CODE', '') or '+1')
	if not default_code.startswith('+'):
		default_code = f'+{default_code}'
	if digits_only.startswith(default_code.lstrip('+')):
		return f'+{digits_only}'
	return f'{default_code}{digits_only}'
