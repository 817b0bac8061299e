from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from blood import models as bmodels
from blood.services.donor_ranking import MatchCandidate
from donor.models import Donor


logger = logging.getLogger(__name__)

SMS_MIN_URGENCY = bmodels.URGENCY_RANK[bmodels.Urgency.HIGH]


@dataclass
class NotifyResult:
    """Outcome of one fan-out; failures are listed by donor id."""

    attempted: int = 0
    notification_ids: List[int] = field(default_factory=list)
    failed_donor_ids: List[int] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return len(self.notification_ids)


def build_match_notification(blood_request: bmodels.BloodRequest, recipient_id: int) -> bmodels.Notification:
    return bmodels.Notification(
        recipient_id=recipient_id,
        blood_request=blood_request,
        type=bmodels.Notification.Type.MATCH_FOUND,
        title="Blood Request Match Found!",
        message=(
            f"A patient in {blood_request.city} needs {blood_request.get_bloodgroup_display()} blood. "
            "Your blood type matches!"
        ),
        link=blood_request.link,
    )


def notify_match(blood_request: bmodels.BloodRequest, candidates: Sequence[MatchCandidate]) -> NotifyResult:
    """Create one MATCH_FOUND notification per candidate.

    Never raises for a single recipient: each write runs in its own savepoint
    and a failure is logged before moving on to the next donor.
    """

    result = NotifyResult(attempted=len(candidates))
    now = timezone.now()

    for candidate in candidates:
        donor = candidate.donor
        try:
            with transaction.atomic():
                notification = build_match_notification(blood_request, donor.user_id)
                notification.save()
                Donor.objects.filter(pk=donor.pk).update(last_notified_at=now)
        except Exception:
            result.failed_donor_ids.append(donor.pk)
            logger.exception(
                "Failed to create match notification for request %s, donor %s",
                blood_request.pk,
                donor.pk,
            )
            continue

        result.notification_ids.append(notification.pk)

    if result.notification_ids and _sms_enabled_for(blood_request):
        transaction.on_commit(lambda ids=list(result.notification_ids): _queue_sms(ids))

    logger.info(
        "Match fan-out for request %s: %d/%d notified",
        blood_request.pk,
        result.delivered,
        result.attempted,
    )
    return result


def _sms_enabled_for(blood_request: bmodels.BloodRequest) -> bool:
    return bool(getattr(settings, "AWS_SNS_ENABLED", False)) and blood_request.urgency_rank >= SMS_MIN_URGENCY


def _queue_sms(notification_ids: List[int]) -> None:
    from blood.tasks import send_match_alert_sms

    for notification_id in notification_ids:
        try:
            send_match_alert_sms.delay(notification_id)
        except Exception:
            logger.exception("Could not queue SMS alert for notification %s", notification_id)
