"""Narrow the donor population to those who may donate for a request today."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from django.conf import settings
from django.db.models import Max, Q
from django.utils import timezone

from blood import models as bmodels
from blood.compatibility import donor_groups_for
from donor import models as dmodels

logger = logging.getLogger(__name__)


def _get_recovery_days() -> int:
    return int(getattr(settings, "DONATION_RECOVERY_DAYS", 56))


def _get_max_scan() -> int:
    return int(getattr(settings, "MATCHING_MAX_SCAN", 500))


def deferral_cutoff(today: date) -> date:
    """Latest donation date that still lets a donor give blood on ``today``."""

    return today - timedelta(days=_get_recovery_days())


def find_eligible(blood_request: bmodels.BloodRequest, *, today: Optional[date] = None) -> List[dmodels.Donor]:
    """Return donors who can donate for ``blood_request``, in donor id order.

    Each donor carries a ``last_completed_donation`` attribute (date or None)
    taken from its COMPLETED donations, which the ranking step reuses.
    An empty list is a normal outcome.
    """

    today = today or timezone.localdate()
    cutoff = deferral_cutoff(today)
    completed = dmodels.Donation.Status.COMPLETED

    if getattr(settings, "MATCHING_ALLOW_COMPATIBLE_GROUPS", False):
        group_filter = Q(bloodgroup__in=donor_groups_for(blood_request.bloodgroup))
    else:
        group_filter = Q(bloodgroup=blood_request.bloodgroup)

    already_donated = dmodels.Donation.objects.filter(
        blood_request=blood_request,
        status=completed,
    ).values("donor_id")

    candidates = (
        dmodels.Donor.objects.select_related("user")
        .filter(
            group_filter,
            role=dmodels.Donor.Role.DONOR,
            account_status=dmodels.Donor.AccountStatus.ACTIVE,
            user__is_active=True,
            is_available=True,
            city__iexact=(blood_request.city or "").strip(),
        )
        .filter(Q(last_donated_at__isnull=True) | Q(last_donated_at__lte=cutoff))
        .exclude(pk__in=already_donated)
        .annotate(last_completed_donation=Max("donations__donation_date", filter=Q(donations__status=completed)))
        .filter(Q(last_completed_donation__isnull=True) | Q(last_completed_donation__lte=cutoff))
        .order_by("id")
    )

    donors = list(candidates[: _get_max_scan()])
    logger.debug(
        "Eligibility for request %s (%s, %s): %d donor(s)",
        blood_request.pk,
        blood_request.bloodgroup,
        blood_request.city,
        len(donors),
    )
    return donors
