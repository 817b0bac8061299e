"""Entry points of the blood-request fulfillment engine.

Two triggers drive everything here:

* a new request is persisted as PENDING and a background matching pass is
  queued once the transaction commits (eligibility -> ranking -> notifier);
* a donation moving to COMPLETED stamps the donor's last donation date and
  recomputes the linked request's lifecycle in the same transaction.

The synchronous operations raise ``blood.exceptions`` errors; the matching
pass never lets an error reach the code that created the request.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q

from blood import models as bmodels
from blood.exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationFailure
from blood.forms import BloodRequestForm
from blood.services import eligibility, lifecycle, notifier
from blood.services.donor_ranking import MatchCandidate, rank_donors
from donor import models as dmodels
from donor.forms import DonationForm

logger = logging.getLogger(__name__)


def _get_notify_limit() -> int:
    return int(getattr(settings, "MATCHING_NOTIFY_LIMIT", 5))


def _form_errors(form) -> dict:
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


def _get_request(request_id: int) -> bmodels.BloodRequest:
    try:
        return bmodels.BloodRequest.objects.get(pk=request_id)
    except bmodels.BloodRequest.DoesNotExist:
        raise NotFound("Blood request not found")


# -- requests -----------------------------------------------------------------


def create_request(owner, data: dict) -> bmodels.BloodRequest:
    """Validate and persist a request, then queue its matching pass.

    The returned request is PENDING. Queueing problems are logged only: the
    request exists as soon as this returns.
    """

    form = BloodRequestForm(data=data)
    if not form.is_valid():
        raise ValidationFailure("Invalid blood request", errors=_form_errors(form))

    with transaction.atomic():
        blood_request = form.save(commit=False)
        blood_request.owner = owner
        blood_request.save()
        request_id = blood_request.pk
        transaction.on_commit(lambda: queue_matching_pass(request_id))

    logger.info(
        "Blood request %s created by user %s: %s x%s in %s (%s)",
        blood_request.pk,
        owner.pk,
        blood_request.bloodgroup,
        blood_request.units_required,
        blood_request.city,
        blood_request.urgency,
    )
    return blood_request


def queue_matching_pass(request_id: int) -> None:
    from blood.tasks import match_donors_for_request

    try:
        match_donors_for_request.delay(request_id)
    except Exception:
        logger.exception("Could not queue matching pass for blood request %s", request_id)


def find_matching_donors(request_id: int, *, today: Optional[date] = None) -> List[MatchCandidate]:
    """Ranked candidates for an open request; does not notify anyone.

    The lifecycle is refreshed first so an overdue request is expired
    rather than matched.
    """

    lifecycle.recompute(request_id, today=today)
    blood_request = _get_request(request_id)
    if not blood_request.is_open:
        raise InvalidState(f"Blood request is {blood_request.get_status_display().lower()}")

    donors = eligibility.find_eligible(blood_request, today=today)
    return rank_donors(blood_request, donors, today=today)


def run_matching_pass(request_id: int, *, today: Optional[date] = None) -> Optional[notifier.NotifyResult]:
    """Background matching pass: lifecycle refresh, then match and notify.

    Returns None when the request is no longer open after the refresh.
    """

    lifecycle.recompute(request_id, today=today)
    blood_request = _get_request(request_id)
    if not blood_request.is_open:
        logger.info("Skipping matching for blood request %s (%s)", request_id, blood_request.status)
        return None

    donors = eligibility.find_eligible(blood_request, today=today)
    candidates = rank_donors(blood_request, donors, today=today)
    if not candidates:
        logger.info("No eligible donors for blood request %s", request_id)
        return notifier.NotifyResult()

    return notifier.notify_match(blood_request, candidates[: _get_notify_limit()])


def cancel_request(request_id: int, *, actor) -> bmodels.BloodRequest:
    return lifecycle.cancel_request(request_id, actor=actor)


# -- donations ----------------------------------------------------------------


def _get_donation_for_update(donation_id: int) -> dmodels.Donation:
    try:
        return dmodels.Donation.objects.select_for_update().select_related("donor").get(pk=donation_id)
    except dmodels.Donation.DoesNotExist:
        raise NotFound("Donation record not found")


def _check_donation_actor(donation: dmodels.Donation, actor, verb: str) -> None:
    if actor is None:
        return
    if donation.donor.user_id != actor.pk and not lifecycle.is_admin(actor):
        raise Forbidden(f"You are not authorized to {verb} this donation")


def _complete(donation: dmodels.Donation, *, today: Optional[date]) -> None:
    donor = donation.donor
    # Only ever moves forward, even with concurrent completions by the same donor
    moved = (
        dmodels.Donor.objects.filter(pk=donor.pk)
        .filter(Q(last_donated_at__isnull=True) | Q(last_donated_at__lt=donation.donation_date))
        .update(last_donated_at=donation.donation_date)
    )
    if moved:
        donor.last_donated_at = donation.donation_date

    if donation.blood_request_id:
        lifecycle.recompute(donation.blood_request_id, today=today)


def record_donation_completion(donation_id: int, *, actor=None, today: Optional[date] = None) -> dmodels.Donation:
    """Mark a scheduled donation COMPLETED and refresh its request.

    Runs in one transaction; any failure rolls the whole update back and
    propagates to the caller.
    """

    with transaction.atomic():
        donation = _get_donation_for_update(donation_id)
        _check_donation_actor(donation, actor, "complete")
        if donation.is_terminal:
            raise InvalidState(f"Cannot complete a {donation.get_status_display().lower()} donation")

        donation.status = dmodels.Donation.Status.COMPLETED
        donation.save(update_fields=["status", "updated_at"])
        _complete(donation, today=today)

    logger.info(
        "Donation %s completed by donor %s (%s unit(s), request %s)",
        donation.pk,
        donation.donor_id,
        donation.units_donated,
        donation.blood_request_id,
    )
    return donation


def cancel_donation(donation_id: int, *, actor) -> dmodels.Donation:
    with transaction.atomic():
        donation = _get_donation_for_update(donation_id)
        _check_donation_actor(donation, actor, "cancel")
        if donation.is_terminal:
            raise InvalidState(f"Cannot cancel a {donation.get_status_display().lower()} donation")
        donation.status = dmodels.Donation.Status.CANCELLED
        donation.save(update_fields=["status", "updated_at"])
    return donation


def _check_donor_can_donate(donor: dmodels.Donor, donation_date: date) -> None:
    if donor.account_status in (dmodels.Donor.AccountStatus.SUSPENDED, dmodels.Donor.AccountStatus.DELETED):
        raise Forbidden(f"Your account is {donor.get_account_status_display().lower()}")

    age = donor.age_on(donation_date)
    if age is None:
        raise ValidationFailure("Please add your date of birth before donating", errors={"date_of_birth": ["Required."]})
    min_age = int(getattr(settings, "DONOR_MIN_AGE", 18))
    max_age = int(getattr(settings, "DONOR_MAX_AGE", 65))
    if age < min_age or age > max_age:
        raise ValidationFailure(f"Donors must be between {min_age} and {max_age} years old")

    next_eligible = donor.next_eligible_donation_date
    if next_eligible and donation_date < next_eligible:
        raise ValidationFailure(f"You can donate again on {next_eligible:%Y-%m-%d}")


def create_donation(donor: dmodels.Donor, data: dict, *, today: Optional[date] = None) -> dmodels.Donation:
    """Record a donation, scheduled or already completed.

    A donation linked to a request requires the request to still be open.
    Completed donations go through the same path as ``record_donation_completion``.
    """

    request_ref = data.get("blood_request")
    if request_ref and str(request_ref).isdigit() and not bmodels.BloodRequest.objects.filter(pk=request_ref).exists():
        raise NotFound("Blood request not found")

    form = DonationForm(data=data)
    if not form.is_valid():
        raise ValidationFailure("Invalid donation", errors=_form_errors(form))

    donation = form.save(commit=False)
    _check_donor_can_donate(donor, donation.donation_date)

    with transaction.atomic():
        if donation.blood_request_id:
            blood_request = (
                bmodels.BloodRequest.objects.select_for_update().filter(pk=donation.blood_request_id).first()
            )
            if blood_request is None:
                raise NotFound("Blood request not found")
            if not blood_request.is_open:
                raise InvalidState(f"This blood request is {blood_request.get_status_display().lower()}")
            duplicate = dmodels.Donation.objects.filter(
                donor=donor,
                blood_request=blood_request,
                status=dmodels.Donation.Status.SCHEDULED,
            ).exists()
            if duplicate:
                raise Conflict("You already have a scheduled donation for this request")

        donation.donor = donor
        donation.save()
        if donation.status == dmodels.Donation.Status.COMPLETED:
            _complete(donation, today=today)

    logger.info(
        "Donation %s recorded for donor %s (%s, request %s)",
        donation.pk,
        donor.pk,
        donation.status,
        donation.blood_request_id,
    )
    return donation
