"""Status state machine for blood requests.

PENDING -> ACTIVE -> PARTIALLY_FULFILLED -> FULFILLED, with CANCELLED and
EXPIRED reachable from any open state. ``status`` and ``fulfilled_units``
are written only from this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from blood import models as bmodels
from blood.exceptions import Forbidden, InvalidState, NotFound
from donor import models as dmodels

logger = logging.getLogger(__name__)

Status = bmodels.RequestStatus


def compute_status(current: str, fulfilled: int, units_required: int, required_date: date, today: date) -> str:
    if current in bmodels.TERMINAL_REQUEST_STATUSES:
        return current
    if fulfilled >= units_required:
        return Status.FULFILLED
    # The required date itself is still open; expiry starts the day after
    if today > required_date:
        return Status.EXPIRED
    if fulfilled > 0:
        return Status.PARTIALLY_FULFILLED
    if current == Status.PENDING:
        return Status.ACTIVE
    return current


def completed_units(request_id: int) -> int:
    total = dmodels.Donation.objects.filter(
        blood_request_id=request_id,
        status=dmodels.Donation.Status.COMPLETED,
    ).aggregate(total=Sum("units_donated"))["total"]
    return int(total or 0)


@dataclass(frozen=True)
class Transition:
    request_id: int
    status_before: str
    status_after: str
    fulfilled_before: int
    fulfilled_after: int

    @property
    def changed(self) -> bool:
        return self.status_before != self.status_after or self.fulfilled_before != self.fulfilled_after


def _notify_owner(blood_request: bmodels.BloodRequest, new_status: str) -> None:
    if new_status == Status.FULFILLED:
        kind = bmodels.Notification.Type.REQUEST_FULFILLED
        title = "Your blood request is fulfilled"
        message = f"All {blood_request.units_required} unit(s) of {blood_request.get_bloodgroup_display()} have been donated."
    elif new_status == Status.EXPIRED:
        kind = bmodels.Notification.Type.REQUEST_EXPIRED
        title = "Your blood request has expired"
        message = (
            f"The required date {blood_request.required_date:%Y-%m-%d} passed with "
            f"{blood_request.fulfilled_units}/{blood_request.units_required} unit(s) donated."
        )
    else:
        return

    bmodels.Notification.objects.create(
        recipient_id=blood_request.owner_id,
        blood_request=blood_request,
        type=kind,
        title=title,
        message=message,
        link=blood_request.link,
    )


def recompute(request_id: int, *, today: Optional[date] = None) -> Transition:
    """Re-derive status and fulfilled units under a row lock.

    The request row is locked for the aggregate-and-write sequence, so two
    concurrent donation completions serialize here instead of racing on
    ``fulfilled_units``.
    """

    today = today or timezone.localdate()
    with transaction.atomic():
        try:
            blood_request = bmodels.BloodRequest.objects.select_for_update().get(pk=request_id)
        except bmodels.BloodRequest.DoesNotExist:
            raise NotFound("Blood request not found")

        fulfilled = completed_units(request_id)
        new_status = compute_status(
            blood_request.status,
            fulfilled,
            blood_request.units_required,
            blood_request.required_date,
            today,
        )
        transition = Transition(
            request_id=request_id,
            status_before=blood_request.status,
            status_after=new_status,
            fulfilled_before=blood_request.fulfilled_units,
            fulfilled_after=fulfilled,
        )
        if not transition.changed:
            return transition

        blood_request.status = new_status
        blood_request.fulfilled_units = fulfilled
        blood_request.save(update_fields=["status", "fulfilled_units", "updated_at"])

        if transition.status_before != new_status:
            logger.info(
                "Blood request %s: %s -> %s (%s/%s units)",
                request_id,
                transition.status_before,
                new_status,
                fulfilled,
                blood_request.units_required,
            )
            _notify_owner(blood_request, new_status)

    return transition


def recompute_request_status(request_id: int, *, today: Optional[date] = None) -> bool:
    """Returns True when something was written."""

    return recompute(request_id, today=today).changed


def cancel_request(request_id: int, *, actor) -> bmodels.BloodRequest:
    """Withdraw a request. Only its owner or an admin may do this."""

    with transaction.atomic():
        try:
            blood_request = bmodels.BloodRequest.objects.select_for_update().get(pk=request_id)
        except bmodels.BloodRequest.DoesNotExist:
            raise NotFound("Blood request not found")

        if blood_request.owner_id != actor.pk and not is_admin(actor):
            raise Forbidden("You are not authorized to cancel this request")
        if blood_request.status in bmodels.TERMINAL_REQUEST_STATUSES:
            raise InvalidState(f"Cannot cancel a {blood_request.get_status_display().lower()} request")

        previous = blood_request.status
        blood_request.status = Status.CANCELLED
        blood_request.save(update_fields=["status", "updated_at"])

    logger.info("Blood request %s cancelled by user %s (was %s)", request_id, actor.pk, previous)
    return blood_request


def expire_overdue_requests(*, today: Optional[date] = None) -> List[Transition]:
    """Run every open request whose required date has passed through ``recompute``."""

    today = today or timezone.localdate()
    overdue = bmodels.BloodRequest.objects.filter(
        status__in=bmodels.OPEN_REQUEST_STATUSES,
        required_date__lt=today,
    ).values_list("pk", flat=True)

    transitions = []
    for request_id in list(overdue):
        transition = recompute(request_id, today=today)
        if transition.changed:
            transitions.append(transition)
    return transitions


def is_admin(user) -> bool:
    if user.is_superuser:
        return True
    donor = getattr(user, "donor", None)
    return bool(donor and donor.is_admin)
