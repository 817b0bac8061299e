from __future__ import annotations

from datetime import date
from typing import List, Optional

from django.db.models import Case, Count, IntegerField, Q, Value, When
from django.utils import timezone

from blood import models as bmodels

Status = bmodels.RequestStatus
URGENT_LEVELS = (bmodels.Urgency.HIGH, bmodels.Urgency.CRITICAL)


def get_request_statistics() -> dict:
    """Aggregate request counts for the admin dashboard and reporting endpoints."""

    by_status = {value: 0 for value in Status.values}
    for row in bmodels.BloodRequest.objects.values("status").annotate(total=Count("id")).order_by():
        by_status[row["status"]] = row["total"]

    not_closed = ~Q(status__in=[Status.FULFILLED, Status.CANCELLED])

    urgent_requests = bmodels.BloodRequest.objects.filter(not_closed, urgency__in=URGENT_LEVELS).count()

    requests_by_city = list(
        bmodels.BloodRequest.objects.exclude(status=Status.CANCELLED)
        .values("city")
        .annotate(total=Count("id"))
        .order_by("-total", "city")[:10]
    )
    requests_by_bloodgroup = list(
        bmodels.BloodRequest.objects.filter(not_closed)
        .values("bloodgroup")
        .annotate(total=Count("id"))
        .order_by("-total", "bloodgroup")
    )
    requests_by_urgency = list(
        bmodels.BloodRequest.objects.filter(not_closed)
        .values("urgency")
        .annotate(total=Count("id"))
        .order_by("urgency")
    )

    return {
        "total_requests": sum(by_status.values()),
        "by_status": {status.lower(): count for status, count in by_status.items()},
        "urgent_requests": urgent_requests,
        "requests_by_city": requests_by_city,
        "requests_by_bloodgroup": requests_by_bloodgroup,
        "requests_by_urgency": requests_by_urgency,
        "summary": {
            "active_requests": by_status[Status.PENDING] + by_status[Status.ACTIVE] + by_status[Status.PARTIALLY_FULFILLED],
            "completed_requests": by_status[Status.FULFILLED],
            "failed_requests": by_status[Status.EXPIRED] + by_status[Status.CANCELLED],
        },
    }


def get_urgent_requests(limit: int = 5, *, today: Optional[date] = None) -> List[bmodels.BloodRequest]:
    """Open HIGH/CRITICAL requests still within their date, most urgent and soonest first."""

    today = today or timezone.localdate()
    urgency_order = Case(
        When(urgency=bmodels.Urgency.CRITICAL, then=Value(0)),
        When(urgency=bmodels.Urgency.HIGH, then=Value(1)),
        default=Value(2),
        output_field=IntegerField(),
    )
    return list(
        bmodels.BloodRequest.objects.filter(
            status__in=bmodels.OPEN_REQUEST_STATUSES,
            urgency__in=URGENT_LEVELS,
            required_date__gte=today,
        )
        .annotate(urgency_order=urgency_order)
        .order_by("urgency_order", "required_date", "id")[: max(1, int(limit))]
    )
