from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models

from .compatibility import BloodGroup


class Urgency(models.TextChoices):
    LOW = 'LOW', 'Low'
    MEDIUM = 'MEDIUM', 'Medium'
    HIGH = 'HIGH', 'High'
    CRITICAL = 'CRITICAL', 'Critical'


URGENCY_RANK = {
    Urgency.LOW: 0,
    Urgency.MEDIUM: 1,
    Urgency.HIGH: 2,
    Urgency.CRITICAL: 3,
}


class RequestStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    ACTIVE = 'ACTIVE', 'Active'
    PARTIALLY_FULFILLED = 'PARTIALLY_FULFILLED', 'Partially fulfilled'
    FULFILLED = 'FULFILLED', 'Fulfilled'
    CANCELLED = 'CANCELLED', 'Cancelled'
    EXPIRED = 'EXPIRED', 'Expired'


TERMINAL_REQUEST_STATUSES = frozenset({
    RequestStatus.FULFILLED,
    RequestStatus.CANCELLED,
    RequestStatus.EXPIRED,
})

OPEN_REQUEST_STATUSES = frozenset(set(RequestStatus.values) - TERMINAL_REQUEST_STATUSES)


class BloodRequest(models.Model):
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name='blood_requests')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    bloodgroup = models.CharField(max_length=12, choices=BloodGroup.choices)
    units_required = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    # Written only by blood.services.lifecycle
    fulfilled_units = models.PositiveIntegerField(default=0, editable=False)
    urgency = models.CharField(max_length=10, choices=Urgency.choices, default=Urgency.MEDIUM)
    hospital_name = models.CharField(max_length=100)
    hospital_address = models.CharField(max_length=500, blank=True)
    city = models.CharField(max_length=50)
    contact_person = models.CharField(max_length=50)
    contact_phone = models.CharField(max_length=15)
    required_date = models.DateField()
    status = models.CharField(max_length=20, choices=RequestStatus.choices, default=RequestStatus.PENDING, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'required_date'], name='blood_req_status_date_idx'),
            models.Index(fields=['bloodgroup', 'city'], name='blood_req_group_city_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.get_bloodgroup_display()} x{self.units_required} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_REQUEST_STATUSES

    @property
    def urgency_rank(self) -> int:
        return URGENCY_RANK[self.urgency]

    @property
    def link(self) -> str:
        return f"/requests/{self.pk}"


class Notification(models.Model):
    class Type(models.TextChoices):
        MATCH_FOUND = 'MATCH_FOUND', 'Match found'
        REQUEST_FULFILLED = 'REQUEST_FULFILLED', 'Request fulfilled'
        REQUEST_EXPIRED = 'REQUEST_EXPIRED', 'Request expired'

    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    blood_request = models.ForeignKey(
        BloodRequest,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    type = models.CharField(max_length=24, choices=Type.choices)
    title = models.CharField(max_length=120)
    message = models.CharField(max_length=500)
    link = models.CharField(max_length=200, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.type} -> {self.recipient_id}: {self.title}"
