from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from blood.compatibility import BloodGroup


class Donor(models.Model):
    class Role(models.TextChoices):
        DONOR = 'DONOR', 'Donor'
        RECIPIENT = 'RECIPIENT', 'Recipient'
        HOSPITAL = 'HOSPITAL', 'Hospital'
        ADMIN = 'ADMIN', 'Admin'
        SUPER_ADMIN = 'SUPER_ADMIN', 'Super admin'

    class AccountStatus(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        INACTIVE = 'INACTIVE', 'Inactive'
        SUSPENDED = 'SUSPENDED', 'Suspended'
        DELETED = 'DELETED', 'Deleted'

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='donor')
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.DONOR)
    account_status = models.CharField(max_length=16, choices=AccountStatus.choices, default=AccountStatus.ACTIVE)

    bloodgroup = models.CharField(max_length=12, choices=BloodGroup.choices)
    city = models.CharField(max_length=50)
    mobile = models.CharField(max_length=20, blank=True)
    sex = models.CharField(
        max_length=1,
        choices=(('M', 'Male'), ('F', 'Female'), ('O', 'Other'), ('U', 'Prefer not to say')),
        default='U',
    )
    date_of_birth = models.DateField(null=True, blank=True)

    is_available = models.BooleanField(default=True)
    last_notified_at = models.DateTimeField(null=True, blank=True)

    # Stamped when a donation is completed
    last_donated_at = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['id']

    @property
    def get_name(self):
        full_name = f"{self.user.first_name} {self.user.last_name}".strip()
        return full_name or self.user.username

    def __str__(self):
        return f"{self.get_name} ({self.get_bloodgroup_display()}, {self.city})"

    def age_on(self, day):
        if not self.date_of_birth:
            return None
        years = day.year - self.date_of_birth.year
        if (day.month, day.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years

    @property
    def is_admin(self) -> bool:
        return self.role in (self.Role.ADMIN, self.Role.SUPER_ADMIN)

    @property
    def donation_recovery_days(self) -> int:
        return int(getattr(settings, "DONATION_RECOVERY_DAYS", 56))

    @property
    def next_eligible_donation_date(self):
        if not self.last_donated_at:
            return None
        return self.last_donated_at + timedelta(days=self.donation_recovery_days)


class Donation(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = 'SCHEDULED', 'Scheduled'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='donations')
    blood_request = models.ForeignKey(
        'blood.BloodRequest',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='donations',
    )
    donation_date = models.DateField()
    units_donated = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.SCHEDULED)
    hemoglobin_level = models.DecimalField(
        max_digits=4,
        decimal_places=1,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(25)],
    )
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-donation_date', '-id']  # Most recent first
        verbose_name = "Blood Donation"
        verbose_name_plural = "Blood Donations"
        indexes = [models.Index(fields=['blood_request', 'status'], name='donation_request_status_idx')]

    def __str__(self):
        return f"{self.donor.get_name} - {self.units_donated} unit(s) - {self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES
