"""Shared builders for the blood app tests."""

from datetime import date, timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from blood.models import BloodRequest, RequestStatus, Urgency
from donor.models import Donation, Donor

TODAY = date(2026, 3, 1)


class FulfillmentFixtures:
    user_counter = 0

    def _create_user(self, prefix="user", **extra):
        FulfillmentFixtures.user_counter += 1
        return User.objects.create_user(
            username=f"{prefix}{FulfillmentFixtures.user_counter}",
            password="DemoPass123!",
            first_name="Test",
            last_name=f"{prefix.title()}{FulfillmentFixtures.user_counter}",
            **extra,
        )

    def _create_donor(self, bloodgroup="O_POSITIVE", city="Dhaka", age=25, **fields):
        user = fields.pop("user", None) or self._create_user("donor")
        dob = fields.pop("date_of_birth", None)
        if dob is None and age is not None:
            dob = date(TODAY.year - age, 1, 1)
        fields.setdefault("mobile", "01711000000")
        return Donor.objects.create(
            user=user,
            bloodgroup=bloodgroup,
            city=city,
            date_of_birth=dob,
            **fields,
        )

    def _create_request(self, bloodgroup="O_POSITIVE", city="Dhaka", units_required=2, **fields):
        owner = fields.pop("owner", None) or self._create_user("owner")
        fields.setdefault("required_date", TODAY + timedelta(days=7))
        fields.setdefault("urgency", Urgency.HIGH)
        fields.setdefault("status", RequestStatus.PENDING)
        return BloodRequest.objects.create(
            owner=owner,
            title="Emergency surgery support",
            bloodgroup=bloodgroup,
            units_required=units_required,
            hospital_name="Dhaka Medical College",
            hospital_address="Bakshibazar, Dhaka",
            city=city,
            contact_person="Rahim Uddin",
            contact_phone="01711222333",
            **fields,
        )

    def _create_donation(self, donor, blood_request=None, days_ago=0, units=1, status=Donation.Status.SCHEDULED):
        return Donation.objects.create(
            donor=donor,
            blood_request=blood_request,
            donation_date=TODAY - timedelta(days=days_ago),
            units_donated=units,
            status=status,
        )

    def _completed_donation(self, donor, days_ago, blood_request=None, units=1):
        donation = self._create_donation(donor, blood_request, days_ago=days_ago, units=units, status=Donation.Status.COMPLETED)
        donation_date = donation.donation_date
        if donor.last_donated_at is None or donor.last_donated_at < donation_date:
            donor.last_donated_at = donation_date
            donor.save(update_fields=["last_donated_at"])
        return donation


def request_data(**overrides):
    """Form payload for a valid request due three days from the real current date."""

    data = {
        "title": "Emergency surgery support",
        "bloodgroup": "B_POSITIVE",
        "units_required": "2",
        "urgency": "HIGH",
        "hospital_name": "Square Hospital",
        "hospital_address": "Panthapath, Dhaka",
        "city": "Dhaka",
        "contact_person": "Karim",
        "contact_phone": "0171-1222-333",
        "required_date": (timezone.localdate() + timedelta(days=3)).isoformat(),
    }
    data.update(overrides)
    return data
