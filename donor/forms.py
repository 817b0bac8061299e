from django import forms
from django.conf import settings

from .models import Donation


class DonationForm(forms.ModelForm):
    # Donors may log a donation as already completed; cancelling is a separate action
    status = forms.ChoiceField(
        choices=[
            (Donation.Status.SCHEDULED, 'Scheduled'),
            (Donation.Status.COMPLETED, 'Completed'),
        ],
        initial=Donation.Status.SCHEDULED,
        required=False,
    )

    class Meta:
        model = Donation
        fields = ['blood_request', 'donation_date', 'units_donated', 'status', 'hemoglobin_level', 'notes']
        widgets = {
            'donation_date': forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}),
            'units_donated': forms.NumberInput(attrs={'class': 'form-control', 'min': '1'}),
        }

    def clean_units_donated(self):
        units = self.cleaned_data.get('units_donated') or 1
        max_units = int(getattr(settings, 'DONATION_MAX_UNITS', 4))
        if units < 1 or units > max_units:
            raise forms.ValidationError(f'Units donated must be between 1 and {max_units}.')
        return units

    def clean_status(self):
        return self.cleaned_data.get('status') or Donation.Status.SCHEDULED
