import re

from django import forms
from django.conf import settings
from django.utils import timezone

from . import models

PHONE_PATTERN = re.compile(r"^[0-9]{10,15}$")


class BloodRequestForm(forms.ModelForm):
    class Meta:
        model = models.BloodRequest
        fields = [
            'title',
            'description',
            'bloodgroup',
            'units_required',
            'urgency',
            'hospital_name',
            'hospital_address',
            'city',
            'contact_person',
            'contact_phone',
            'required_date',
        ]
        widgets = {
            'bloodgroup': forms.Select(attrs={'class': 'form-control'}),
            'units_required': forms.NumberInput(attrs={'class': 'form-control', 'min': '1'}),
            'required_date': forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}),
        }

    def clean_title(self):
        title = (self.cleaned_data.get('title') or '').strip()
        if len(title) < 10:
            raise forms.ValidationError('Title must be at least 10 characters.')
        return title

    def clean_units_required(self):
        units = self.cleaned_data.get('units_required')
        max_units = int(getattr(settings, 'REQUEST_MAX_UNITS', 20))
        if units is None or units < 1:
            raise forms.ValidationError('At least 1 unit is required.')
        if units > max_units:
            raise forms.ValidationError(f'Maximum {max_units} units per request.')
        return units

    def clean_city(self):
        city = (self.cleaned_data.get('city') or '').strip()
        if len(city) < 2:
            raise forms.ValidationError('City must be at least 2 characters.')
        return city

    def clean_contact_phone(self):
        phone = re.sub(r"[\s\-]+", "", self.cleaned_data.get('contact_phone') or '')
        if not PHONE_PATTERN.match(phone):
            raise forms.ValidationError('Invalid phone number.')
        return phone

    def clean_required_date(self):
        required_date = self.cleaned_data.get('required_date')
        if required_date and required_date < timezone.localdate():
            raise forms.ValidationError('Required date must be today or in the future.')
        return required_date
