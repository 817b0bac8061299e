from django.contrib import admin
from .models import Donor, Donation

@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'bloodgroup', 'city', 'is_available', 'account_status', 'last_donated_at']
    list_filter = ['bloodgroup', 'city', 'is_available', 'account_status', 'role']
    search_fields = ['user__first_name', 'user__last_name', 'user__username', 'mobile']

@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ['donor', 'blood_request', 'units_donated', 'status', 'donation_date']
    list_filter = ['status', 'donation_date']
    search_fields = ['donor__user__first_name', 'donor__user__last_name']
    # Status changes go through blood.services.fulfillment so requests stay consistent
    readonly_fields = ['status']
