from django.contrib import admin
from .models import BloodRequest, Notification

@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = ['title', 'bloodgroup', 'units_required', 'fulfilled_units', 'urgency', 'city', 'required_date', 'status']
    list_filter = ['bloodgroup', 'status', 'urgency', 'city']
    search_fields = ['title', 'hospital_name', 'city', 'contact_person']
    readonly_fields = ['status', 'fulfilled_units', 'created_at', 'updated_at']

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'type', 'title', 'blood_request', 'is_read', 'created_at']
    list_filter = ['type', 'is_read']
    search_fields = ['recipient__username', 'title']
