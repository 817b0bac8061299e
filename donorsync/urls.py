"""donorsync URL Configuration

Admin site plus the JSON endpoints of the fulfillment engine. Everything
else (auth flows, profiles, reviews) lives in other services.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('blood.urls')),
]
