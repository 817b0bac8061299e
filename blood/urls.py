from django.urls import path
from . import views

urlpatterns = [
    path('requests/', views.request_create_view, name='request-create'),
    path('requests/statistics/', views.request_statistics_view, name='request-statistics'),
    path('requests/urgent/', views.urgent_requests_view, name='request-urgent'),
    path('requests/<int:pk>/matching-donors/', views.request_matching_donors_view, name='request-matching-donors'),
    path('requests/<int:pk>/cancel/', views.request_cancel_view, name='request-cancel'),
    path('donations/<int:pk>/complete/', views.donation_complete_view, name='donation-complete'),
]
