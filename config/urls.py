"""
URL configuration for the Worksheet Store
"""

from django.urls import include, path

urlpatterns = [
    path("api/", include("apps.api.urls")),
]
