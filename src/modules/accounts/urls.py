"""Actor directory URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts.views import DistributorListView, MeView, StaffListView

urlpatterns = [
    path("me", MeView.as_view(), name="me"),
    path("users/", StaffListView.as_view(), name="user-list"),
    path(
        "users/distributors/",
        DistributorListView.as_view(),
        name="distributor-list",
    ),
]
