"""
URL configuration for the deposits app.

Routes:
    - POST bookings/<booking_id>/release/ - Manual deposit release
    - POST sweep/ - On-demand reconciliation sweep (staff only)

All routes are prefixed with /api/v1/deposits/ when included in the main URLconf.
"""

from django.urls import path

from deposits.views import ReleaseDepositView, SweepView

app_name = "deposits"

urlpatterns = [
    path(
        "bookings/<uuid:booking_id>/release/",
        ReleaseDepositView.as_view(),
        name="release",
    ),
    path("sweep/", SweepView.as_view(), name="sweep"),
]
