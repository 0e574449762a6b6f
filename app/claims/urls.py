"""
URL configuration for the claims app.

Routes:
    - POST <claim_id>/respond/ - Renter response to a damage claim

All routes are prefixed with /api/v1/claims/ when included in the main URLconf.
"""

from django.urls import path

from claims.views import ClaimRespondView

app_name = "claims"

urlpatterns = [
    path("<uuid:claim_id>/respond/", ClaimRespondView.as_view(), name="respond"),
]
