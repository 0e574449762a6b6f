"""
Claims application.

Damage claims filed by equipment owners against a booking's deposit, and
the renter's response to them. Any claim still pending or disputed blocks
deposit release.

Usage:
    from claims.services import ClaimService

    ClaimService.has_blocking_claim(booking.id)
"""
