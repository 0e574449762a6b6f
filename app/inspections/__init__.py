"""
Inspections application.

Stores pickup/return condition evidence captured by renters and owners and
exposes it to the deposit engine through ReturnEvidenceReader.

Usage:
    from inspections.services import ReturnEvidenceReader

    evidence = ReturnEvidenceReader.for_bookings([booking.id])
"""
