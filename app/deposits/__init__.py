"""
Security deposit escrow release.

Decides when a renter's held deposit is safe to return and issues the
one-time refund through the payment gateway.
"""
