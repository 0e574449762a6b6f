"""
Authentication application.

Provides the email-keyed User model shared by renters, owners and staff.
API authentication uses simplejwt tokens (see REST_FRAMEWORK settings).
"""
