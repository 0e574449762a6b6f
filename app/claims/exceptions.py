"""
Claim-specific exceptions.

Exception Hierarchy:
    ValidationError
    └── ClaimResponseError - Malformed renter response payload
"""

from core.exceptions import ValidationError


class ClaimResponseError(ValidationError):
    """
    Raised when a renter response payload does not match its action.

    Example:
        raise ClaimResponseError(
            "notes are required when disputing a claim",
            details={"field": "notes"},
        )
    """

    default_error_code: str = "INVALID_CLAIM_RESPONSE"
