"""
Security module for the mandate intake service.

Provides input validation for incoming submissions and contact messages.
"""

import math
import re
from typing import Any, Dict, Optional

from .encryption import looks_like_envelope
from .errors import ValidationError
from .fees import Amounts, calculate_fee
from .identity import is_identifier

# ============================================================
# Input Validation
# ============================================================

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

MAX_ENVELOPE_LENGTH = 256 * 1024
AMOUNT_TOLERANCE = 0.01


def validate_string_length(
    value: str,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000
) -> str:
    """
    Validate string length.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, "must be a string")

    if len(value) < min_length:
        raise ValidationError(field_name, f"must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(field_name, f"must not exceed {max_length} characters")

    return value


def validate_single_line(value: str, field_name: str) -> str:
    """Reject line breaks in values that end up in mail headers."""
    if "\r" in value or "\n" in value:
        raise ValidationError(field_name, "must not contain line breaks")
    return value


def validate_identifier(value: str) -> str:
    """Validate a deterministic client identifier (UUID-shaped, lowercase hex)."""
    if not is_identifier(value):
        raise ValidationError("identifier", "must be 32 lowercase hex digits grouped 8-4-4-4-12")
    return value


def validate_envelope(value: str) -> str:
    """Validate that the encrypted data is an armored envelope of sane size."""
    validate_string_length(value, "encryptedData", max_length=MAX_ENVELOPE_LENGTH)
    if not looks_like_envelope(value):
        raise ValidationError("encryptedData", "must be an armored envelope")
    return value


def validate_email(value: str) -> str:
    validate_string_length(value, "email", max_length=254)
    if not EMAIL_PATTERN.fullmatch(value):
        raise ValidationError("email", "must be a valid email address")
    return value


def validate_amounts(total_assets: Any, fee: Any, net_amount: Any) -> Amounts:
    """
    Recompute fee and net from the reported total and compare.

    The total itself is client-reported and may be negative; fee and net
    must follow from it under the same rule the client used.

    Raises:
        ValidationError: If any number is invalid or fee/net do not match
    """
    for name, value in (("totalAssets", total_assets), ("fee", fee), ("netAmount", net_amount)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"amounts.{name}", "must be a finite number")

    expected = calculate_fee([total_assets])
    if abs(expected.fee - fee) > AMOUNT_TOLERANCE:
        raise ValidationError("amounts.fee", "does not match the total")
    if abs(expected.net_amount - net_amount) > AMOUNT_TOLERANCE:
        raise ValidationError("amounts.netAmount", "does not match the total")
    return expected


# ============================================================
# Rate Limiting Helpers
# ============================================================

def extract_client_id(headers: Dict[str, str], client_host: Optional[str] = None) -> str:
    """
    Extract a client identifier from request headers for rate limiting.
    Falls back to the socket peer, then to a default.
    """
    forwarded = headers.get("x-forwarded-for", "")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"

    if client_host:
        return f"ip:{client_host}"

    return "anonymous"
