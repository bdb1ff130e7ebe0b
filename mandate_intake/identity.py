"""
Deterministic client identifiers.

The identifier is a UUID-shaped rendering of a SHA-256 digest over the
client's normalized last name, first name and date of birth. The same person
always maps to the same identifier, which is what lets a resubmitted mandate
land on the existing record.
"""

import re

from .util import sha256_hex

IDENTIFIER_PATTERN = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$')

# Group lengths of the 8-4-4-4-12 textual form
_GROUPS = (8, 4, 4, 4, 12)


def normalized_identity(last_name: str, first_name: str, date_of_birth: str) -> str:
    """Build the hashed string. Names are trimmed and lowercased, the date is kept verbatim."""
    return f"{last_name.strip().lower()}_{first_name.strip().lower()}_{date_of_birth}"


def derive(last_name: str, first_name: str, date_of_birth: str) -> str:
    """
    Derive the identifier for a client.

    Never fails: empty or malformed fields still produce a well-formed
    identifier.
    """
    digest = sha256_hex(normalized_identity(last_name, first_name, date_of_birth))
    parts = []
    pos = 0
    for length in _GROUPS:
        parts.append(digest[pos:pos + length])
        pos += length
    return "-".join(parts)


def is_identifier(value: str) -> bool:
    """Check that a value has the lowercase 8-4-4-4-12 hex shape."""
    return isinstance(value, str) and bool(IDENTIFIER_PATTERN.match(value))
