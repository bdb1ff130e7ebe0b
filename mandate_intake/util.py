"""
Utility functions for the mandate intake service.

Provides canonical JSON serialization, hashing, encoding and time helpers.
"""

import json
import hashlib
import base64
import time
from typing import Any, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert object to canonical JSON bytes.

    Canonical JSON:
    - Lexicographically sorted keys
    - No whitespace
    - UTF-8 encoded
    """
    s = json.dumps(obj, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return s.encode('utf-8')


def sha256_hex(data: Union[bytes, str]) -> str:
    """Compute SHA-256 hash and return as hex string."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def now_epoch() -> int:
    """Get current Unix timestamp as integer."""
    return int(time.time())


def b64e(b: bytes) -> str:
    """Base64 encode bytes to string."""
    return base64.b64encode(b).decode('ascii')


def b64d(s: str) -> bytes:
    """
    Strictly base64 decode a string to bytes.

    Raises binascii.Error on characters outside the base64 alphabet.
    """
    return base64.b64decode(s.encode('ascii'), validate=True)


def wrap_lines(s: str, width: int = 64) -> str:
    """Split a long string into newline separated chunks of `width` characters."""
    return "\n".join(s[i:i + width] for i in range(0, len(s), width))
