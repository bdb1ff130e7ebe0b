"""
Submission encryption.

A submission record is serialized to canonical JSON and sealed under the
recipient public key with a libsodium sealed box: a fresh ephemeral X25519
key pair agrees a session key with the recipient key, and the payload is
encrypted under it with XSalsa20-Poly1305. Every call therefore produces
different ciphertext for the same record.

This module only seals. Opening an envelope requires the recipient private
key, which the service never holds.
"""

import logging
from typing import Mapping

from nacl.exceptions import CryptoError
from nacl.public import SealedBox

from .errors import EncryptionFailure, KeyUnavailable
from .keys import KeyStore, RecipientKey, armor
from .util import canonicalize

logger = logging.getLogger("intake.encryption")

ENVELOPE_LABEL = "MANDATE ENVELOPE"
ENVELOPE_VERSION = "1"


def serialize_record(record: Mapping[str, str]) -> bytes:
    """Canonical JSON bytes of a submission record."""
    return canonicalize(dict(record))


def encrypt(record: Mapping[str, str], key: RecipientKey) -> str:
    """
    Seal a submission record under the recipient key.

    Returns:
        The armored envelope text

    Raises:
        KeyUnavailable: If no key is given
        EncryptionFailure: If serialization or sealing fails
    """
    if key is None:
        raise KeyUnavailable("no recipient key loaded")
    try:
        plaintext = serialize_record(record)
        sealed = SealedBox(key.public_key).encrypt(plaintext)
    except (AttributeError, TypeError, ValueError, CryptoError) as e:
        logger.error("Envelope sealing failed: %s", type(e).__name__)
        raise EncryptionFailure("submission data could not be encrypted") from e
    return armor(ENVELOPE_LABEL, {"Version": ENVELOPE_VERSION, "Key-Id": getattr(key, "kid", "")}, sealed)


async def encrypt_with_store(record: Mapping[str, str], store: KeyStore) -> str:
    """Seal a record, loading the recipient key on first use."""
    key = await store.ensure_loaded()
    return encrypt(record, key)


def looks_like_envelope(text: str) -> bool:
    """Cheap shape check used by the acceptor before storing an envelope."""
    if not isinstance(text, str):
        return False
    stripped = text.strip()
    return (stripped.startswith(f"-----BEGIN {ENVELOPE_LABEL}-----")
            and stripped.endswith(f"-----END {ENVELOPE_LABEL}-----"))
