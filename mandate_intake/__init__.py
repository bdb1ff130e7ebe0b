"""
Mandate Intake

Client-intake pipeline for signed, encrypted mandates.

A submitter derives a deterministic identifier from the client's name and
date of birth, seals the form under the firm's public key and posts it,
together with a re-rendered signature, to the acceptance backend, which
stores the envelope and notifies the firm by email.

Usage:
    from mandate_intake import derive, KeyStore, FileKeySource, encrypt

    identifier = derive("Dupont", "Marie", "1980-05-12")

    store = KeyStore(FileKeySource("keys/public-key.asc"))
    key = await store.ensure_loaded()
    envelope = encrypt({"nom": "Dupont", "prenom": "Marie"}, key)
"""

__version__ = "1.0.0"

from .identity import derive, is_identifier
from .fees import Amounts, calculate_fee
from .keys import (
    KeyStore,
    KeySource,
    FileKeySource,
    HttpKeySource,
    RecipientKey,
    load_public_key,
    generate_key_pair,
)
from .encryption import encrypt, encrypt_with_store
from .signature import Stroke, StrokePoint, render_signature, to_data_url, decode_data_url
from .client import SubmissionClient, Receipt
from .assets import AssetLookup, HttpAssetLookup
from .errors import (
    IntakeError,
    EmptySignature,
    KeyUnavailable,
    EncryptionFailure,
    TransportFailure,
    ValidationError,
)

__all__ = [
    "__version__",

    # Identity
    "derive",
    "is_identifier",

    # Fees
    "Amounts",
    "calculate_fee",

    # Keys
    "KeyStore",
    "KeySource",
    "FileKeySource",
    "HttpKeySource",
    "RecipientKey",
    "load_public_key",
    "generate_key_pair",

    # Encryption
    "encrypt",
    "encrypt_with_store",

    # Signature
    "Stroke",
    "StrokePoint",
    "render_signature",
    "to_data_url",
    "decode_data_url",

    # Client
    "SubmissionClient",
    "Receipt",
    "AssetLookup",
    "HttpAssetLookup",

    # Errors
    "IntakeError",
    "EmptySignature",
    "KeyUnavailable",
    "EncryptionFailure",
    "TransportFailure",
    "ValidationError",
]
