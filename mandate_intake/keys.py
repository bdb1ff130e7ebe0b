"""
Key management module for the mandate intake service.

Provides the ASCII armor used for keys and envelopes, key sources for the
recipient's public key, and the process-wide KeyStore that caches it.
"""

import asyncio
import binascii
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import httpx
from nacl.public import PrivateKey, PublicKey

from .errors import KeyUnavailable
from .util import b64d, b64e, wrap_lines

PUBLIC_KEY_LABEL = "MANDATE PUBLIC KEY"
PRIVATE_KEY_LABEL = "MANDATE PRIVATE KEY"

KEY_SIZE = 32


# ============================================================
# Armor
# ============================================================

def armor(label: str, headers: Dict[str, str], data: bytes) -> str:
    """
    Render binary data as armored text:

        -----BEGIN <label>-----
        Header: value

        <base64, 64 columns>
        -----END <label>-----
    """
    lines = [f"-----BEGIN {label}-----"]
    lines.extend(f"{k}: {v}" for k, v in headers.items())
    lines.append("")
    lines.append(wrap_lines(b64e(data)))
    lines.append(f"-----END {label}-----")
    return "\n".join(lines) + "\n"


def dearmor(text: str, label: str) -> Tuple[Dict[str, str], bytes]:
    """
    Parse armored text produced by `armor`.

    Raises:
        ValueError: If the armor lines are missing or the body is not base64
    """
    begin = f"-----BEGIN {label}-----"
    end = f"-----END {label}-----"
    lines = [line.strip() for line in text.strip().splitlines()]
    try:
        start = lines.index(begin)
        stop = lines.index(end, start + 1)
    except ValueError:
        raise ValueError(f"not a {label} block")

    headers: Dict[str, str] = {}
    body_lines = []
    in_headers = True
    for line in lines[start + 1:stop]:
        if in_headers:
            if not line:
                in_headers = False
                continue
            if ":" in line:
                key, _, value = line.partition(":")
                headers[key.strip()] = value.strip()
                continue
            in_headers = False
        if line:
            body_lines.append(line)

    try:
        data = b64d("".join(body_lines))
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"{label} body is not valid base64") from e
    return headers, data


# ============================================================
# Recipient key
# ============================================================

@dataclass(frozen=True)
class RecipientKey:
    """A parsed recipient public key."""
    kid: str
    public_key: PublicKey


def load_public_key(armored: str) -> RecipientKey:
    """
    Parse an armored public key.

    Raises:
        KeyUnavailable: If the armor or the key bytes are malformed
    """
    try:
        headers, raw = dearmor(armored, PUBLIC_KEY_LABEL)
    except ValueError as e:
        raise KeyUnavailable(f"public key could not be parsed: {e}") from e
    if len(raw) != KEY_SIZE:
        raise KeyUnavailable(f"public key must be {KEY_SIZE} bytes, got {len(raw)}")
    return RecipientKey(kid=headers.get("Key-Id", ""), public_key=PublicKey(raw))


def generate_key_pair(kid: str) -> Tuple[str, str]:
    """
    Generate a recipient key pair.

    Returns:
        Tuple of (armored_public_key, armored_private_key)
    """
    sk = PrivateKey.generate()
    public = armor(PUBLIC_KEY_LABEL, {"Key-Id": kid}, bytes(sk.public_key))
    private = armor(PRIVATE_KEY_LABEL, {"Key-Id": kid}, bytes(sk))
    return public, private


# ============================================================
# Key sources
# ============================================================

class KeySource(ABC):
    """Abstract interface for fetching the armored recipient public key."""

    @abstractmethod
    async def fetch(self) -> str:
        """
        Fetch the armored key text.

        Raises:
            KeyUnavailable: If the key cannot be obtained
        """


class FileKeySource(KeySource):
    """Reads the armored key from a local file, off the event loop."""

    def __init__(self, path: str):
        self._path = Path(path)

    async def fetch(self) -> str:
        try:
            return await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except OSError as e:
            raise KeyUnavailable(f"cannot read public key {self._path}: {e}") from e


class HttpKeySource(KeySource):
    """Fetches the armored key from a static URL, e.g. the backend's /public-key.asc."""

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self._url = url
        self._client = client
        self._timeout = timeout

    async def fetch(self) -> str:
        try:
            if self._client is not None:
                resp = await self._client.get(self._url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(self._url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise KeyUnavailable(f"cannot fetch public key from {self._url}: {e}") from e
        return resp.text


# ============================================================
# Key store
# ============================================================

class KeyStore:
    """
    Process-wide cache of the recipient public key.

    The key is fetched at most once until `invalidate()` is called.
    Concurrent callers of `ensure_loaded()` share a single fetch.
    """

    def __init__(self, source: KeySource):
        self._source = source
        self._material: Optional[RecipientKey] = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._material is not None

    @property
    def material(self) -> Optional[RecipientKey]:
        return self._material

    async def ensure_loaded(self) -> RecipientKey:
        """
        Return the cached key, loading it from the source on first use.

        Raises:
            KeyUnavailable: If the source fails or the key does not parse
        """
        if self._material is not None:
            return self._material
        async with self._lock:
            if self._material is None:
                armored = await self._source.fetch()
                self._material = load_public_key(armored)
            return self._material

    def invalidate(self) -> None:
        """Drop the cached key so the next call fetches it again."""
        self._material = None
