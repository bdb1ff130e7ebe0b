"""
Submission client.

Runs one mandate submission as a single asynchronous task:

    strokes check -> signature render -> identifier -> key load (await)
    -> encryption -> asset lookup (await, optional) -> send (await)

Each call is independent. The only shared state is the KeyStore, which is
read-only once loaded. Nothing is retried; a failure ends the attempt and
the caller decides whether to resubmit.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import httpx

from .assets import AssetLookup
from .encryption import encrypt
from .errors import EmptySignature, TransportFailure
from .fees import calculate_fee
from .identity import derive
from .keys import KeyStore
from .signature import is_empty, parse_strokes, render_signature, to_data_url

logger = logging.getLogger("intake.client")

GENERIC_FAILURE = "An error occurred while submitting the form."
GENERIC_SUCCESS = "Form submitted successfully."

# Form fields the identifier is derived from
LAST_NAME_FIELD = "nom"
FIRST_NAME_FIELD = "prenom"
DATE_OF_BIRTH_FIELD = "dateNaissance"

# Never sealed into the envelope
EXCLUDED_FIELDS = ("signature", "identifier", "uuid")


@dataclass(frozen=True)
class Receipt:
    identifier: str
    message: str


def build_record(form: Mapping[str, Any]) -> Dict[str, str]:
    """The submission record: every form field except the signature and identifier."""
    return {
        str(k): "" if v is None else str(v)
        for k, v in form.items()
        if k not in EXCLUDED_FIELDS
    }


def _response_message(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class SubmissionClient:
    """Posts sealed mandates to the acceptance endpoint."""

    def __init__(
        self,
        endpoint: str,
        key_store: KeyStore,
        http: httpx.AsyncClient,
        asset_lookup: Optional[AssetLookup] = None,
        signature_color: str = "#000000",
    ):
        self._endpoint = endpoint
        self._keys = key_store
        self._http = http
        self._assets = asset_lookup
        self._color = signature_color

    async def submit(
        self,
        form: Mapping[str, Any],
        strokes: Iterable[Any],
        canvas_size: Tuple[int, int],
    ) -> Receipt:
        """
        Submit one mandate.

        Raises:
            EmptySignature: Before any other work if nothing was drawn
            KeyUnavailable: If the recipient key cannot be loaded
            EncryptionFailure: If sealing fails
            TransportFailure: If the acceptor is unreachable or refuses
        """
        parsed = parse_strokes(strokes)
        if is_empty(parsed):
            raise EmptySignature()

        signature = to_data_url(render_signature(parsed, canvas_size, self._color))

        identifier = derive(
            str(form.get(LAST_NAME_FIELD) or ""),
            str(form.get(FIRST_NAME_FIELD) or ""),
            str(form.get(DATE_OF_BIRTH_FIELD) or ""),
        )

        key = await self._keys.ensure_loaded()
        envelope = encrypt(build_record(form), key)

        payload: Dict[str, Any] = {
            "identifier": identifier,
            "encryptedData": envelope,
            "signature": signature,
        }

        if self._assets is not None:
            values = await self._assets.values(identifier)
            if values is not None:
                payload["amounts"] = calculate_fee(values).to_dict()

        try:
            resp = await self._http.post(self._endpoint, json=payload)
        except httpx.HTTPError as e:
            logger.error("Submission %s could not reach %s: %s", identifier, self._endpoint, e)
            raise TransportFailure(GENERIC_FAILURE) from e

        if resp.is_error:
            message = _response_message(resp, GENERIC_FAILURE)
            logger.error("Submission %s refused with status %s", identifier, resp.status_code)
            raise TransportFailure(message, status=resp.status_code)

        message = _response_message(resp, GENERIC_SUCCESS)
        logger.info("Submission %s accepted", identifier)
        return Receipt(identifier=identifier, message=message)
