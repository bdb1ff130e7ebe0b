"""
Asset lookup used to fill the optional amounts block of a submission.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

import httpx

from .errors import TransportFailure


class AssetLookup(ABC):
    """Returns the asset values recorded for a client, or None when there is no data."""

    @abstractmethod
    async def values(self, identifier: str) -> Optional[List[Any]]:
        pass


class HttpAssetLookup(AssetLookup):
    """
    Looks up `GET {base_url}/{identifier}`, expecting a JSON list of
    records that each carry a `value` field. Values are returned raw;
    `calculate_fee` decides what counts as a number.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient):
        self._base_url = base_url.rstrip("/")
        self._client = client

    async def values(self, identifier: str) -> Optional[List[Any]]:
        url = f"{self._base_url}/{identifier}"
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise TransportFailure(f"asset lookup failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise TransportFailure(f"asset lookup failed with status {resp.status_code}",
                                   status=resp.status_code)
        try:
            records = resp.json()
        except ValueError as e:
            raise TransportFailure("asset lookup returned invalid JSON") from e

        if not isinstance(records, list) or not records:
            return None
        return [r.get("value") if isinstance(r, dict) else None for r in records]
