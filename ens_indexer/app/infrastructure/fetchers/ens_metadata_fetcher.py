from __future__ import annotations

from typing import Any

import httpx

from ens_indexer.app.domain.errors import MetadataFetchError
from ens_indexer.app.domain.models import TokenMetadata
from ens_indexer.app.domain.ports.out import TokenMetadataFetcher


class EnsMetadataHttpFetcher(TokenMetadataFetcher):
    """
    ENS metadata service client (https://metadata.ens.domains/docs).

    GET {base_url}/{contract_address}/{token_id} returns a JSON object with
    (among others) `name`, `url` and `image`.

    Raises:
      - httpx.HTTPError on transport failures and non-2xx responses,
      - MetadataFetchError when the body is not a JSON object.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        contract_address: str,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._contract_address = contract_address.lower()

    def token_url(self, token_id: int) -> str:
        return f"{self._base_url}/{self._contract_address}/{token_id}"

    async def fetch(self, *, token_id: int) -> TokenMetadata:
        response = await self._client.get(self.token_url(token_id))
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"Token {token_id}: metadata is not valid JSON") from exc

        if not isinstance(payload, dict):
            raise MetadataFetchError(
                f"Token {token_id}: expected JSON object, got {type(payload).__name__}"
            )

        return TokenMetadata(
            name=self._as_text(payload.get("name")),
            uri=self._as_text(payload.get("url")),
            image_uri=self._as_text(payload.get("image")),
        )

    @staticmethod
    def _as_text(val: Any) -> str:
        if val is None:
            return ""
        if isinstance(val, str):
            return val.strip()
        return str(val)
