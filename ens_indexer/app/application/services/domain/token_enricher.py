from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ens_indexer.app.domain.models import Token, TokenMetadata
from ens_indexer.app.domain.ports.out import TokenMetadataFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichmentStats:
    attempted: int = 0
    failed: int = 0


class TokenEnricher:
    """
    Best-effort descriptive metadata for tokens.

    Each call touches exactly one token. A failed fetch is logged and the
    token gets empty name/uri/image_uri so the row stays writable; the error
    never reaches the batch.
    """

    def __init__(self, fetcher: TokenMetadataFetcher, *, concurrency: int = 8) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self._fetcher = fetcher
        self._concurrency = concurrency

    async def enrich(self, token: Token) -> bool:
        """Apply fetched metadata to `token`. Returns False when defaults were used."""
        try:
            meta = await self._fetcher.fetch(token_id=int(token.id))
        except Exception as exc:
            logger.warning(
                "[API] Error during fetch token %s metadata: %s",
                token.id,
                exc,
                extra={"token_id": token.id},
            )
            TokenMetadata.empty().apply_to(token)
            return False

        meta.apply_to(token)
        return True

    async def enrich_many(self, tokens: Sequence[Token]) -> EnrichmentStats:
        if not tokens:
            return EnrichmentStats()

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _bounded(token: Token) -> bool:
            async with semaphore:
                return await self.enrich(token)

        results = await asyncio.gather(*(_bounded(t) for t in tokens))
        failed = sum(1 for ok in results if not ok)

        if failed:
            logger.info(
                "Token metadata enrichment finished with failures (%s/%s)",
                failed,
                len(results),
            )

        return EnrichmentStats(attempted=len(results), failed=failed)
