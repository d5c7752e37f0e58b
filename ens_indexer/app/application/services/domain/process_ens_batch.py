from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ens_indexer.app.application.services.domain.reconcile_batch import (
    BatchReconciler,
    collect_batch_identities,
)
from ens_indexer.app.domain.models import BlockLogs, EnsEvent
from ens_indexer.app.domain.ports.out import EnsEventDecoder, EnsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchReport:
    from_block: int | None
    to_block: int | None
    events: int = 0
    owners: int = 0
    tokens: int = 0
    transfers: int = 0
    enriched: int = 0
    enrichment_failures: int = 0


class EnsBatchProcessor:
    """
    Processes one batch of registrar blocks end to end:

    1) decode every log in batch order (decoding errors abort the batch),
    2) bulk pre-fetch owners and tokens by identity set, concurrently,
    3) reconcile events into working sets and enrich tokens,
    4) persist owners -> tokens -> transfers in one write.

    Nothing is flushed unless step 4 succeeds as a whole, so a failed batch
    can be replayed from its raw input.
    """

    def __init__(
        self,
        *,
        decoder: EnsEventDecoder,
        store: EnsStore,
        reconciler: BatchReconciler,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._decoder = decoder
        self._store = store
        self._reconciler = reconciler
        self._clock = clock

    def decode_batch(self, batch: Sequence[BlockLogs]) -> list[EnsEvent]:
        events: list[EnsEvent] = []
        for block in batch:
            for log in block.logs:
                events.append(self._decoder.decode_log(log, block.header))
        return events

    async def process(self, batch: Sequence[BlockLogs]) -> BatchReport:
        from_block = batch[0].header.height if batch else None
        to_block = batch[-1].header.height if batch else None

        events = self.decode_batch(batch)
        if not events:
            return BatchReport(from_block=from_block, to_block=to_block)

        identities = collect_batch_identities(events)
        owners, tokens = await asyncio.gather(
            self._store.find_owners(identities.owner_ids),
            self._store.find_tokens(identities.token_ids),
        )

        reconciled = await self._reconciler.reconcile(
            events,
            owners=owners,
            tokens=tokens,
            now=int(self._clock()),
        )

        await self._store.save_batch(
            owners=reconciled.owners,
            tokens=reconciled.tokens,
            transfers=reconciled.transfers,
        )

        report = BatchReport(
            from_block=from_block,
            to_block=to_block,
            events=len(events),
            owners=len(reconciled.owners),
            tokens=len(reconciled.tokens),
            transfers=len(reconciled.transfers),
            enriched=reconciled.enrichment.attempted,
            enrichment_failures=reconciled.enrichment.failed,
        )
        logger.info(
            "Processed batch %s-%s: events=%s owners=%s tokens=%s transfers=%s (enrich_errors=%s)",
            report.from_block,
            report.to_block,
            report.events,
            report.owners,
            report.tokens,
            report.transfers,
            report.enrichment_failures,
        )
        return report
