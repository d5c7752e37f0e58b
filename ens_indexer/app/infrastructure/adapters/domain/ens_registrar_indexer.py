from __future__ import annotations

import logging
from typing import Iterable

from ens_indexer.app.application.services.domain.process_ens_batch import (
    BatchReport,
    EnsBatchProcessor,
)
from ens_indexer.app.domain.ports.out import RegistrarLogsSource

logger = logging.getLogger(__name__)


def iter_block_windows(from_block: int, to_block: int, size: int) -> Iterable[tuple[int, int]]:
    """Consecutive inclusive windows covering [from_block, to_block]."""
    if size <= 0:
        raise ValueError("size must be positive")
    start = from_block
    while start <= to_block:
        end = min(start + size - 1, to_block)
        yield start, end
        start = end + 1


class BatchedEnsRegistrarIndexer:
    """
    Indexer adapter: pulls registrar logs window by window and hands each
    window to EnsBatchProcessor as one batch.

    Strategy:
    - Split the block range into windows of `blocks_per_batch`.
    - Windows are fetched and processed strictly one after another, in chain
      order; a batch is never started before the previous one is persisted.
    - A failing batch stops the run; re-running the same range is safe
      (all writes are upserts by primary key).
    """

    def __init__(
        self,
        *,
        source: RegistrarLogsSource,
        processor: EnsBatchProcessor,
        blocks_per_batch: int = 1_000,
    ) -> None:
        self._source = source
        self._processor = processor
        self._blocks_per_batch = blocks_per_batch

    async def index_block_range(
        self,
        *,
        from_block: int,
        to_block: int,
    ) -> None:
        logger.info(
            "Starting ENS registrar indexing",
            extra={"from_block": from_block, "to_block": to_block},
        )

        totals = BatchReport(from_block=from_block, to_block=to_block)
        for batch_idx, (start, end) in enumerate(
            iter_block_windows(from_block, to_block, self._blocks_per_batch), start=1
        ):
            batch = await self._source.fetch_batch(from_block=start, to_block=end)
            report = await self._processor.process(batch)

            logger.info(
                "Processed registrar batch %s (blocks %s-%s, events=%s)",
                batch_idx,
                start,
                end,
                report.events,
            )

            totals = BatchReport(
                from_block=from_block,
                to_block=to_block,
                events=totals.events + report.events,
                owners=totals.owners + report.owners,
                tokens=totals.tokens + report.tokens,
                transfers=totals.transfers + report.transfers,
                enriched=totals.enriched + report.enriched,
                enrichment_failures=totals.enrichment_failures + report.enrichment_failures,
            )

        logger.info(
            "Finished ENS registrar indexing",
            extra={
                "from_block": from_block,
                "to_block": to_block,
                "events": totals.events,
                "transfers": totals.transfers,
                "enrichment_failures": totals.enrichment_failures,
            },
        )
