from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Sequence

from web3 import AsyncWeb3

from ens_indexer.app.domain.models import BlockHeader, BlockLogs, RawLog
from ens_indexer.app.domain.ports.out import RegistrarLogsSource

logger = logging.getLogger(__name__)


def _to_hex(val: Any) -> str:
    if isinstance(val, str):
        v = val.lower()
        return v if v.startswith("0x") else "0x" + v
    return "0x" + bytes(val).hex()


def _to_bytes(val: Any) -> bytes:
    if isinstance(val, str):
        return bytes.fromhex(val[2:] if val.startswith("0x") else val)
    return bytes(val)


class Web3RegistrarLogsFetcher(RegistrarLogsSource):
    """
    Ingestion source using AsyncWeb3.

    One eth_getLogs per batch, filtered by registrar address and the
    registrar topic0 set, then one eth_getBlockByNumber per distinct block
    (bounded concurrency) for timestamps.

    Returned blocks are sorted by height and their logs by log_index.
    """

    def __init__(
        self,
        *,
        w3: AsyncWeb3,
        address: str,
        topics: Sequence[bytes],
        block_concurrency: int = 10,
    ) -> None:
        self._w3 = w3
        self._address = address.lower()
        self._topics = [_to_hex(t) for t in topics]
        self._block_concurrency = block_concurrency

    async def latest_block(self) -> int:
        return int(await self._w3.eth.block_number)

    async def fetch_batch(
        self,
        *,
        from_block: int,
        to_block: int,
    ) -> list[BlockLogs]:
        raw_logs = await self._w3.eth.get_logs(
            {
                "address": self._w3.to_checksum_address(self._address),
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [self._topics],
            }
        )

        by_block: dict[int, list[RawLog]] = defaultdict(list)
        for r in raw_logs:
            # Reorged logs can show up with removed=True on some providers.
            if r.get("removed"):
                continue
            by_block[int(r["blockNumber"])].append(
                RawLog(
                    address=_to_hex(r["address"]),
                    topics=tuple(_to_bytes(t) for t in r["topics"]),
                    data=_to_bytes(r["data"]),
                    log_index=int(r["logIndex"]),
                    transaction_hash=_to_hex(r["transactionHash"]),
                )
            )

        if not by_block:
            return []

        headers = await self._fetch_headers(sorted(by_block))

        logger.debug(
            "Fetched %s registrar logs in %s blocks (%s-%s)",
            sum(len(v) for v in by_block.values()),
            len(by_block),
            from_block,
            to_block,
        )

        return [
            BlockLogs(
                header=headers[height],
                logs=tuple(sorted(by_block[height], key=lambda lg: lg.log_index)),
            )
            for height in sorted(by_block)
        ]

    async def _fetch_headers(self, heights: list[int]) -> dict[int, BlockHeader]:
        semaphore = asyncio.Semaphore(self._block_concurrency)

        async def _one(height: int) -> BlockHeader:
            async with semaphore:
                block = await self._w3.eth.get_block(height)
            return BlockHeader(
                height=int(block["number"]),
                timestamp=int(block["timestamp"]),
                hash=_to_hex(block["hash"]) if block.get("hash") is not None else None,
            )

        headers = await asyncio.gather(*(_one(h) for h in heights))
        return {h.height: h for h in headers}
