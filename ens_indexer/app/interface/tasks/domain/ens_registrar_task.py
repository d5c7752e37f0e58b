from __future__ import annotations

import httpx
from web3 import AsyncHTTPProvider, AsyncWeb3

from ens_indexer.app.application.services.block_bounds import resolve_block_bounds
from ens_indexer.app.application.services.domain.index_ens_registrar_for_block_range import (
    BlockRange,
    index_ens_registrar_for_block_range,
)
from ens_indexer.app.config import settings
from ens_indexer.app.domain.ports.out import EnsRegistrarIndexer
from ens_indexer.app.infrastructure.db.engine import create_app_async_engine
from ens_indexer.app.infrastructure.factories.domain.ens_registrar_factory import (
    ens_registrar_indexer_factory,
)


async def index_ens_registrar_task(
    *,
    from_block: int | str,
    to_block: int | str,
    backend: str = "sqlalchemy",
) -> None:
    """
    Task: index ENS BaseRegistrar activity into ens.owners / ens.tokens / ens.transfers.

    - pulls NameRegistered / NameRenewed / Transfer logs per block window,
    - reconciles them into the entity graph (with ENS metadata enrichment),
    - upserts each window as one batch.

    from_block / to_block can be:
    - int (a specific block number),
    - "earliest" (registrar deployment block),
    - "latest" (current chain head).
    """
    engine = create_app_async_engine()
    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            settings.rpc_url,
            request_kwargs={"timeout": settings.rpc_timeout_seconds},
        )
    )
    http_client = httpx.AsyncClient(timeout=settings.metadata_timeout_seconds)
    try:
        resolved_from_block, resolved_to_block = await resolve_block_bounds(
            from_block=from_block,
            to_block=to_block,
            earliest=settings.ens_registrar_start_block,
            latest=lambda: w3.eth.block_number,
        )

        indexer: EnsRegistrarIndexer = ens_registrar_indexer_factory(
            backend=backend,
            engine=engine,
            w3=w3,
            http_client=http_client,
        )

        await index_ens_registrar_for_block_range(
            indexer=indexer,
            block_range=BlockRange(
                from_block=resolved_from_block,
                to_block=resolved_to_block,
            ),
        )
    finally:
        await http_client.aclose()
        await engine.dispose()
