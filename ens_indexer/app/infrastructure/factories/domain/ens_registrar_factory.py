from __future__ import annotations

from typing import Callable, Dict

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine
from web3 import AsyncWeb3

from ens_indexer.app.application.services.domain.contract_resolver import ContractResolver
from ens_indexer.app.application.services.domain.process_ens_batch import EnsBatchProcessor
from ens_indexer.app.application.services.domain.reconcile_batch import BatchReconciler
from ens_indexer.app.application.services.domain.token_enricher import TokenEnricher
from ens_indexer.app.config import settings
from ens_indexer.app.domain.ports.out import EnsRegistrarIndexer
from ens_indexer.app.infrastructure.adapters.domain.ens_registrar_indexer import (
    BatchedEnsRegistrarIndexer,
)
from ens_indexer.app.infrastructure.adapters.domain.ens_store import SqlAlchemyEnsStore
from ens_indexer.app.infrastructure.decoders.ens.base_registrar_decoder import (
    BaseRegistrarEventDecoder,
)
from ens_indexer.app.infrastructure.fetchers.ens_metadata_fetcher import (
    EnsMetadataHttpFetcher,
)
from ens_indexer.app.infrastructure.fetchers.registrar_logs_fetcher import (
    Web3RegistrarLogsFetcher,
)

EnsRegistrarIndexerFactory = Callable[[AsyncEngine, AsyncWeb3, httpx.AsyncClient], EnsRegistrarIndexer]

_ENS_REGISTRAR_INDEXER_REGISTRY: Dict[str, EnsRegistrarIndexerFactory] = {}


def _make_sqlalchemy_indexer(
    engine: AsyncEngine,
    *,
    w3: AsyncWeb3,
    http_client: httpx.AsyncClient,
    address: str,
    metadata_base_url: str,
    metadata_concurrency: int,
    blocks_per_batch: int,
    chunk_size: int,
) -> EnsRegistrarIndexer:
    """
    Wire dependencies for SQLAlchemy backend:
    - BaseRegistrar ABI decoder (NameRegistered / NameRenewed / Transfer)
    - AsyncWeb3 log source filtered by registrar address + decoder topics
    - SQLAlchemy store (bulk lookups, ordered upserts into ens.*)
    - contract singleton cache shared by every batch of this run
    - ENS metadata enricher over httpx
    """
    decoder = BaseRegistrarEventDecoder()
    store = SqlAlchemyEnsStore(engine, chunk_size=chunk_size)

    resolver = ContractResolver(store, address=address)
    enricher = TokenEnricher(
        EnsMetadataHttpFetcher(
            client=http_client,
            base_url=metadata_base_url,
            contract_address=address,
        ),
        concurrency=metadata_concurrency,
    )

    processor = EnsBatchProcessor(
        decoder=decoder,
        store=store,
        reconciler=BatchReconciler(contract_resolver=resolver, enricher=enricher),
    )

    source = Web3RegistrarLogsFetcher(
        w3=w3,
        address=address,
        topics=decoder.topics,
    )

    return BatchedEnsRegistrarIndexer(
        source=source,
        processor=processor,
        blocks_per_batch=blocks_per_batch,
    )


# Register backends
_ENS_REGISTRAR_INDEXER_REGISTRY["sqlalchemy"] = lambda engine, w3, http_client: _make_sqlalchemy_indexer(
    engine,
    w3=w3,
    http_client=http_client,
    address=settings.ens_registrar_address,
    metadata_base_url=settings.ens_metadata_base_url,
    metadata_concurrency=settings.metadata_concurrency,
    blocks_per_batch=settings.blocks_per_batch,
    chunk_size=settings.upsert_chunk_size,
)


def ens_registrar_indexer_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    w3: AsyncWeb3,
    http_client: httpx.AsyncClient,
) -> EnsRegistrarIndexer:
    """
    Create an ENS registrar indexer for the given backend.

    The factory wires:
    - ABI-based event decoder and the web3 log source,
    - reconciliation pipeline (contract cache, enricher, batch processor),
    - SQLAlchemy store that upserts owners, tokens and transfers.
    """
    try:
        factory = _ENS_REGISTRAR_INDEXER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported ENS registrar indexer backend: {backend!r}")

    return factory(engine, w3, http_client)
