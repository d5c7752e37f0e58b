from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from ens_indexer.app.domain.models import (
    BlockHeader,
    BlockLogs,
    Contract,
    EnsEvent,
    LegacyContract,
    Owner,
    RawLog,
    Token,
    TokenMetadata,
    Transfer,
)


class EnsRegistrarIndexer(Protocol):
    """
    Port for indexing ENS registrar activity into the ens schema.

    Implementations pull log batches for a block range, reconcile them into
    owners/tokens/transfers and persist each batch idempotently, strictly
    in chain order.
    """

    async def index_block_range(
        self,
        *,
        from_block: int,
        to_block: int,
    ) -> None:
        ...


class RegistrarLogsSource(Protocol):
    """
    Ingestion boundary: ordered blocks with the registrar logs they carry.

    Logs are expected to be pre-filtered to the registrar address and the
    three registrar topics.
    """

    async def fetch_batch(
        self,
        *,
        from_block: int,
        to_block: int,
    ) -> list[BlockLogs]:
        ...

    async def latest_block(self) -> int:
        ...


class EnsEventDecoder(Protocol):
    def decode_log(self, log: RawLog, header: BlockHeader) -> EnsEvent:
        """
        Decode one registrar log into a normalized event.

        Raises EventDecodingError when the log is not a recognized registrar
        event or its payload is malformed.
        """
        ...


class TokenMetadataFetcher(Protocol):
    """
    Low-level dependency used by the token enricher.

    Implementations call the external metadata service for one token id and
    return name/uri/image_uri. Any failure is raised to the caller.
    """

    async def fetch(self, *, token_id: int) -> TokenMetadata:
        ...


class EnsStore(Protocol):
    """
    Persistence gateway for the ens entity graph.

    - bulk point lookups by identity set (one call per entity kind),
    - singleton lookup/insert for the registrar contract,
    - dependency-ordered upsert of a batch working set in one transaction.
    """

    async def find_owners(self, ids: Iterable[str]) -> dict[str, Owner]:
        ...

    async def find_tokens(self, ids: Iterable[str]) -> dict[str, Token]:
        ...

    async def get_contract(self, address: str) -> Contract | None:
        ...

    async def insert_contract(self, contract: Contract, legacy: LegacyContract) -> None:
        ...

    async def save_batch(
        self,
        *,
        owners: Sequence[Owner],
        tokens: Sequence[Token],
        transfers: Sequence[Transfer],
    ) -> None:
        ...
