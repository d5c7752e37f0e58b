from __future__ import annotations

from typing import Any, Iterable, Sequence

import pytest
from eth_abi import encode as abi_encode
from eth_utils import keccak

from ens_indexer.app.application.services.domain.contract_resolver import ContractResolver
from ens_indexer.app.application.services.domain.reconcile_batch import BatchReconciler
from ens_indexer.app.application.services.domain.token_enricher import TokenEnricher
from ens_indexer.app.domain.errors import BatchPersistenceError
from ens_indexer.app.domain.models import (
    Contract,
    LegacyContract,
    Owner,
    RawLog,
    Token,
    TokenMetadata,
    Transfer,
)

REGISTRAR = "0x57f1887a8bf19b14fc0df6fd9b2acc9af147ea85"
FUTURE = 4_102_444_800  # 2100-01-01
PAST = 946_684_800  # 2000-01-01
NOW = 1_700_000_000

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
ZERO = "0x" + "00" * 20

TOPIC_NAME_REGISTERED = keccak(text="NameRegistered(uint256,address,uint256)")
TOPIC_NAME_RENEWED = keccak(text="NameRenewed(uint256,uint256)")
TOPIC_TRANSFER = keccak(text="Transfer(address,address,uint256)")


# -----------------------------------------------------------------------------
# Log builders
# -----------------------------------------------------------------------------


def address_topic(address: str) -> bytes:
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def uint_topic(value: int) -> bytes:
    return value.to_bytes(32, "big")


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def registered_log(token_id: int, owner: str, expires: int, *, tx: int = 1, log_index: int = 0) -> RawLog:
    return RawLog(
        address=REGISTRAR,
        topics=(TOPIC_NAME_REGISTERED, uint_topic(token_id), address_topic(owner)),
        data=abi_encode(["uint256"], [expires]),
        log_index=log_index,
        transaction_hash=tx_hash(tx),
    )


def renewed_log(token_id: int, expires: int, *, tx: int = 1, log_index: int = 0) -> RawLog:
    return RawLog(
        address=REGISTRAR,
        topics=(TOPIC_NAME_RENEWED, uint_topic(token_id)),
        data=abi_encode(["uint256"], [expires]),
        log_index=log_index,
        transaction_hash=tx_hash(tx),
    )


def transfer_log(sender: str, receiver: str, token_id: int, *, tx: int = 1, log_index: int = 0) -> RawLog:
    return RawLog(
        address=REGISTRAR,
        topics=(TOPIC_TRANSFER, address_topic(sender), address_topic(receiver), uint_topic(token_id)),
        data=b"",
        log_index=log_index,
        transaction_hash=tx_hash(tx),
    )


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class InMemoryEnsStore:
    """Row-level fake of the persistence gateway; entities are re-materialized on every read."""

    def __init__(self) -> None:
        self.owners: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, dict[str, Any]] = {}
        self.transfers: dict[str, dict[str, Any]] = {}
        self.contracts: dict[str, Contract] = {}
        self.legacy_contracts: dict[str, LegacyContract] = {}

        self.calls: list[str] = []
        self.contract_inserts = 0
        self.fail_on_save: Exception | None = None

    async def find_owners(self, ids: Iterable[str]) -> dict[str, Owner]:
        self.calls.append("find_owners")
        return {i: Owner(id=i) for i in ids if i in self.owners}

    async def find_tokens(self, ids: Iterable[str]) -> dict[str, Token]:
        self.calls.append("find_tokens")
        out: dict[str, Token] = {}
        for i in ids:
            row = self.tokens.get(i)
            if row is None:
                continue
            out[i] = Token(
                id=row["id"],
                owner=Owner(id=row["owner_id"]) if row["owner_id"] else None,
                contract=self.contracts.get(row["contract_id"]),
                name=row["name"],
                image_uri=row["image_uri"],
                uri=row["uri"],
                expires=row["expires"],
            )
        return out

    async def get_contract(self, address: str) -> Contract | None:
        self.calls.append("get_contract")
        return self.contracts.get(address)

    async def insert_contract(self, contract: Contract, legacy: LegacyContract) -> None:
        self.calls.append("insert_contract")
        self.contract_inserts += 1
        self.contracts[contract.id] = contract
        self.legacy_contracts[legacy.id] = legacy

    async def save_batch(
        self,
        *,
        owners: Sequence[Owner],
        tokens: Sequence[Token],
        transfers: Sequence[Transfer],
    ) -> None:
        self.calls.append("save_batch")
        if self.fail_on_save is not None:
            raise BatchPersistenceError("storage unavailable") from self.fail_on_save

        for o in owners:
            self.owners[o.id] = {"id": o.id}
        for t in tokens:
            assert t.owner is None or t.owner.id in self.owners
            self.tokens[t.id] = {
                "id": t.id,
                "owner_id": t.owner.id if t.owner else None,
                "contract_id": t.contract.id if t.contract else None,
                "name": t.name,
                "image_uri": t.image_uri,
                "uri": t.uri,
                "expires": t.expires,
            }
        for tr in transfers:
            assert tr.token.id in self.tokens
            self.transfers[tr.id] = {
                "id": tr.id,
                "block": tr.block,
                "timestamp": tr.timestamp,
                "transaction_hash": tr.transaction_hash,
                "from_id": tr.from_owner.id,
                "to_id": tr.to_owner.id,
                "token_id": tr.token.id,
            }

    def snapshot(self) -> dict[str, Any]:
        return {
            "owners": dict(self.owners),
            "tokens": {k: dict(v) for k, v in self.tokens.items()},
            "transfers": {k: dict(v) for k, v in self.transfers.items()},
            "contracts": dict(self.contracts),
        }


class ScriptedMetadataFetcher:
    """Returns canned metadata per token id; ids listed in `failures` raise."""

    def __init__(
        self,
        responses: dict[int, TokenMetadata] | None = None,
        failures: dict[int, Exception] | None = None,
    ) -> None:
        self.responses = responses or {}
        self.failures = failures or {}
        self.calls: list[int] = []

    async def fetch(self, *, token_id: int) -> TokenMetadata:
        self.calls.append(token_id)
        if token_id in self.failures:
            raise self.failures[token_id]
        return self.responses.get(
            token_id,
            TokenMetadata(
                name=f"name-{token_id}.eth",
                uri=f"https://app.ens.domains/name-{token_id}.eth",
                image_uri=f"https://metadata.ens.domains/image/{token_id}",
            ),
        )


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryEnsStore:
    return InMemoryEnsStore()


@pytest.fixture
def fetcher() -> ScriptedMetadataFetcher:
    return ScriptedMetadataFetcher()


@pytest.fixture
def resolver(store: InMemoryEnsStore) -> ContractResolver:
    return ContractResolver(store, address=REGISTRAR)


@pytest.fixture
def enricher(fetcher: ScriptedMetadataFetcher) -> TokenEnricher:
    return TokenEnricher(fetcher, concurrency=4)


@pytest.fixture
def reconciler(resolver: ContractResolver, enricher: TokenEnricher) -> BatchReconciler:
    return BatchReconciler(contract_resolver=resolver, enricher=enricher)
