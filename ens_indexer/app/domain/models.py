from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# -----------------------------------------------------------------------------
# Ingestion records
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockHeader:
    height: int
    timestamp: int  # seconds
    hash: str | None = None


@dataclass(frozen=True)
class RawLog:
    """
    One EVM log as delivered by the ingestion source.

    topics[0] is the event selector; the remaining topics carry indexed args.
    """

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    log_index: int
    transaction_hash: str


@dataclass(frozen=True)
class BlockLogs:
    header: BlockHeader
    logs: tuple[RawLog, ...] = ()


# -----------------------------------------------------------------------------
# Normalized events
# -----------------------------------------------------------------------------


class EventKind(str, Enum):
    REGISTRATION = "registration"
    RENEWAL = "renewal"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class EnsEvent:
    """
    Normalized registrar event.

    `id` is the synthetic id (txHash-contract-tokenId-logIndex). It is computed
    for every event and reused as the Transfer identity when one is created.
    """

    id: str
    kind: EventKind
    token_id: int
    timestamp: int
    block: int
    transaction_hash: str
    from_address: str | None = None
    to_address: str | None = None
    expires: int | None = None


def synthetic_event_id(
    *,
    transaction_hash: str,
    contract_address: str,
    token_id: int,
    log_index: int,
) -> str:
    return f"{transaction_hash}-{contract_address}-{token_id}-{log_index}"


# -----------------------------------------------------------------------------
# Entities
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Contract:
    id: str
    name: str
    symbol: str
    total_supply: int = 0
    number_field: int | None = None


@dataclass(frozen=True)
class LegacyContract:
    """Compatibility record written alongside `Contract` under the same id."""

    id: str
    name: str
    symbol: str
    total_supply: int = 0
    custom_field: str | None = None


@dataclass(frozen=True)
class Owner:
    id: str  # lowercase address


@dataclass(eq=False)
class Token:
    id: str  # decimal token id
    owner: Owner | None = None
    contract: Contract | None = None
    name: str | None = None
    image_uri: str | None = None
    uri: str | None = None
    expires: int | None = None


@dataclass(frozen=True, eq=False)
class Transfer:
    id: str
    block: int
    timestamp: int
    transaction_hash: str
    from_owner: Owner
    to_owner: Owner
    token: Token


@dataclass(frozen=True)
class TokenMetadata:
    name: str = ""
    uri: str = ""
    image_uri: str = ""

    @classmethod
    def empty(cls) -> "TokenMetadata":
        return cls()

    def apply_to(self, token: Token) -> None:
        token.name = self.name
        token.uri = self.uri
        token.image_uri = self.image_uri


@dataclass(frozen=True)
class BatchIdentities:
    token_ids: frozenset[str] = field(default_factory=frozenset)
    owner_ids: frozenset[str] = field(default_factory=frozenset)
