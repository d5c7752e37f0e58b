from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from sqlalchemy import Table, select
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ens_indexer.app.domain.errors import BatchPersistenceError
from ens_indexer.app.domain.models import (
    Contract,
    LegacyContract,
    Owner,
    Token,
    Transfer,
)
from ens_indexer.app.domain.ports.out import EnsStore
from ens_indexer.app.infrastructure.db.models.domain.contracts import (
    ContractsDB,
    LegacyContractsDB,
)
from ens_indexer.app.infrastructure.db.models.domain.owners import OwnersDB
from ens_indexer.app.infrastructure.db.models.domain.tokens import TokensDB
from ens_indexer.app.infrastructure.db.models.domain.transfers import TransfersDB

logger = logging.getLogger(__name__)

_OWNERS: Table = OwnersDB.__table__  # type: ignore[assignment]
_TOKENS: Table = TokensDB.__table__  # type: ignore[assignment]
_TRANSFERS: Table = TransfersDB.__table__  # type: ignore[assignment]
_CONTRACTS: Table = ContractsDB.__table__  # type: ignore[assignment]
_LEGACY_CONTRACTS: Table = LegacyContractsDB.__table__  # type: ignore[assignment]


def _chunks(seq: list[Any], size: int) -> Iterable[list[Any]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def _as_int(val: Any) -> int | None:
    # NUMERIC columns come back as Decimal
    return None if val is None else int(val)


# -----------------------------------------------------------------------------
# Row builders
# -----------------------------------------------------------------------------


def owner_rows(owners: Sequence[Owner]) -> list[dict[str, Any]]:
    return [{"id": o.id} for o in owners]


def token_rows(tokens: Sequence[Token]) -> list[dict[str, Any]]:
    return [
        {
            "id": t.id,
            "owner_id": t.owner.id if t.owner is not None else None,
            "contract_id": t.contract.id if t.contract is not None else None,
            "name": t.name,
            "image_uri": t.image_uri,
            "uri": t.uri,
            "expires": t.expires,
        }
        for t in tokens
    ]


def transfer_rows(transfers: Sequence[Transfer]) -> list[dict[str, Any]]:
    return [
        {
            "id": tr.id,
            "block": tr.block,
            "timestamp": tr.timestamp,
            "transaction_hash": tr.transaction_hash,
            "from_id": tr.from_owner.id,
            "to_id": tr.to_owner.id,
            "token_id": tr.token.id,
        }
        for tr in transfers
    ]


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


def owners_upsert() -> Insert:
    # Owners carry only their key, so "overwrite" is a no-op.
    return insert(_OWNERS).on_conflict_do_nothing(index_elements=[_OWNERS.c.id])


def _overwrite_upsert(table: Table) -> Insert:
    stmt = insert(table)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={c.name: stmt.excluded[c.name] for c in table.columns if c.name != "id"},
    )


def tokens_upsert() -> Insert:
    return _overwrite_upsert(_TOKENS)


def transfers_upsert() -> Insert:
    return _overwrite_upsert(_TRANSFERS)


class SqlAlchemyEnsStore(EnsStore):
    """
    Persistence gateway over the ens.* tables.

    Strategy:
    - Bulk lookups select by `id IN (...)` (one query per entity kind).
    - save_batch runs in a single transaction and upserts in FK order:
      owners -> tokens -> transfers (INSERT ... ON CONFLICT), in chunks.
    - Any SQLAlchemy failure rolls the whole batch back and is raised as
      BatchPersistenceError.
    """

    def __init__(self, engine: AsyncEngine, *, chunk_size: int = 1_000) -> None:
        self._engine = engine
        self._chunk_size = chunk_size

    async def find_owners(self, ids: Iterable[str]) -> dict[str, Owner]:
        id_list = sorted(set(ids))
        if not id_list:
            return {}

        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(_OWNERS.c.id).where(_OWNERS.c.id.in_(id_list))
            )
            return {row.id: Owner(id=row.id) for row in result}

    async def find_tokens(self, ids: Iterable[str]) -> dict[str, Token]:
        id_list = sorted(set(ids))
        if not id_list:
            return {}

        stmt = (
            select(
                _TOKENS.c.id,
                _TOKENS.c.owner_id,
                _TOKENS.c.name,
                _TOKENS.c.image_uri,
                _TOKENS.c.uri,
                _TOKENS.c.expires,
                _CONTRACTS.c.id.label("contract_id"),
                _CONTRACTS.c.name.label("contract_name"),
                _CONTRACTS.c.symbol.label("contract_symbol"),
                _CONTRACTS.c.total_supply.label("contract_total_supply"),
                _CONTRACTS.c.number_field.label("contract_number_field"),
            )
            .select_from(
                _TOKENS.outerjoin(_CONTRACTS, _CONTRACTS.c.id == _TOKENS.c.contract_id)
            )
            .where(_TOKENS.c.id.in_(id_list))
        )

        async with self._engine.connect() as conn:
            result = await conn.execute(stmt)
            rows = result.mappings().all()

        owners: dict[str, Owner] = {}
        contracts: dict[str, Contract] = {}
        tokens: dict[str, Token] = {}

        for r in rows:
            owner = None
            if r["owner_id"] is not None:
                owner = owners.setdefault(r["owner_id"], Owner(id=r["owner_id"]))

            contract = None
            if r["contract_id"] is not None:
                contract = contracts.get(r["contract_id"])
                if contract is None:
                    contract = Contract(
                        id=r["contract_id"],
                        name=r["contract_name"],
                        symbol=r["contract_symbol"],
                        total_supply=_as_int(r["contract_total_supply"]) or 0,
                        number_field=_as_int(r["contract_number_field"]),
                    )
                    contracts[contract.id] = contract

            tokens[r["id"]] = Token(
                id=r["id"],
                owner=owner,
                contract=contract,
                name=r["name"],
                image_uri=r["image_uri"],
                uri=r["uri"],
                expires=_as_int(r["expires"]),
            )

        return tokens

    async def get_contract(self, address: str) -> Contract | None:
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(_CONTRACTS).where(_CONTRACTS.c.id == address.lower())
            )
            row = result.mappings().one_or_none()

        if row is None:
            return None

        return Contract(
            id=row["id"],
            name=row["name"],
            symbol=row["symbol"],
            total_supply=_as_int(row["total_supply"]) or 0,
            number_field=_as_int(row["number_field"]),
        )

    async def insert_contract(self, contract: Contract, legacy: LegacyContract) -> None:
        contract_stmt = insert(_CONTRACTS).on_conflict_do_nothing(index_elements=[_CONTRACTS.c.id])
        legacy_stmt = insert(_LEGACY_CONTRACTS).on_conflict_do_nothing(
            index_elements=[_LEGACY_CONTRACTS.c.id]
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    contract_stmt,
                    [
                        {
                            "id": contract.id,
                            "name": contract.name,
                            "symbol": contract.symbol,
                            "total_supply": contract.total_supply,
                            "number_field": contract.number_field,
                        }
                    ],
                )
                await conn.execute(
                    legacy_stmt,
                    [
                        {
                            "id": legacy.id,
                            "name": legacy.name,
                            "symbol": legacy.symbol,
                            "total_supply": legacy.total_supply,
                            "custom_field": legacy.custom_field,
                        }
                    ],
                )
        except SQLAlchemyError as exc:
            raise BatchPersistenceError(f"Failed to persist contract {contract.id}") from exc

    async def save_batch(
        self,
        *,
        owners: Sequence[Owner],
        tokens: Sequence[Token],
        transfers: Sequence[Transfer],
    ) -> None:
        try:
            async with self._engine.begin() as conn:
                await self._upsert(conn, owners_upsert(), owner_rows(owners))
                await self._upsert(conn, tokens_upsert(), token_rows(tokens))
                await self._upsert(conn, transfers_upsert(), transfer_rows(transfers))
        except SQLAlchemyError as exc:
            raise BatchPersistenceError(
                f"Failed to persist batch (owners={len(owners)}, tokens={len(tokens)}, "
                f"transfers={len(transfers)})"
            ) from exc

        logger.info(
            "Upserted %s owners, %s tokens, %s transfers",
            len(owners),
            len(tokens),
            len(transfers),
        )

    async def _upsert(self, conn: AsyncConnection, stmt: Insert, rows: list[dict[str, Any]]) -> None:
        for chunk in _chunks(rows, self._chunk_size):
            await conn.execute(stmt, chunk)
