from __future__ import annotations

import asyncio
import logging

from ens_indexer.app.domain.models import Contract, LegacyContract
from ens_indexer.app.domain.ports.out import EnsStore

logger = logging.getLogger(__name__)

ENS_CONTRACT_NAME = "Ethereum Name Service"
ENS_CONTRACT_SYMBOL = "ENS"


class ContractResolver:
    """
    Process-wide cache for the single registrar Contract entity.

    Owned by whoever wires the pipeline and shared by every batch. The first
    `resolve()` looks the contract up by address and, when missing, inserts it
    together with its legacy record in one write. Later calls return the
    cached instance without touching storage. There is no invalidation: the
    contract row never changes after creation.
    """

    def __init__(
        self,
        store: EnsStore,
        *,
        address: str,
        name: str = ENS_CONTRACT_NAME,
        symbol: str = ENS_CONTRACT_SYMBOL,
    ) -> None:
        self._store = store
        self._address = address.lower()
        self._name = name
        self._symbol = symbol
        self._contract: Contract | None = None
        self._lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._address

    @property
    def cached(self) -> Contract | None:
        return self._contract

    async def resolve(self) -> Contract:
        if self._contract is not None:
            return self._contract

        async with self._lock:
            # Another caller may have resolved it while we waited.
            if self._contract is not None:
                return self._contract

            contract = await self._store.get_contract(self._address)
            if contract is None:
                contract = Contract(
                    id=self._address,
                    name=self._name,
                    symbol=self._symbol,
                    total_supply=0,
                    number_field=0,
                )
                legacy = LegacyContract(
                    id=self._address,
                    name=self._name,
                    symbol=self._symbol,
                    total_supply=0,
                )
                await self._store.insert_contract(contract, legacy)
                logger.info("Created contract entity %s (%s)", contract.id, contract.symbol)

            self._contract = contract
            return contract
