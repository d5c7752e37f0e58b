from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ens_indexer.app.application.services.domain.contract_resolver import ContractResolver
from ens_indexer.app.application.services.domain.token_enricher import (
    EnrichmentStats,
    TokenEnricher,
)
from ens_indexer.app.domain.models import (
    BatchIdentities,
    EnsEvent,
    Owner,
    Token,
    Transfer,
)
from ens_indexer.app.domain.working_set import WorkingSet


def collect_batch_identities(events: Iterable[EnsEvent]) -> BatchIdentities:
    """Distinct token ids and owner addresses referenced anywhere in the batch."""
    token_ids: set[str] = set()
    owner_ids: set[str] = set()

    for event in events:
        token_ids.add(str(event.token_id))
        if event.from_address:
            owner_ids.add(event.from_address.lower())
        if event.to_address:
            owner_ids.add(event.to_address.lower())

    return BatchIdentities(token_ids=frozenset(token_ids), owner_ids=frozenset(owner_ids))


@dataclass
class ReconciliationPlan:
    """
    Phase 1 output: mutated working sets plus the tokens still waiting for
    metadata. `enrichment` holds each token at most once, in the order it was
    first scheduled.
    """

    owners: WorkingSet[Owner]
    tokens: WorkingSet[Token]
    transfers: WorkingSet[Transfer]
    enrichment: list[Token] = field(default_factory=list)


@dataclass(frozen=True)
class ReconciledBatch:
    owners: list[Owner]
    tokens: list[Token]
    transfers: list[Transfer]
    enrichment: EnrichmentStats = EnrichmentStats()


class BatchReconciler:
    """
    Turns an ordered list of registrar events into the owners/tokens/transfers
    working sets of one batch.

    Events are applied strictly in arrival order so later events observe what
    earlier ones did (last write wins for token owner and expiry).

    Phase 1 (`plan`) only mutates memory and decides which tokens need
    metadata. Phase 2 (`reconcile`) runs the enricher over those tokens.
    """

    def __init__(self, *, contract_resolver: ContractResolver, enricher: TokenEnricher) -> None:
        self._contract_resolver = contract_resolver
        self._enricher = enricher

    async def plan(
        self,
        events: Sequence[EnsEvent],
        *,
        owners: Mapping[str, Owner],
        tokens: Mapping[str, Token],
        now: int,
    ) -> ReconciliationPlan:
        owner_set: WorkingSet[Owner] = WorkingSet(owners)
        token_set: WorkingSet[Token] = WorkingSet(tokens)
        transfer_set: WorkingSet[Transfer] = WorkingSet()
        scheduled: WorkingSet[Token] = WorkingSet()

        # Stored tokens come back with their own Owner copies; point them at
        # the batch owners so one address maps to one object.
        for token in token_set.values():
            if token.owner is not None:
                token.owner = self._resolve_owner(owner_set, token.owner.id)

        for event in events:
            from_owner = self._resolve_owner(owner_set, event.from_address)
            to_owner = self._resolve_owner(owner_set, event.to_address)

            token = await self._resolve_token(token_set, event.token_id)

            # No receiver means renewal: current owner stays as is.
            if to_owner is not None:
                token.owner = to_owner

            if event.expires is not None:
                token.expires = event.expires
                if event.expires < now:
                    continue
                scheduled.get_or_create(token.id, lambda: token)

            if from_owner is not None and to_owner is not None:
                transfer_set.get_or_create(
                    event.id,
                    lambda: Transfer(
                        id=event.id,
                        block=event.block,
                        timestamp=event.timestamp,
                        transaction_hash=event.transaction_hash,
                        from_owner=from_owner,
                        to_owner=to_owner,
                        token=token,
                    ),
                )

        return ReconciliationPlan(
            owners=owner_set,
            tokens=token_set,
            transfers=transfer_set,
            enrichment=scheduled.values(),
        )

    async def reconcile(
        self,
        events: Sequence[EnsEvent],
        *,
        owners: Mapping[str, Owner],
        tokens: Mapping[str, Token],
        now: int | None = None,
    ) -> ReconciledBatch:
        if now is None:
            now = int(time.time())

        plan = await self.plan(events, owners=owners, tokens=tokens, now=now)
        stats = await self._enricher.enrich_many(plan.enrichment)

        return ReconciledBatch(
            owners=plan.owners.values(),
            tokens=plan.tokens.values(),
            transfers=plan.transfers.values(),
            enrichment=stats,
        )

    @staticmethod
    def _resolve_owner(owners: WorkingSet[Owner], address: str | None) -> Owner | None:
        if not address:
            return None
        owner_id = address.lower()
        return owners.get_or_create(owner_id, lambda: Owner(id=owner_id))

    async def _resolve_token(self, tokens: WorkingSet[Token], token_id: int) -> Token:
        key = str(token_id)
        token = tokens.get(key)
        if token is None:
            token = Token(id=key, contract=await self._contract_resolver.resolve())
            tokens.add(key, token)
        return token
