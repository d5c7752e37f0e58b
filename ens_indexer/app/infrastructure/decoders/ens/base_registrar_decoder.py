from __future__ import annotations

from pathlib import Path
from typing import Any

from ens_indexer.app.domain.errors import EventDecodingError
from ens_indexer.app.domain.models import (
    BlockHeader,
    EnsEvent,
    EventKind,
    RawLog,
    synthetic_event_id,
)
from ens_indexer.app.domain.ports.out import EnsEventDecoder
from ens_indexer.app.infrastructure.decoders.ens.abi_event_decoder import AbiEventDecoder

DEFAULT_ABI_PATH = (
    Path(__file__).resolve().parents[3]  # .../ens_indexer/app
    / "registry"
    / "abi"
    / "BaseRegistrar.json"
)

NAME_REGISTERED = "NameRegistered"
NAME_RENEWED = "NameRenewed"
TRANSFER = "Transfer"


class BaseRegistrarEventDecoder(EnsEventDecoder):
    """
    Decoder for the ENS BaseRegistrar events we index.

      event NameRegistered(uint256 indexed id, address indexed owner, uint256 expires)
      event NameRenewed(uint256 indexed id, uint256 expires)
      event Transfer(address indexed from, address indexed to, uint256 indexed tokenId)

    Output is a normalized EnsEvent:
      - registration: to=owner, expires set, no sender
      - renewal:      expires set, no sender/receiver
      - transfer:     from/to set, no expires
    """

    def __init__(self, *, abi_path: Path = DEFAULT_ABI_PATH) -> None:
        self._decoders: dict[bytes, AbiEventDecoder] = {}
        for event_name in (NAME_REGISTERED, NAME_RENEWED, TRANSFER):
            decoder = AbiEventDecoder(abi_path=abi_path, event_name=event_name)
            self._decoders[decoder.topic0] = decoder

    @property
    def topics(self) -> list[bytes]:
        return list(self._decoders.keys())

    def decode_log(self, log: RawLog, header: BlockHeader) -> EnsEvent:
        if not log.topics:
            raise EventDecodingError(
                f"Log {log.transaction_hash}:{log.log_index} has no topics"
            )

        decoder = self._decoders.get(bytes(log.topics[0]))
        if decoder is None:
            raise EventDecodingError(
                f"Unexpected topic0 0x{bytes(log.topics[0]).hex()} "
                f"in log {log.transaction_hash}:{log.log_index}"
            )

        decoded = decoder.decode(topics=log.topics, data=log.data)
        if decoded is None:
            raise EventDecodingError(f"Log {log.transaction_hash}:{log.log_index} did not match {decoder.event_signature}")

        name = decoder.event_name
        if name == NAME_REGISTERED:
            return self._build(
                log,
                header,
                kind=EventKind.REGISTRATION,
                token_id=decoded["id"],
                to_address=decoded["owner"],
                expires=decoded["expires"],
            )
        if name == NAME_RENEWED:
            return self._build(
                log,
                header,
                kind=EventKind.RENEWAL,
                token_id=decoded["id"],
                expires=decoded["expires"],
            )
        return self._build(
            log,
            header,
            kind=EventKind.TRANSFER,
            token_id=decoded["tokenId"],
            from_address=decoded["from"],
            to_address=decoded["to"],
        )

    def _build(
        self,
        log: RawLog,
        header: BlockHeader,
        *,
        kind: EventKind,
        token_id: Any,
        from_address: str | None = None,
        to_address: str | None = None,
        expires: int | None = None,
    ) -> EnsEvent:
        token_id = int(token_id)
        return EnsEvent(
            id=synthetic_event_id(
                transaction_hash=log.transaction_hash,
                contract_address=log.address.lower(),
                token_id=token_id,
                log_index=log.log_index,
            ),
            kind=kind,
            token_id=token_id,
            timestamp=header.timestamp,
            block=header.height,
            transaction_hash=log.transaction_hash,
            from_address=from_address,
            to_address=to_address,
            expires=expires,
        )
