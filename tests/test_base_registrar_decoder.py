import pytest
from eth_abi import encode as abi_encode

from conftest import (
    ALICE,
    BOB,
    FUTURE,
    REGISTRAR,
    TOPIC_NAME_REGISTERED,
    TOPIC_NAME_RENEWED,
    TOPIC_TRANSFER,
    ZERO,
    registered_log,
    renewed_log,
    transfer_log,
    tx_hash,
    uint_topic,
)
from ens_indexer.app.domain.errors import EventDecodingError
from ens_indexer.app.domain.models import BlockHeader, EventKind, RawLog
from ens_indexer.app.infrastructure.decoders.ens.base_registrar_decoder import (
    BaseRegistrarEventDecoder,
)

HEADER = BlockHeader(height=16_000_000, timestamp=1_670_000_000)


@pytest.fixture(scope="module")
def decoder() -> BaseRegistrarEventDecoder:
    return BaseRegistrarEventDecoder()


def test_topics_match_event_signatures(decoder: BaseRegistrarEventDecoder) -> None:
    assert set(decoder.topics) == {TOPIC_NAME_REGISTERED, TOPIC_NAME_RENEWED, TOPIC_TRANSFER}


def test_decode_name_registered(decoder: BaseRegistrarEventDecoder) -> None:
    token_id = 2**255 + 7
    event = decoder.decode_log(registered_log(token_id, ALICE, FUTURE, tx=5, log_index=3), HEADER)

    assert event.kind is EventKind.REGISTRATION
    assert event.token_id == token_id
    assert event.from_address is None
    assert event.to_address == ALICE
    assert event.expires == FUTURE
    assert event.block == HEADER.height
    assert event.timestamp == HEADER.timestamp
    assert event.transaction_hash == tx_hash(5)
    assert event.id == f"{tx_hash(5)}-{REGISTRAR}-{token_id}-3"


def test_decode_name_renewed(decoder: BaseRegistrarEventDecoder) -> None:
    event = decoder.decode_log(renewed_log(42, FUTURE), HEADER)

    assert event.kind is EventKind.RENEWAL
    assert event.token_id == 42
    assert event.from_address is None
    assert event.to_address is None
    assert event.expires == FUTURE


def test_decode_transfer(decoder: BaseRegistrarEventDecoder) -> None:
    event = decoder.decode_log(transfer_log(ALICE, BOB, 42, log_index=9), HEADER)

    assert event.kind is EventKind.TRANSFER
    assert event.from_address == ALICE
    assert event.to_address == BOB
    assert event.expires is None
    assert event.id.endswith("-42-9")


def test_zero_address_is_kept_as_an_address(decoder: BaseRegistrarEventDecoder) -> None:
    event = decoder.decode_log(transfer_log(ZERO, BOB, 1), HEADER)

    assert event.from_address == ZERO


def test_addresses_are_lowercased(decoder: BaseRegistrarEventDecoder) -> None:
    log = transfer_log(ALICE, BOB, 1)
    log = RawLog(
        address=REGISTRAR.upper().replace("0X", "0x"),
        topics=log.topics,
        data=log.data,
        log_index=log.log_index,
        transaction_hash=log.transaction_hash,
    )

    event = decoder.decode_log(log, HEADER)

    assert REGISTRAR in event.id
    assert event.to_address == BOB.lower()


def test_unknown_topic_is_fatal(decoder: BaseRegistrarEventDecoder) -> None:
    log = RawLog(
        address=REGISTRAR,
        topics=(b"\x11" * 32, uint_topic(1)),
        data=b"",
        log_index=0,
        transaction_hash=tx_hash(1),
    )

    with pytest.raises(EventDecodingError):
        decoder.decode_log(log, HEADER)


def test_missing_topics_is_fatal(decoder: BaseRegistrarEventDecoder) -> None:
    log = RawLog(address=REGISTRAR, topics=(), data=b"", log_index=0, transaction_hash=tx_hash(1))

    with pytest.raises(EventDecodingError):
        decoder.decode_log(log, HEADER)


def test_wrong_topic_count_is_fatal(decoder: BaseRegistrarEventDecoder) -> None:
    log = RawLog(
        address=REGISTRAR,
        topics=(TOPIC_NAME_REGISTERED, uint_topic(1)),  # owner topic missing
        data=abi_encode(["uint256"], [FUTURE]),
        log_index=0,
        transaction_hash=tx_hash(1),
    )

    with pytest.raises(EventDecodingError):
        decoder.decode_log(log, HEADER)


def test_truncated_data_is_fatal(decoder: BaseRegistrarEventDecoder) -> None:
    log = RawLog(
        address=REGISTRAR,
        topics=(TOPIC_NAME_RENEWED, uint_topic(1)),
        data=b"\x01\x02",
        log_index=0,
        transaction_hash=tx_hash(1),
    )

    with pytest.raises(EventDecodingError):
        decoder.decode_log(log, HEADER)


def test_decoding_error_is_a_value_error(decoder: BaseRegistrarEventDecoder) -> None:
    log = RawLog(address=REGISTRAR, topics=(), data=b"", log_index=0, transaction_hash=tx_hash(1))

    with pytest.raises(ValueError):
        decoder.decode_log(log, HEADER)
