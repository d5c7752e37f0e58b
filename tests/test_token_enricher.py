import asyncio

import httpx
import pytest

from conftest import ScriptedMetadataFetcher
from ens_indexer.app.application.services.domain.token_enricher import TokenEnricher
from ens_indexer.app.domain.errors import MetadataFetchError
from ens_indexer.app.domain.models import Owner, Token, TokenMetadata


@pytest.mark.asyncio
async def test_enrich_applies_metadata() -> None:
    fetcher = ScriptedMetadataFetcher(
        responses={7: TokenMetadata(name="vitalik.eth", uri="https://vitalik.eth", image_uri="ipfs://img")}
    )
    token = Token(id="7")

    ok = await TokenEnricher(fetcher).enrich(token)

    assert ok is True
    assert (token.name, token.uri, token.image_uri) == ("vitalik.eth", "https://vitalik.eth", "ipfs://img")
    assert fetcher.calls == [7]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused"),
        MetadataFetchError("not an object"),
        RuntimeError("boom"),
    ],
)
async def test_enrich_failure_applies_empty_defaults(error: Exception) -> None:
    fetcher = ScriptedMetadataFetcher(failures={7: error})
    owner = Owner(id="0xaa")
    token = Token(id="7", owner=owner, name="old", uri="old", image_uri="old", expires=10)

    ok = await TokenEnricher(fetcher).enrich(token)

    assert ok is False
    assert (token.name, token.uri, token.image_uri) == ("", "", "")
    # nothing else on the token is touched
    assert token.owner is owner
    assert token.expires == 10


@pytest.mark.asyncio
async def test_enrich_many_counts_failures_and_continues() -> None:
    fetcher = ScriptedMetadataFetcher(failures={2: httpx.ReadTimeout("slow")})
    tokens = [Token(id="1"), Token(id="2"), Token(id="3")]

    stats = await TokenEnricher(fetcher, concurrency=2).enrich_many(tokens)

    assert stats.attempted == 3
    assert stats.failed == 1
    assert tokens[0].name == "name-1.eth"
    assert tokens[1].name == ""
    assert tokens[2].name == "name-3.eth"


@pytest.mark.asyncio
async def test_enrich_many_respects_concurrency_bound() -> None:
    in_flight = 0
    peak = 0

    class SlowFetcher:
        async def fetch(self, *, token_id: int) -> TokenMetadata:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return TokenMetadata(name=str(token_id))

    tokens = [Token(id=str(i)) for i in range(10)]
    stats = await TokenEnricher(SlowFetcher(), concurrency=3).enrich_many(tokens)

    assert stats.attempted == 10
    assert peak <= 3


@pytest.mark.asyncio
async def test_enrich_many_with_no_tokens_does_nothing(fetcher: ScriptedMetadataFetcher) -> None:
    stats = await TokenEnricher(fetcher).enrich_many([])

    assert stats.attempted == 0
    assert fetcher.calls == []


def test_concurrency_must_be_positive(fetcher: ScriptedMetadataFetcher) -> None:
    with pytest.raises(ValueError):
        TokenEnricher(fetcher, concurrency=0)
