from __future__ import annotations

import asyncio
from datetime import date

import httpx
import pytest

from catalog.models.candidates import CandidateEntry, Category, RepositoryMetadata
from enrich.github import enrich_entries, enrich_entries_async, parse_repository_metadata
from rules.config import EnrichmentConfig

REPO_PAYLOAD = {
    "full_name": "acme/acme-mcp",
    "language": "Python",
    "license": {"spdx_id": "MIT", "name": "MIT License"},
    "stargazers_count": 42,
    "pushed_at": "2025-02-20T10:00:00Z",
    "updated_at": "2025-02-01T10:00:00Z",
    "topics": ["mcp", "llm"],
}


def _entry(identity: str, owner: str | None = None, repo: str | None = None) -> CandidateEntry:
    return CandidateEntry(
        id=f"id-{identity}",
        identity=identity,
        category=Category.OFFICIAL,
        source_url=f"https://github.com/{owner}/{repo}" if owner else "https://x.test",
        owner=owner,
        repo=repo,
        discovered_at=date(2025, 3, 1),
    )


def _config(**overrides: object) -> EnrichmentConfig:
    return EnrichmentConfig.model_validate({"enabled": True, "delay_seconds": 0, **overrides})


async def _no_sleep(_: float) -> None:
    return None


def test_parse_repository_metadata_maps_fields() -> None:
    metadata = parse_repository_metadata(REPO_PAYLOAD)

    assert metadata == RepositoryMetadata(
        language="Python",
        license="MIT",
        star_count=42,
        updated_at="2025-02-20T10:00:00Z",
        topics=["mcp", "llm"],
    )


def test_parse_repository_metadata_tolerates_missing_fields() -> None:
    metadata = parse_repository_metadata({"license": None, "topics": None})

    assert metadata == RepositoryMetadata()


def test_enrich_entries_fills_metadata() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json=REPO_PAYLOAD)

    original = _entry("Acme", "acme", "acme-mcp")

    (enriched,) = enrich_entries(
        [original], config=_config(), transport=httpx.MockTransport(handler)
    )

    assert seen == ["/repos/acme/acme-mcp"]
    assert enriched.is_enriched
    assert enriched.enrichment is not None
    assert enriched.enrichment.star_count == 42
    assert enriched.id == original.id
    assert original.enrichment is None


def test_not_found_yields_empty_metadata() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(404))

    (enriched,) = enrich_entries(
        [_entry("Gone", "gone", "repo")], config=_config(), transport=transport
    )

    assert enriched.enrichment == RepositoryMetadata()


def test_server_error_leaves_entry_unchanged() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    original = _entry("Flaky", "flaky", "repo")

    (result,) = enrich_entries([original], config=_config(), transport=transport)

    assert result is original
    assert result.enrichment is None


def test_entries_without_repository_are_not_requested() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        pytest.fail(f"unexpected request to {request.url}")

    original = _entry("Bitbucket")

    (result,) = enrich_entries(
        [original], config=_config(), transport=httpx.MockTransport(handler)
    )

    assert result is original


def test_token_is_sent_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_GH_TOKEN", "secret")
    headers: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers)
        return httpx.Response(200, json=REPO_PAYLOAD)

    enrich_entries(
        [_entry("Acme", "acme", "acme-mcp")],
        config=_config(token_env="TEST_GH_TOKEN"),
        transport=httpx.MockTransport(handler),
    )

    assert headers[0]["Authorization"] == "Bearer secret"
    assert headers[0]["Accept"] == "application/vnd.github+json"


def test_no_token_header_without_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TEST_GH_TOKEN", raising=False)
    headers: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers)
        return httpx.Response(200, json=REPO_PAYLOAD)

    enrich_entries(
        [_entry("Acme", "acme", "acme-mcp")],
        config=_config(token_env="TEST_GH_TOKEN"),
        transport=httpx.MockTransport(handler),
    )

    assert "Authorization" not in headers[0]


def test_concurrency_is_bounded_and_order_preserved() -> None:
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json=REPO_PAYLOAD)

    entries = [_entry(f"s{i}", "owner", f"repo{i}") for i in range(8)]

    result = asyncio.run(
        enrich_entries_async(
            entries,
            config=_config(concurrency=2),
            transport=httpx.MockTransport(handler),
            sleep=_no_sleep,
        )
    )

    assert peak <= 2
    assert [entry.identity for entry in result] == [f"s{i}" for i in range(8)]
    assert all(entry.is_enriched for entry in result)


def test_delay_is_applied_after_each_request() -> None:
    delays: list[float] = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=REPO_PAYLOAD))
    entries = [_entry("a", "o", "a"), _entry("b", "o", "b"), _entry("skip")]

    asyncio.run(
        enrich_entries_async(
            entries,
            config=_config(delay_seconds=0.25),
            transport=transport,
            sleep=record_sleep,
        )
    )

    assert delays == [0.25, 0.25]


def test_parse_repository_metadata_accepts_plain_license_string() -> None:
    assert parse_repository_metadata({"license": "MIT"}).license == "MIT"


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {"topics": "mcp"},
        {"stargazers_count": "many"},
    ],
)
def test_parse_repository_metadata_rejects_malformed_payload(payload: object) -> None:
    with pytest.raises(ValueError):
        parse_repository_metadata(payload)


def test_non_json_body_leaves_only_that_entry_unchanged() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/repos/limited/repo":
            return httpx.Response(200, text="<html>rate limited</html>")
        return httpx.Response(200, json=REPO_PAYLOAD)

    limited = _entry("Limited", "limited", "repo")
    healthy = _entry("Acme", "acme", "acme-mcp")

    result = enrich_entries(
        [limited, healthy], config=_config(), transport=httpx.MockTransport(handler)
    )

    assert result[0] is limited
    assert result[1].is_enriched
    assert result[1].enrichment is not None
    assert result[1].enrichment.star_count == 42


def test_malformed_payload_leaves_entry_unchanged() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"stargazers_count": "many"})
    )
    original = _entry("Odd", "odd", "repo")

    (result,) = enrich_entries([original], config=_config(), transport=transport)

    assert result is original
