"""Tests for provider lookup, dispatch and failure isolation."""

from __future__ import annotations

import asyncio
from typing import List

import httpx

from investiga.providers.base import LocalProvider, ProviderError, SearchOptions
from investiga.providers.models import Provider, SearchItem
from investiga.providers.registry import PROVIDER_CLASSES, ProviderRegistry, parse_provider
from investiga.utils.config import ProvidersConfig


class _StaticProvider(LocalProvider):
    def __init__(self, provider: Provider, titles: List[str]) -> None:
        super().__init__()
        self.provider = provider
        self.titles = titles

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        return [SearchItem(title=t, description=query, source=self.provider) for t in self.titles]


class _BrokenProvider(LocalProvider):
    provider = Provider.GITHUB

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        raise ProviderError("GitHub HTTP 502")


def test_every_provider_id_has_a_class() -> None:
    assert set(PROVIDER_CLASSES) == set(Provider)


def test_parse_provider() -> None:
    assert parse_provider(" WikiPedia ") is Provider.WIKIPEDIA
    assert parse_provider(Provider.CEP) is Provider.CEP
    assert parse_provider("myspace") is None


def test_unknown_provider_is_skipped() -> None:
    registry = ProviderRegistry()

    assert registry.get("myspace") is None
    assert asyncio.run(registry.fetch_provider("myspace", "fulano")) == []


def test_enabled_follows_config() -> None:
    config = ProvidersConfig(enabled={"cpf": True, "cep": False})
    registry = ProviderRegistry(providers_config=config)

    assert registry.enabled([Provider.CPF, Provider.CEP, Provider.GITHUB]) == [Provider.CPF]


def test_one_failing_provider_does_not_affect_the_others() -> None:
    registry = ProviderRegistry(
        overrides={
            Provider.WIKIPEDIA: _StaticProvider(Provider.WIKIPEDIA, ["Fulano"]),
            Provider.GITHUB: _BrokenProvider(),
        }
    )

    async def go():
        return await asyncio.gather(
            registry.fetch_provider("wikipedia", "fulano"),
            registry.fetch_provider("github", "fulano"),
        )

    wikipedia, github = asyncio.run(go())

    assert [i.title for i in wikipedia] == ["Fulano"]
    assert len(github) == 1
    assert github[0].error == "GitHub HTTP 502"


def test_network_provider_without_client_reports_error() -> None:
    registry = ProviderRegistry()

    items = asyncio.run(registry.fetch_provider(Provider.WIKIPEDIA, "fulano"))

    assert items[0].error == "wikipedia requires an HTTP client"


def _vendor_answers(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "en.wikipedia.org":
        return httpx.Response(200, json={"query": {"search": [{"title": "Ok", "snippet": "ok"}]}})
    if host == "api.github.com":
        return httpx.Response(200, json={"items": {"full_name": "fulano/repo"}})
    if host == "en.gravatar.com":
        return httpx.Response(200, json={"entry": {"displayName": "Fulano"}})
    if host == "api.duckduckgo.com":
        return httpx.Response(200, json={"RelatedTopics": 5, "AbstractText": ["x"]})
    return httpx.Response(404)


def test_malformed_vendor_payloads_do_not_affect_the_batch() -> None:
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_vendor_answers)) as client:
            registry = ProviderRegistry(client)
            return await asyncio.gather(
                registry.fetch_provider("wikipedia", "fulano"),
                registry.fetch_provider("github", "fulano"),
                registry.fetch_provider("gravatar", "fulano@exemplo.com"),
                registry.fetch_provider("duckduckgo", "fulano"),
            )

    wikipedia, github, gravatar, duckduckgo = asyncio.run(go())

    assert [i.title for i in wikipedia] == ["Ok"]
    assert github == []
    assert gravatar[0].is_not_found
    assert duckduckgo == []
