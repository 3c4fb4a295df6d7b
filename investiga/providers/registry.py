"""Provider lookup and dispatch."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Type

import httpx
from loguru import logger

from investiga.providers.address import CEPProvider
from investiga.providers.base import BaseProvider, SearchOptions
from investiga.providers.datajud import DataJudProvider
from investiga.providers.directdata import DirectDataProvider
from investiga.providers.documents import CNPJProvider, CPFProvider, PISProvider
from investiga.providers.email import (
    ClearbitProvider,
    EmailRepProvider,
    GravatarProvider,
    HIBPProvider,
    HunterProvider,
)
from investiga.providers.models import Provider, SearchItem
from investiga.providers.phone import (
    APIBrasilDDDProvider,
    BrasilAPIDDDProvider,
    PhoneProvider,
    PortabilidadeProvider,
)
from investiga.providers.web import DuckDuckGoProvider, GitHubProvider, WikipediaProvider
from investiga.utils.config import CredentialsConfig, ProvidersConfig

PROVIDER_CLASSES: Dict[Provider, Type[BaseProvider]] = {
    Provider.WIKIPEDIA: WikipediaProvider,
    Provider.DUCKDUCKGO: DuckDuckGoProvider,
    Provider.GITHUB: GitHubProvider,
    Provider.DIRECTDATA: DirectDataProvider,
    Provider.CEP: CEPProvider,
    Provider.CPF: CPFProvider,
    Provider.CNPJ: CNPJProvider,
    Provider.PHONE: PhoneProvider,
    Provider.PHONE_PORTABILIDADE: PortabilidadeProvider,
    Provider.DDD_BRASILAPI: BrasilAPIDDDProvider,
    Provider.DDD_APIBRASIL: APIBrasilDDDProvider,
    Provider.DATAJUD: DataJudProvider,
    Provider.EMAIL_HIBP: HIBPProvider,
    Provider.EMAILREP: EmailRepProvider,
    Provider.HUNTER: HunterProvider,
    Provider.GRAVATAR: GravatarProvider,
    Provider.CLEARBIT: ClearbitProvider,
    Provider.CLT_PIS: PISProvider,
}

EMAIL_PROVIDERS = (
    Provider.EMAIL_HIBP,
    Provider.EMAILREP,
    Provider.HUNTER,
    Provider.GRAVATAR,
    Provider.CLEARBIT,
)


def build_http_client(providers_config: ProvidersConfig | None = None) -> httpx.AsyncClient:
    """Shared async client; the request timeout lives here."""
    providers_config = providers_config or ProvidersConfig()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(providers_config.timeout_seconds),
        headers={"User-Agent": providers_config.user_agent},
        follow_redirects=True,
    )


def parse_provider(provider_id: str | Provider) -> Optional[Provider]:
    """Resolve a provider id; unknown ids give None."""
    if isinstance(provider_id, Provider):
        return provider_id
    try:
        return Provider(str(provider_id).strip().lower())
    except ValueError:
        return None


class ProviderRegistry:
    """Holds one provider instance per id, sharing a single HTTP client."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        providers_config: ProvidersConfig | None = None,
        credentials: CredentialsConfig | None = None,
        overrides: Dict[Provider, BaseProvider] | None = None,
    ) -> None:
        self.client = client
        self.providers_config = providers_config or ProvidersConfig()
        self.credentials = credentials or CredentialsConfig()
        self._providers: Dict[Provider, BaseProvider] = {}
        for provider, cls in PROVIDER_CLASSES.items():
            self._providers[provider] = cls(
                client, providers_config=self.providers_config, credentials=self.credentials
            )
        if overrides:
            self._providers.update(overrides)

        logger.info(f"Initialized ProviderRegistry with {len(self._providers)} providers")

    def get(self, provider_id: str | Provider) -> Optional[BaseProvider]:
        provider = parse_provider(provider_id)
        if provider is None:
            return None
        return self._providers.get(provider)

    def is_enabled(self, provider: Provider) -> bool:
        return self.providers_config.is_enabled(provider.value)

    def enabled(self, candidates: Iterable[Provider]) -> List[Provider]:
        return [p for p in candidates if self.is_enabled(p)]

    async def fetch_provider(
        self,
        provider_id: str | Provider,
        query: str,
        options: SearchOptions | None = None,
    ) -> List[SearchItem]:
        """Run one provider; vendor failures come back as sentinel items."""
        provider = self.get(provider_id)
        if provider is None:
            logger.warning(f"Skipping unknown provider: {provider_id}")
            return []
        return await provider.run(query, options)
