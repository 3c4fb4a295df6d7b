"""Lookup providers and the normalized result model."""

from investiga.providers.base import (
    BaseProvider,
    LocalProvider,
    ProviderError,
    ProviderNotConfiguredError,
    SearchOptions,
)
from investiga.providers.models import (
    COMPANY_PROVIDERS,
    PERSON_PROVIDERS,
    Provider,
    ResultSet,
    SearchItem,
)
from investiga.providers.registry import (
    EMAIL_PROVIDERS,
    PROVIDER_CLASSES,
    ProviderRegistry,
    build_http_client,
    parse_provider,
)

__all__ = [
    "BaseProvider",
    "COMPANY_PROVIDERS",
    "EMAIL_PROVIDERS",
    "LocalProvider",
    "PERSON_PROVIDERS",
    "PROVIDER_CLASSES",
    "Provider",
    "ProviderError",
    "ProviderNotConfiguredError",
    "ProviderRegistry",
    "ResultSet",
    "SearchItem",
    "SearchOptions",
    "build_http_client",
    "parse_provider",
]
