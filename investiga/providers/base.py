"""Provider base class: one outbound lookup turned into ``SearchItem`` records.

Subclasses implement :meth:`BaseProvider.search`. Callers go through
:meth:`BaseProvider.run`, which converts vendor-layer failures into sentinel
items so one misbehaving vendor never aborts a batch.
"""

from __future__ import annotations

import asyncio
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict

from investiga.providers.models import Provider, SearchItem
from investiga.utils.config import CredentialsConfig, ProvidersConfig

_HTML_TAG_RE = re.compile(r"<[^>]+>")


class ProviderError(Exception):
    """Vendor answered with an unexpected status or shape."""


class ProviderNotConfiguredError(ProviderError):
    """Required credentials/base URL are missing."""


class SearchOptions(BaseModel):
    """Per-call switches forwarded from the caller."""

    model_config = ConfigDict(extra="allow")

    apibrasil_no_fallback: bool = False
    directdata_method: Optional[str] = None
    datajud_tribunal: str = "tjsp"


def strip_html(value: Any) -> str:
    if not value:
        return ""
    return _HTML_TAG_RE.sub("", str(value))


class BaseProvider(ABC):
    """Abstract lookup provider."""

    provider: Provider
    requires_network: bool = True

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        providers_config: ProvidersConfig | None = None,
        credentials: CredentialsConfig | None = None,
    ) -> None:
        self.client = client
        self.providers_config = providers_config or ProvidersConfig()
        self.credentials = credentials or CredentialsConfig()

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def max_items(self) -> int:
        return self.providers_config.max_items

    @abstractmethod
    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        """Query the vendor and normalize its payload."""

    async def run(self, query: str, options: SearchOptions | None = None) -> List[SearchItem]:
        """Run :meth:`search`, turning vendor failures into a sentinel item."""
        query = (query or "").strip()
        options = options or SearchOptions()
        start = time.time()
        try:
            items = await self.search(query, options)
        except asyncio.CancelledError:
            raise
        except ProviderNotConfiguredError as e:
            logger.warning(f"Provider {self.name} not configured: {e}")
            items = [SearchItem.sentinel_error(self.provider, str(e))]
        except httpx.HTTPError as e:
            logger.warning(f"Provider {self.name} request failed: {e}")
            items = [SearchItem.sentinel_error(self.provider, f"{self.name} falhou: {e}")]
        except (ProviderError, ValueError) as e:
            logger.warning(f"Provider {self.name} returned an unusable payload: {e}")
            items = [SearchItem.sentinel_error(self.provider, str(e))]

        elapsed_ms = (time.time() - start) * 1000
        logger.debug(f"Provider {self.name} returned {len(items)} items in {elapsed_ms:.1f}ms")
        return items

    def _require_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise ProviderError(f"{self.name} requires an HTTP client")
        return self.client

    def _default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.providers_config.user_agent}

    async def _get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Tuple[int, Any]:
        """GET ``url`` and decode JSON.

        Returns ``(status_code, payload)``; payload is None for non-2xx answers
        or empty bodies so callers can decide what a given status means.
        """
        client = self._require_client()
        merged_headers = {**self._default_headers(), **(headers or {})}
        response = await client.get(url, params=params, headers=merged_headers)
        if not response.is_success or not response.content:
            return response.status_code, None
        return response.status_code, response.json()

    async def _post_json(
        self,
        url: str,
        *,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Tuple[int, Any]:
        client = self._require_client()
        merged_headers = {**self._default_headers(), **(headers or {})}
        response = await client.post(url, json=json_body, headers=merged_headers)
        if not response.is_success or not response.content:
            return response.status_code, None
        return response.status_code, response.json()


class LocalProvider(BaseProvider):
    """Provider computed locally (validation/formatting), no network call."""

    requires_network = False
