"""Direct Data: a paid, vendor-configurable people/company lookup API."""

from __future__ import annotations

import re
from typing import Any, Dict, List

from investiga.normalization.field_picker import FieldPicker
from investiga.normalization.identifiers import EMAIL_RE, is_valid_cpf, only_digits
from investiga.providers.base import (
    BaseProvider,
    ProviderError,
    ProviderNotConfiguredError,
    SearchOptions,
)
from investiga.providers.models import Provider, SearchItem

DIRECTDATA_METHODS = ("id", "email", "phone", "name", "search")

_PUNCTUATION_RE = re.compile(r"[\s.\-/()+]")

_TITLE = FieldPicker.keys("title", "name", "heading", "full_name")
_DESCRIPTION = FieldPicker.keys("snippet", "description", "summary", "bio", "headline")
_URL = FieldPicker.keys("url", "link", "linkedin_url", "website")


def detect_method(query: str) -> str:
    """Pick the Direct Data endpoint from the shape of the query."""
    value = query.strip()
    if EMAIL_RE.match(value):
        return "email"
    digits = only_digits(value)
    if digits and digits == _PUNCTUATION_RE.sub("", value):
        if len(digits) == 14 or (len(digits) == 11 and is_valid_cpf(digits)):
            return "id"
        if 10 <= len(digits) <= 13:
            return "phone"
    if value and not digits and len(value.split()) >= 2:
        return "name"
    return "search"


def _records(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("items", "results", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return [payload]


def normalize_directdata(query: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    items: List[SearchItem] = []
    for record in _records(payload)[:limit]:
        if not isinstance(record, dict):
            continue
        items.append(
            SearchItem(
                title=_TITLE.pick(record, default=query),
                description=_DESCRIPTION.pick(record, default=""),
                url=_URL.pick(record),
                source=Provider.DIRECTDATA,
                raw=record,
            )
        )
    return items


class DirectDataProvider(BaseProvider):
    provider = Provider.DIRECTDATA

    def _auth_headers(self) -> Dict[str, str]:
        creds = self.credentials
        if not creds.direct_data_api_key or not creds.direct_data_base_url:
            raise ProviderNotConfiguredError("Direct Data não configurado")
        header = creds.direct_data_auth_header or "X-API-Key"
        if header.lower() == "authorization":
            scheme = (creds.direct_data_auth_scheme or "").strip()
            value = f"{scheme} {creds.direct_data_api_key}" if scheme else creds.direct_data_api_key
            return {"Authorization": value}
        return {header: creds.direct_data_api_key}

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        if not query:
            return []
        headers = self._auth_headers()
        method = options.directdata_method or detect_method(query)
        if method not in DIRECTDATA_METHODS:
            raise ValueError(f"Direct Data method desconhecido: {method}")

        base = self.credentials.direct_data_base_url.rstrip("/")
        params = {"q": query, "limit": self.max_items}
        status, data = await self._get_json(f"{base}/{method}", params=params, headers=headers)
        if data is None:
            raise ProviderError(f"Direct Data HTTP {status}")
        return normalize_directdata(query, data, limit=self.max_items)
