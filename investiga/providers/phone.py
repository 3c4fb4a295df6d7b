"""Phone providers: local formatting, DDD lookups and carrier portability."""

from __future__ import annotations

from typing import Any, Dict, List

from loguru import logger

from investiga.normalization.field_picker import FieldPicker
from investiga.normalization.identifiers import only_digits, parse_phone
from investiga.providers.base import (
    BaseProvider,
    LocalProvider,
    ProviderError,
    ProviderNotConfiguredError,
    SearchOptions,
)
from investiga.providers.models import Provider, SearchItem

BRASILAPI_DDD_URL = "https://brasilapi.com.br/api/ddd/v1/{ddd}"
APIBRASIL_DDD_URL = "https://gateway.apibrasil.io/api/v2/dados/ddd"
APIBRASIL_PORTABILIDADE_URL = "https://gateway.apibrasil.io/api/v2/portabilidade/consulta"

_STATE = FieldPicker.paths(("state",), ("response", "state"), ("data", "state"), ("uf",))
_CITIES = FieldPicker.paths(
    ("cities",),
    ("response", "cities"),
    ("data", "cities"),
    ("cidades",),
    extractor=lambda v: v if isinstance(v, list) else None,
)
_CARRIER = FieldPicker.paths(
    ("response", "operadora"), ("operadora",), ("data", "operadora"), ("carrier",)
)
_PORTED = FieldPicker.paths(
    ("response", "portado"), ("portado",), ("data", "portado"), extractor=lambda v: v
)


def normalize_phone_format(query: str) -> List[SearchItem]:
    info = parse_phone(query)
    if info is None:
        return []
    return [
        SearchItem(
            title="Telefone formatado",
            description=info.formatted,
            url=f"tel:{info.e164}",
            source=Provider.PHONE,
            kind=info.kind,
            ddd=info.ddd,
            e164=info.e164,
            phone=info.digits,
        )
    ]


def normalize_ddd(provider: Provider, ddd: str, payload: Any, *, url: str | None = None) -> List[SearchItem]:
    if not isinstance(payload, dict):
        return [
            SearchItem.sentinel_not_found(
                provider, title="DDD não encontrado", description=f"DDD {ddd} não localizado", url=url, ddd=ddd
            )
        ]
    state = _STATE.pick(payload)
    cities: List[str] = _CITIES.pick(payload, default=[])
    preview = ", ".join(str(c) for c in cities[:5])
    description = f"DDD {ddd} - {state}" if state else f"DDD {ddd}"
    if preview:
        description = f"{description}: {preview}"
    return [
        SearchItem(
            title=f"DDD {ddd}" + (f" ({state})" if state else ""),
            description=description,
            url=url,
            source=provider,
            ddd=ddd,
            state=state,
            cities=cities,
        )
    ]


def normalize_portability(phone: str, payload: Any) -> List[SearchItem]:
    if not isinstance(payload, dict):
        return [
            SearchItem.sentinel_not_found(
                Provider.PHONE_PORTABILIDADE,
                title="Portabilidade não encontrada",
                description=f"Sem dados de portabilidade para {phone}",
                phone=phone,
            )
        ]
    carrier = _CARRIER.pick(payload)
    ported = _PORTED.pick(payload)
    parts = [f"Operadora: {carrier}" if carrier else None]
    if ported is not None:
        parts.append("Portado" if ported in (True, "sim", "SIM", "true", 1) else "Não portado")
    return [
        SearchItem(
            title=f"Portabilidade {phone}",
            description=" • ".join(p for p in parts if p) or None,
            source=Provider.PHONE_PORTABILIDADE,
            phone=phone,
            carrier=carrier,
            raw=payload,
        )
    ]


def _ddd_from_query(query: str) -> str:
    digits = only_digits(query)
    if digits.startswith("55") and len(digits) >= 12:
        digits = digits[2:]
    return digits[:2] if len(digits) >= 2 else ""


class PhoneProvider(LocalProvider):
    provider = Provider.PHONE

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        return normalize_phone_format(query)


class BrasilAPIDDDProvider(BaseProvider):
    provider = Provider.DDD_BRASILAPI

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        ddd = _ddd_from_query(query)
        if not ddd:
            return []
        url = BRASILAPI_DDD_URL.format(ddd=ddd)
        status, data = await self._get_json(url)
        if status == 404:
            return normalize_ddd(self.provider, ddd, None, url=url)
        if data is None:
            raise ProviderError(f"BrasilAPI HTTP {status}")
        return normalize_ddd(self.provider, ddd, data, url=url)


class _APIBrasilMixin:
    credentials: Any

    def _apibrasil_headers(self) -> Dict[str, str]:
        token = self.credentials.apibrasil_token
        if not token:
            raise ProviderNotConfiguredError("APIBrasil não configurado")
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        if self.credentials.apibrasil_device_token:
            headers["DeviceToken"] = self.credentials.apibrasil_device_token
        return headers


class APIBrasilDDDProvider(_APIBrasilMixin, BaseProvider):
    """Anatel DDD data through APIBrasil.

    Without a token it falls back to BrasilAPI unless ``apibrasil_no_fallback``
    is set, in which case a "not configured" sentinel is returned.
    """

    provider = Provider.DDD_APIBRASIL

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        ddd = _ddd_from_query(query)
        if not ddd:
            return []

        if not self.credentials.apibrasil_token and not options.apibrasil_no_fallback:
            logger.debug("APIBrasil token missing, falling back to BrasilAPI for DDD")
            fallback = BrasilAPIDDDProvider(
                self.client, providers_config=self.providers_config, credentials=self.credentials
            )
            items = await fallback.search(query, options)
            return [
                SearchItem(**{**item.model_dump(), "source": self.provider, "fallback": "brasilapi"})
                for item in items
            ]

        headers = self._apibrasil_headers()
        status, data = await self._post_json(APIBRASIL_DDD_URL, json_body={"ddd": ddd}, headers=headers)
        if status == 404:
            return normalize_ddd(self.provider, ddd, None, url=APIBRASIL_DDD_URL)
        if data is None:
            raise ProviderError(f"APIBrasil HTTP {status}")
        return normalize_ddd(self.provider, ddd, data, url=APIBRASIL_DDD_URL)


class PortabilidadeProvider(_APIBrasilMixin, BaseProvider):
    provider = Provider.PHONE_PORTABILIDADE

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        info = parse_phone(query)
        if info is None:
            return []
        headers = self._apibrasil_headers()
        body = {"tipo": "consulta-operadora", "telefone": info.digits}
        status, data = await self._post_json(APIBRASIL_PORTABILIDADE_URL, json_body=body, headers=headers)
        if status == 404:
            return normalize_portability(info.digits, None)
        if data is None:
            raise ProviderError(f"Portabilidade HTTP {status}")
        return normalize_portability(info.digits, data)
