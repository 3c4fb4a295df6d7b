"""CEP lookups through ViaCEP."""

from __future__ import annotations

from typing import Any, List

from investiga.normalization.identifiers import only_digits
from investiga.providers.base import BaseProvider, ProviderError, SearchOptions
from investiga.providers.models import Provider, SearchItem

VIACEP_URL = "https://viacep.com.br/ws/{cep}/json/"


def normalize_viacep(query: str, payload: Any) -> List[SearchItem]:
    """Map a ViaCEP answer; ``{"erro": true}`` becomes a not-found sentinel.

    The sentinel keeps the queried CEP in its description and URL, so the
    cross-reference stage still sees the literal value.
    """
    cep = only_digits(query)
    url = VIACEP_URL.format(cep=cep)
    if not isinstance(payload, dict) or payload.get("erro"):
        message = f"CEP {cep} não localizado na base ViaCEP"
        return [
            SearchItem.sentinel_not_found(
                Provider.CEP, title="CEP não encontrado", description=message, url=url
            )
        ]

    uf = payload.get("uf")
    city = payload.get("localidade")
    city_uf = f"{city}-{uf}" if city and uf else (city or uf)
    description = ", ".join(
        str(p) for p in (payload.get("logradouro"), payload.get("bairro"), city_uf) if p
    )
    return [
        SearchItem(
            title="Endereço encontrado",
            description=description,
            url=url,
            source=Provider.CEP,
            ibge=payload.get("ibge"),
            ddd=payload.get("ddd"),
            cep=cep,
            raw=payload,
        )
    ]


class CEPProvider(BaseProvider):
    provider = Provider.CEP

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        cep = only_digits(query)
        if len(cep) != 8:
            return []
        status, data = await self._get_json(VIACEP_URL.format(cep=cep))
        if data is None:
            raise ProviderError(f"ViaCEP HTTP {status}")
        return normalize_viacep(cep, data)
