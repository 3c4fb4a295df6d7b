"""Document providers: CPF and PIS/NIT (local check digits), CNPJ (CNPJa)."""

from __future__ import annotations

from typing import Any, Dict, List

from investiga.normalization.field_picker import FieldPicker, as_list, dig
from investiga.normalization.identifiers import (
    only_digits,
    validate_cnpj,
    validate_cpf,
    validate_pis,
)
from investiga.providers.base import (
    BaseProvider,
    LocalProvider,
    ProviderError,
    SearchOptions,
)
from investiga.providers.models import Provider, SearchItem

CPF_REFERENCE_URL = "https://www.gov.br/pt-br/servicos/validacao-de-documentos"
PIS_REFERENCE_URL = "https://www.gov.br/pt-br/servicos"
CNPJA_OFFICE_URL = "https://open.cnpja.com/office/{cnpj}"

_COMPANY_NAME = FieldPicker.paths(("company", "name"), ("name",), ("razao_social",))
_NATURE = FieldPicker.paths(("company", "nature", "text"), ("nature", "text"), ("legalNature", "text"))
_SIZE = FieldPicker.paths(("company", "size", "text"), ("size", "text"))
_STATUS = FieldPicker.paths(("status", "text"), ("descricao_situacao_cadastral",))
_ACTIVITY = FieldPicker.paths(("mainActivity", "text"), ("cnae_fiscal_descricao",))


def normalize_cpf_validation(query: str) -> List[SearchItem]:
    digits = only_digits(query)
    if len(digits) != 11:
        return []
    result = validate_cpf(digits)
    if result.valid:
        title = "CPF válido"
        description = f"CPF {result.formatted} válido conforme dígitos verificadores."
    else:
        title = "CPF inválido"
        description = f"CPF {result.formatted} inválido (dígitos verificadores não conferem)."
    return [
        SearchItem(
            title=title,
            description=description,
            url=CPF_REFERENCE_URL,
            source=Provider.CPF,
            cpf=result.formatted,
            digits=result.digits,
            valid=result.valid,
        )
    ]


def normalize_pis_validation(query: str) -> List[SearchItem]:
    digits = only_digits(query)
    if len(digits) != 11:
        return []
    result = validate_pis(digits)
    title = "PIS/NIT válido" if result.valid else "PIS/NIT inválido"
    description = f"CLT {result.formatted} {'válido' if result.valid else 'inválido'}."
    return [
        SearchItem(
            title=title,
            description=description,
            url=PIS_REFERENCE_URL,
            source=Provider.CLT_PIS,
            pis=result.formatted,
            valid=result.valid,
        )
    ]


def summarize_company(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Summary line plus directors/phones/emails/address of a CNPJ payload."""
    name = _COMPANY_NAME.pick(raw, default="Empresa")
    alias = raw.get("alias")
    address = raw.get("address") if isinstance(raw.get("address"), dict) else {}
    city, state = address.get("city"), address.get("state")
    city_state = f"{city} ({state})" if city and state else (city or state)
    address_str = ", ".join(
        str(part)
        for part in (
            address.get("street"),
            address.get("number"),
            address.get("details") or address.get("complement"),
            address.get("district"),
            city_state,
            address.get("zip"),
        )
        if part
    )

    phones = [
        f"{p.get('area')}-{p.get('number')}"
        for p in as_list(raw.get("phones"))
        if isinstance(p, dict) and p.get("number")
    ]
    emails = [
        e.get("address") for e in as_list(raw.get("emails")) if isinstance(e, dict) and e.get("address")
    ]
    members = as_list(dig(raw, ("company", "members")))
    directors = [
        name
        for name in (dig(m, ("person", "name")) for m in members if isinstance(m, dict))
        if name
    ]

    founded = raw.get("founded")
    parts = [
        f"{name} ({alias})" if alias else name,
        _STATUS.pick(raw),
        _NATURE.pick(raw),
        _SIZE.pick(raw),
        _ACTIVITY.pick(raw),
        f"Fundada: {founded}" if founded else None,
        address_str,
    ]
    return {
        "summary": " • ".join(p for p in parts if p),
        "directors": directors,
        "phones": phones,
        "emails": emails,
        "address": address_str,
    }


def normalize_cnpj_payload(query: str, payload: Any, *, url: str | None = None) -> List[SearchItem]:
    digits = only_digits(query)
    result = validate_cnpj(digits)
    if not isinstance(payload, dict):
        return [
            SearchItem.sentinel_not_found(
                Provider.CNPJ,
                title="CNPJ não encontrado",
                description=f"CNPJ {result.formatted} não localizado",
                url=url,
                cnpj=result.formatted,
            )
        ]

    summary = summarize_company(payload)
    return [
        SearchItem(
            title=_COMPANY_NAME.pick(payload, default=f"CNPJ {result.formatted}"),
            description=summary["summary"],
            url=url,
            source=Provider.CNPJ,
            cnpj=result.formatted,
            valid=result.valid,
            raw=payload,
        )
    ]


class CPFProvider(LocalProvider):
    provider = Provider.CPF

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        return normalize_cpf_validation(query)


class PISProvider(LocalProvider):
    provider = Provider.CLT_PIS

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        return normalize_pis_validation(query)


class CNPJProvider(BaseProvider):
    """CNPJa open office lookup; invalid check digits short-circuit locally."""

    provider = Provider.CNPJ

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        digits = only_digits(query)
        if len(digits) != 14:
            return []
        result = validate_cnpj(digits)
        if not result.valid:
            return [
                SearchItem(
                    title="CNPJ inválido",
                    description=f"CNPJ {result.formatted} inválido (dígitos verificadores não conferem).",
                    source=Provider.CNPJ,
                    cnpj=result.formatted,
                    valid=False,
                )
            ]

        url = CNPJA_OFFICE_URL.format(cnpj=digits)
        status, data = await self._get_json(url)
        if status == 404:
            return normalize_cnpj_payload(digits, None, url=url)
        if data is None:
            raise ProviderError(f"CNPJ HTTP {status}")
        return normalize_cnpj_payload(digits, data, url=url)
