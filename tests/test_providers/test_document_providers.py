"""Tests for CPF, PIS and CNPJ providers."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import httpx

from investiga.providers.documents import (
    CNPJProvider,
    CPFProvider,
    PISProvider,
    normalize_cnpj_payload,
    summarize_company,
)
from investiga.providers.models import Provider, SearchItem


def _company_payload() -> Dict[str, Any]:
    return {
        "alias": "Exemplo",
        "founded": "2001-05-10",
        "status": {"text": "Ativa"},
        "company": {
            "name": "Empresa Exemplo LTDA",
            "nature": {"text": "Sociedade Limitada"},
            "members": [{"person": {"name": "Fulano de Tal"}}, {"person": {}}],
        },
        "address": {
            "street": "Av Paulista",
            "number": "1000",
            "district": "Bela Vista",
            "city": "São Paulo",
            "state": "SP",
            "zip": "01310100",
        },
        "phones": [{"area": "11", "number": "33334444"}],
        "emails": [{"address": "contato@exemplo.com.br"}],
    }


def _run_cnpj(handler, query: str) -> List[SearchItem]:
    async def go() -> List[SearchItem]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await CNPJProvider(client).run(query)

    return asyncio.run(go())


def test_cpf_provider_validates_locally() -> None:
    items = asyncio.run(CPFProvider().run("529.982.247-25"))

    assert len(items) == 1
    assert items[0].title == "CPF válido"
    assert items[0].extra("cpf") == "529.982.247-25"
    assert items[0].extra("valid") is True
    assert items[0].source is Provider.CPF


def test_cpf_provider_flags_bad_check_digits() -> None:
    items = asyncio.run(CPFProvider().run("52998224726"))

    assert items[0].title == "CPF inválido"
    assert items[0].extra("valid") is False


def test_cpf_provider_ignores_wrong_length() -> None:
    assert asyncio.run(CPFProvider().run("1234")) == []


def test_pis_provider() -> None:
    items = asyncio.run(PISProvider().run("120.12345.67-2"))

    assert items[0].title == "PIS/NIT válido"
    assert items[0].extra("pis") == "120.12345.67-2"
    assert items[0].source is Provider.CLT_PIS


def test_summarize_company() -> None:
    summary = summarize_company(_company_payload())

    assert summary["summary"] == (
        "Empresa Exemplo LTDA (Exemplo) • Ativa • Sociedade Limitada • Fundada: 2001-05-10 • "
        "Av Paulista, 1000, Bela Vista, São Paulo (SP), 01310100"
    )
    assert summary["directors"] == ["Fulano de Tal"]
    assert summary["phones"] == ["11-33334444"]
    assert summary["emails"] == ["contato@exemplo.com.br"]


def test_summarize_company_ignores_malformed_lists() -> None:
    payload = {"name": "Empresa", "phones": 11, "emails": {"address": "x@y.com"}, "company": {"members": True}}

    summary = summarize_company(payload)

    assert summary["summary"] == "Empresa"
    assert summary["directors"] == []
    assert summary["phones"] == []
    assert summary["emails"] == []


def test_normalize_cnpj_payload_keeps_raw() -> None:
    payload = _company_payload()

    items = normalize_cnpj_payload("11222333000181", payload, url="https://open.cnpja.com/office/11222333000181")

    assert items[0].title == "Empresa Exemplo LTDA"
    assert items[0].extra("cnpj") == "11.222.333/0001-81"
    assert items[0].raw == payload


def test_cnpj_with_bad_check_digits_skips_the_vendor() -> None:
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    items = _run_cnpj(handler, "11.222.333/0001-80")

    assert calls == []
    assert items[0].title == "CNPJ inválido"
    assert items[0].extra("valid") is False


def test_cnpj_lookup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/office/11222333000181"
        return httpx.Response(200, json=_company_payload())

    items = _run_cnpj(handler, "11.222.333/0001-81")

    assert items[0].title == "Empresa Exemplo LTDA"
    assert items[0].extra("valid") is True


def test_cnpj_not_found() -> None:
    items = _run_cnpj(lambda request: httpx.Response(404), "11222333000181")

    assert items[0].is_not_found
    assert items[0].title == "CNPJ não encontrado"


def test_cnpj_server_error_is_isolated() -> None:
    items = _run_cnpj(lambda request: httpx.Response(503), "11222333000181")

    assert items[0].error == "CNPJ HTTP 503"
