"""Tests for the Direct Data and DataJud providers."""

from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from investiga.providers.base import BaseProvider, SearchOptions
from investiga.providers.datajud import DataJudProvider, build_datajud_query, normalize_datajud
from investiga.providers.directdata import DirectDataProvider, detect_method, normalize_directdata
from investiga.providers.models import Provider, SearchItem
from investiga.utils.config import CredentialsConfig

DATAJUD_HIT = {
    "_id": "TRF1_436_JE_00008323520184013202",
    "_source": {
        "numeroProcesso": "00008323520184013202",
        "classe": {"nome": "Procedimento Comum"},
        "orgaoJulgador": {"nome": "1ª Vara Federal"},
        "dataAjuizamento": "2018-03-01",
        "tribunal": "TRF1",
    },
}


def _no_request(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


def _run(
    provider_cls: type[BaseProvider],
    handler,
    query: str,
    credentials: CredentialsConfig,
    options: SearchOptions | None = None,
) -> List[SearchItem]:
    async def go() -> List[SearchItem]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await provider_cls(client, credentials=credentials).run(query, options)

    return asyncio.run(go())


def _directdata_credentials(**overrides: str) -> CredentialsConfig:
    values = {
        "direct_data_api_key": "k",
        "direct_data_base_url": "https://dd.example.com/v1/",
        "direct_data_auth_header": "X-API-Key",
        "direct_data_auth_scheme": "",
    }
    values.update(overrides)
    return CredentialsConfig(**values)


@pytest.mark.parametrize(
    ("query", "method"),
    [
        ("fulano@exemplo.com", "email"),
        ("529.982.247-25", "id"),
        ("11.222.333/0001-81", "id"),
        ("(11) 98765-4321", "phone"),
        ("Fulano de Tal", "name"),
        ("fulano", "search"),
        ("12345", "search"),
        ("RG 12.345.678-9", "search"),
    ],
)
def test_detect_method(query: str, method: str) -> None:
    assert detect_method(query) == method


def test_normalize_directdata_accepts_lists_and_wrappers() -> None:
    record = {"full_name": "Fulano de Tal", "headline": "Analista", "linkedin_url": "https://linkedin.com/in/fulano"}

    wrapped = normalize_directdata("q", {"results": [record]})
    single = normalize_directdata("q", record)

    assert wrapped[0].title == single[0].title == "Fulano de Tal"
    assert wrapped[0].description == "Analista"
    assert wrapped[0].url == "https://linkedin.com/in/fulano"
    assert wrapped[0].raw == record


def test_normalize_directdata_uses_query_as_fallback_title() -> None:
    items = normalize_directdata("52998224725", [{"cpf": "52998224725"}, "noise"])

    assert len(items) == 1
    assert items[0].title == "52998224725"


def test_directdata_not_configured() -> None:
    credentials = _directdata_credentials(direct_data_api_key="")

    items = _run(DirectDataProvider, _no_request, "Fulano de Tal", credentials)

    assert items[0].error == "Direct Data não configurado"
    assert items[0].source is Provider.DIRECTDATA


def test_directdata_calls_detected_endpoint_with_auth_scheme() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [{"name": "Fulano de Tal"}]})

    credentials = _directdata_credentials(direct_data_auth_header="Authorization", direct_data_auth_scheme="Bearer")

    items = _run(DirectDataProvider, handler, "Fulano de Tal", credentials)

    assert [i.title for i in items] == ["Fulano de Tal"]
    assert seen[0].url.path == "/v1/name"
    assert seen[0].url.params["q"] == "Fulano de Tal"
    assert seen[0].headers["Authorization"] == "Bearer k"


def test_directdata_custom_header() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["X-API-Key"] == "k"
        assert request.url.path == "/v1/phone"
        return httpx.Response(200, json=[])

    assert _run(DirectDataProvider, handler, "11987654321", _directdata_credentials()) == []


def test_directdata_unknown_method_is_reported() -> None:
    items = _run(
        DirectDataProvider,
        _no_request,
        "Fulano de Tal",
        _directdata_credentials(),
        SearchOptions(directdata_method="bogus"),
    )

    assert items[0].error == "Direct Data method desconhecido: bogus"


def test_build_datajud_query() -> None:
    by_number = build_datajud_query("0000832-35.2018.4.01.3202", size=3)
    by_text = build_datajud_query("Fulano de Tal")

    assert by_number == {"size": 3, "query": {"match": {"numeroProcesso": "00008323520184013202"}}}
    assert by_text == {"size": 5, "query": {"query_string": {"query": "Fulano de Tal"}}}


def test_normalize_datajud() -> None:
    items = normalize_datajud("trf1", {"hits": {"hits": [DATAJUD_HIT, {"_id": "sem source"}]}})

    assert len(items) == 1
    assert items[0].title == "Processo 00008323520184013202"
    assert items[0].description == "Procedimento Comum • 1ª Vara Federal • Ajuizamento: 2018-03-01"
    assert items[0].extra("tribunal") == "TRF1"
    assert items[0].extra("process_number") == "00008323520184013202"


def test_datajud_not_configured() -> None:
    items = _run(DataJudProvider, _no_request, "Fulano de Tal", CredentialsConfig(datajud_api_key=""))

    assert items[0].error == "DataJud não configurado"


def test_datajud_rejects_bad_tribunal_alias() -> None:
    items = _run(
        DataJudProvider,
        _no_request,
        "Fulano de Tal",
        CredentialsConfig(datajud_api_key="k"),
        SearchOptions(datajud_tribunal="tj-sp"),
    )

    assert items[0].error == "Tribunal inválido: tj-sp"


def test_datajud_posts_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api_publica_tjsp/_search"
        assert request.headers["Authorization"] == "APIKey k"
        body = json.loads(request.content)
        assert body["query"] == {"query_string": {"query": "Fulano de Tal"}}
        return httpx.Response(200, json={"hits": {"hits": [DATAJUD_HIT]}})

    items = _run(DataJudProvider, handler, "Fulano de Tal", CredentialsConfig(datajud_api_key="k"))

    assert items[0].source is Provider.DATAJUD
