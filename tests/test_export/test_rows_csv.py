"""Tests for export rows, column presets and the CSV export."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict

from investiga.crossref.engine import compute_cross
from investiga.export.csv_export import build_csv, write_csv
from investiga.export.rows import (
    build_row,
    extract_known_fields,
    header_labels,
    resolve_columns,
    searched_value,
)
from investiga.providers.models import Provider, ResultSet, SearchItem
from investiga.utils.config import ExportConfig


def _company_raw() -> Dict[str, Any]:
    return {
        "company": {"name": "Empresa Exemplo LTDA", "members": [{"person": {"name": "Fulano de Tal"}}]},
        "address": {
            "street": "Av Paulista",
            "number": "1000",
            "district": "Bela Vista",
            "city": "São Paulo",
            "state": "SP",
            "zip": "01310100",
        },
        "phones": [{"area": "11", "number": "33334444"}, {"area": "11", "number": "33334444"}],
        "emails": [{"address": "contato@exemplo.com.br"}],
    }


def _results() -> ResultSet:
    return {
        "cpf": {
            "cpf": [SearchItem(title="CPF válido", source=Provider.CPF, cpf="529.982.247-25")],
        },
        "celular": {
            "directdata": [
                SearchItem(title="Fulano", description="CPF 529.982.247-25", source=Provider.DIRECTDATA)
            ],
            "phone": [SearchItem(title="Telefone formatado", description="(11) 98765-4321", source=Provider.PHONE)],
        },
    }


def _read_csv(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


def test_default_columns() -> None:
    assert resolve_columns(ExportConfig()) == ["data", "json", "raw"]


def test_order_is_respected_for_enabled_columns() -> None:
    config = ExportConfig(
        columns={"consulta": True, "emails": True, "raw": False},
        order=["emails", "consulta"],
    )

    assert resolve_columns(config) == ["emails", "consulta"]


def test_presets_override_columns() -> None:
    assert resolve_columns(ExportConfig(preset="Minimal")) == ["consulta", "data", "endereco", "telefones", "emails"]
    assert resolve_columns(ExportConfig(preset="Analítico")) == [
        "consulta",
        "data",
        "telefones",
        "emails",
        "endereco",
        "diretores",
        "json",
        "raw",
    ]


def test_header_labels() -> None:
    assert header_labels(["consulta", "raw"]) == [
        "Campo",
        "Provedor",
        "Título",
        "Descrição",
        "URL",
        "Fonte",
        "Consulta",
        "RAW",
    ]


def test_searched_value_is_formatted() -> None:
    subject = {"cpf": "52998224725", "celular": "11987654321", "nome": "Fulano"}

    assert searched_value("cpf", subject) == "529.982.247-25"
    assert searched_value("celular", subject) == "(11) 98765-4321"
    assert searched_value("nome", subject) == "Fulano"
    assert searched_value("cep", subject) == ""
    assert searched_value("cpf", None) == ""


def test_extract_known_fields_from_company_payload() -> None:
    item = SearchItem(title="Empresa", source=Provider.CNPJ, raw=_company_raw())

    known = extract_known_fields(item)

    assert known["endereco"] == "Av Paulista, 1000, Bela Vista, São Paulo, SP, 01310100"
    assert known["telefones"] == "11 33334444"
    assert known["emails"] == "contato@exemplo.com.br"
    assert known["diretores"] == "Fulano de Tal"


def test_build_row_serializes_json_and_raw() -> None:
    with_raw = SearchItem(title="Empresa", source=Provider.CNPJ, raw={"a": 1}, date="2024-01-02")
    without_raw = SearchItem(title="CPF válido", source=Provider.CPF)

    row = build_row("cnpj", "cnpj", with_raw, ["data", "json", "raw"])
    empty = build_row("cpf", "cpf", without_raw, ["json", "raw"])

    assert row["data"] == "2024-01-02"
    assert json.loads(row["json"])["title"] == "Empresa"
    assert json.loads(row["raw"]) == {"a": 1}
    assert empty["raw"] == ""
    assert row["fonte"] == "cnpj"


def test_build_csv_headers_and_rows() -> None:
    text = build_csv(_results(), ["consulta"], subject={"cpf": "52998224725"})

    rows = _read_csv(text)
    assert rows[0] == ["Campo", "Provedor", "Título", "Descrição", "URL", "Fonte", "Consulta"]
    assert len(rows) == 4
    assert rows[1] == ["cpf", "cpf", "CPF válido", "", "", "cpf", "529.982.247-25"]


def test_build_csv_only_crossed() -> None:
    results = _results()
    cross = compute_cross(results)

    rows = _read_csv(build_csv(results, [], only_crossed=True, membership=cross.membership))

    assert [(r[0], r[1]) for r in rows[1:]] == [("cpf", "cpf"), ("celular", "directdata")]


def test_only_crossed_without_membership_keeps_header_only() -> None:
    rows = _read_csv(build_csv(_results(), [], only_crossed=True))

    assert len(rows) == 1


def test_write_csv(tmp_path: Path) -> None:
    path = write_csv(tmp_path / "out" / "resultados.csv", "a,b\n")

    assert path.read_text(encoding="utf-8") == "a,b\n"
