"""Tests for cross group computation and the membership index."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from investiga.crossref.engine import CrossReferenceEngine, compute_cross
from investiga.crossref.models import (
    PERSON_COMPANY_TAG,
    CrossGroup,
    CrossMatch,
    IdentifierType,
    ItemKey,
)
from investiga.providers.models import Provider, ResultSet, SearchItem


def _item(source: Provider, title: str, **fields: Any) -> SearchItem:
    return SearchItem(title=title, source=source, **fields)


def _shared_cpf_results() -> ResultSet:
    return {
        "cpf": {
            "cpf": [
                _item(Provider.CPF, "CPF válido", description="CPF 529.982.247-25 válido", cpf="529.982.247-25")
            ]
        },
        "celular": {
            "directdata": [_item(Provider.DIRECTDATA, "Fulano", description="Documento 529.982.247-25")],
            "phone": [_item(Provider.PHONE, "Telefone formatado", description="(11) 98765-4321")],
        },
    }


def test_shared_cpf_forms_one_group() -> None:
    result = compute_cross(_shared_cpf_results())

    cpf_groups = result.by_type(IdentifierType.CPF)
    assert len(cpf_groups) == 1
    group = cpf_groups[0]
    assert group.value == "52998224725"
    assert group.occurrences == 2
    assert [(m.field, m.provider) for m in group.matches] == [("cpf", "cpf"), ("celular", "directdata")]
    assert group.providers == ["cpf", "directdata"]


def test_membership_marks_only_grouped_items() -> None:
    results = _shared_cpf_results()

    result = compute_cross(results)

    cpf_item = results["cpf"]["cpf"][0]
    directdata_item = results["celular"]["directdata"][0]
    phone_item = results["celular"]["phone"][0]
    assert result.is_crossed(cpf_item, "cpf", "cpf")
    assert result.is_crossed(directdata_item, "celular", "directdata")
    assert not result.is_crossed(phone_item, "celular", "phone")
    # same item under a different bucket is a different key
    assert not result.is_crossed(cpf_item, "celular", "cpf")


def test_no_shared_values_means_no_groups() -> None:
    results = {
        "cep": {"cep": [_item(Provider.CEP, "Endereço encontrado", cep="01310100")]},
        "cpf": {"cpf": [_item(Provider.CPF, "CPF válido", cpf="52998224725")]},
    }

    result = compute_cross(results)

    assert result.groups == []
    assert len(result.membership) == 0


def test_value_repeated_inside_one_item_is_not_a_cross() -> None:
    results = {
        "cpf": {
            "cpf": [_item(Provider.CPF, "CPF 529.982.247-25", description="52998224725", cpf="529.982.247-25")]
        }
    }

    assert compute_cross(results).by_type(IdentifierType.CPF) == []


def test_groups_are_sorted_by_type_then_value() -> None:
    results = {
        "cpf": {
            "cpf": [_item(Provider.CPF, "a", cpf="52998224725", cep="04538133")],
            "directdata": [_item(Provider.DIRECTDATA, "b", cpf="52998224725", cep="04538133")],
        },
        "cep": {
            "cep": [_item(Provider.CEP, "c", cep="01310100")],
            "directdata": [_item(Provider.DIRECTDATA, "d", cep="01310100")],
        },
    }

    first = compute_cross(results)
    second = compute_cross(results)

    keys = [(g.type.value, g.value) for g in first.groups]
    assert keys == [("cep", "01310100"), ("cep", "04538133"), ("cpf", "52998224725")]
    assert [g.model_dump() for g in first.groups] == [g.model_dump() for g in second.groups]
    assert [str(k) for k in first.membership] == [str(k) for k in second.membership]


def test_person_company_tag() -> None:
    results = {
        "cnpj": {
            "cnpj": [
                _item(
                    Provider.CNPJ,
                    "Empresa Exemplo LTDA",
                    raw={"company": {"members": [{"person": {"name": "Fulano Beltrano"}}]}},
                )
            ]
        },
        "nome": {"directdata": [_item(Provider.DIRECTDATA, "Perfil", raw={"name": "Fulano Beltrano"})]},
    }

    groups = compute_cross(results).by_type(IdentifierType.NAME)

    assert len(groups) == 1
    assert groups[0].value == "fulano beltrano"
    assert groups[0].tags == [PERSON_COMPANY_TAG]


def test_name_group_between_people_is_untagged() -> None:
    results = {
        "nome": {
            "directdata": [_item(Provider.DIRECTDATA, "Perfil", raw={"name": "Fulano Beltrano"})],
            "datajud": [_item(Provider.DATAJUD, "Processo 1", partes=["Fulano Beltrano"])],
        }
    }

    groups = compute_cross(results).by_type(IdentifierType.NAME)

    assert groups[0].tags == []


def test_names_from_text_only_when_enabled() -> None:
    results = {
        "nome": {
            "duckduckgo": [_item(Provider.DUCKDUCKGO, "notícia", description="citado: Hermenegildo Vasconcelos")],
            "wikipedia": [_item(Provider.WIKIPEDIA, "artigo", description="sobre Hermenegildo Vasconcelos")],
        }
    }

    assert CrossReferenceEngine().compute(results).by_type(IdentifierType.NAME) == []

    enabled = CrossReferenceEngine(extract_names_from_text=True).compute(results)
    assert [g.value for g in enabled.by_type(IdentifierType.NAME)] == ["hermenegildo vasconcelos"]


def test_visible_groups_hide_generic_names() -> None:
    results = {
        "nome": {
            "directdata": [_item(Provider.DIRECTDATA, "Perfil", raw={"name": "Ana Lima"}, cpf="52998224725")],
            "datajud": [_item(Provider.DATAJUD, "Processo", partes=["Ana Lima"], cpf="52998224725")],
        }
    }

    result = compute_cross(results)

    assert {g.type for g in result.groups} == {IdentifierType.CPF, IdentifierType.NAME}
    assert [g.type for g in result.visible_groups()] == [IdentifierType.CPF]
    assert len(result.visible_groups(hide_generic_names=False)) == 2


def test_cross_group_needs_two_matches() -> None:
    with pytest.raises(ValidationError):
        CrossGroup(type=IdentifierType.CPF, value="52998224725", matches=[CrossMatch(field="cpf", provider="cpf")])


def test_item_key_string_form() -> None:
    item = _item(Provider.CEP, "Endereço encontrado", url="https://viacep.com.br/ws/01310100/json/")

    key = ItemKey.for_item(item, "cep", "cep")

    assert str(key) == "cep|cep|Endereço encontrado|https://viacep.com.br/ws/01310100/json/|cep"


def test_phone_result_with_cpf_only_in_raw_joins_cpf_result() -> None:
    results = {
        "cpf": {"cpf": [_item(Provider.CPF, "CPF 123.456.789-09", cpf="12345678909")]},
        "celular": {"phone": [_item(Provider.PHONE, "Tel", raw={"cpf": "12345678909"})]},
    }

    groups = compute_cross(results).by_type(IdentifierType.CPF)

    assert len(groups) == 1
    assert groups[0].value == "12345678909"
    assert [(m.field, m.provider) for m in groups[0].matches] == [("cpf", "cpf"), ("celular", "phone")]


def test_cep_not_found_sentinels_still_group_on_the_queried_value() -> None:
    def missing(field: str) -> SearchItem:
        return SearchItem.sentinel_not_found(
            Provider.CEP,
            title="CEP não encontrado",
            description="CEP 99999999 não localizado na base ViaCEP",
            url=f"https://viacep.com.br/ws/99999999/json/?{field}",
        )

    results = {"cep": {"cep": [missing("cep")]}, "celular": {"cep": [missing("celular")]}}

    groups = compute_cross(results).by_type(IdentifierType.CEP)

    assert [(g.value, g.occurrences) for g in groups] == [("99999999", 2)]


def test_malformed_raw_containers_do_not_break_the_engine() -> None:
    results = {
        "cnpj": {"cnpj": [_item(Provider.CNPJ, "Empresa", raw={"company": {"members": 5}})]},
        "nome": {"directdata": [_item(Provider.DIRECTDATA, "Perfil", raw={"phones": True, "partes": 3.5})]},
    }

    result = compute_cross(results)

    assert result.groups == []
    assert len(result.membership) == 0
