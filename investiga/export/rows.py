"""Tabular rows shared by the CSV and XLSX exports."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from investiga.crossref.models import MembershipIndex
from investiga.normalization.field_picker import FieldPicker, dig
from investiga.normalization.identifiers import format_cep, format_cnpj, format_cpf, format_phone, only_digits
from investiga.providers.models import ResultSet, SearchItem
from investiga.utils.config import ExportConfig

BASE_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("campo", "Campo"),
    ("provedor", "Provedor"),
    ("titulo", "Título"),
    ("descricao", "Descrição"),
    ("url", "URL"),
    ("fonte", "Fonte"),
)

DYNAMIC_LABELS: Dict[str, str] = {
    "consulta": "Consulta",
    "data": "Data",
    "endereco": "Endereço",
    "telefones": "Telefones",
    "emails": "Emails",
    "diretores": "Diretores",
    "json": "JSON",
    "raw": "RAW",
}
DEFAULT_ORDER: Tuple[str, ...] = tuple(DYNAMIC_LABELS)

PRESETS: Dict[str, Dict[str, bool]] = {
    "Minimal": {
        "consulta": True, "data": True, "endereco": True, "telefones": True,
        "emails": True, "diretores": False, "json": False, "raw": False,
    },
    "Completo": {k: True for k in DEFAULT_ORDER},
    "Investigação": {
        "consulta": True, "data": True, "endereco": True, "telefones": True,
        "emails": True, "diretores": True, "json": False, "raw": False,
    },
    "Analítico": {k: True for k in DEFAULT_ORDER},
}
PRESET_ORDERS: Dict[str, Tuple[str, ...]] = {
    "Analítico": ("consulta", "data", "telefones", "emails", "endereco", "diretores", "json", "raw"),
}

DATE_KEYS = ("date", "created_at", "updated_at", "time", "timestamp")

_FULL_ADDRESS = FieldPicker.paths(("address_full",), ("endereco_full",), ("contacts", "address_full"))
_LOCATION = FieldPicker.paths(("profile", "location"), ("location",), ("company", "location"))


def resolve_columns(config: ExportConfig | None = None) -> List[str]:
    """Enabled dynamic columns in export order; a preset overrides the column map."""
    config = config or ExportConfig()
    enabled = dict(config.columns)
    order: Sequence[str] = config.order
    if config.preset:
        enabled = PRESETS[config.preset]
        order = PRESET_ORDERS.get(config.preset, order)
    ordered = [k for k in order if k in DYNAMIC_LABELS]
    ordered += [k for k in DEFAULT_ORDER if k not in ordered]
    return [k for k in ordered if enabled.get(k)]


def header_labels(columns: Sequence[str]) -> List[str]:
    return [label for _, label in BASE_COLUMNS] + [DYNAMIC_LABELS[k] for k in columns]


def pick_date(item: SearchItem) -> Any:
    for key in DATE_KEYS:
        value = item.extra(key)
        if value is not None:
            return value
    return ""


def searched_value(field: str, subject: Optional[Dict[str, str]]) -> str:
    """Subject value that produced a field's results, formatted for display."""
    if not subject:
        return ""
    value = str(subject.get(field) or "")
    if not value:
        return ""
    formatter = {
        "cpf": format_cpf,
        "cnpj": format_cnpj,
        "cep": format_cep,
        "celular": format_phone,
    }.get(field)
    return formatter(value) if formatter else value


def _address_text(obj: Any) -> str:
    if not isinstance(obj, dict):
        return ""
    parts = [
        obj.get("logradouro") or obj.get("street"),
        obj.get("numero") or obj.get("number"),
        obj.get("bairro") or obj.get("neighborhood") or obj.get("district"),
        obj.get("municipio") or obj.get("cidade") or obj.get("city") or obj.get("localidade"),
        obj.get("uf") or obj.get("state"),
        obj.get("cep") or obj.get("zip"),
    ]
    return ", ".join(str(p) for p in parts if p)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _known_address(raw: Dict[str, Any]) -> str:
    full = _FULL_ADDRESS.pick(raw)
    if full:
        return full
    address = raw.get("address")
    if isinstance(address, str) and address:
        return address
    text = _address_text(address)
    if text:
        return text
    location = _LOCATION.pick(raw)
    if location:
        return location
    addresses = raw.get("enderecos")
    if isinstance(addresses, list) and addresses:
        return _address_text(addresses[0])
    return _address_text(raw)


def _known_phones(raw: Dict[str, Any]) -> str:
    candidates: List[Any] = []
    for value in (
        raw.get("telefones"),
        raw.get("phones"),
        raw.get("telefone"),
        raw.get("phone"),
        dig(raw, ("contacts", "phones")),
        dig(raw, ("contact", "phones")),
    ):
        candidates.extend(_as_list(value))

    by_digits: Dict[str, str] = {}
    for entry in candidates:
        if isinstance(entry, dict):
            number = entry.get("numero") or entry.get("number") or entry.get("value") or entry.get("phone")
            ddd = entry.get("ddd") or entry.get("area") or entry.get("areaCode")
            text = " ".join(str(p) for p in (ddd, number) if p)
        else:
            text = str(entry).strip()
        if text and only_digits(text) not in by_digits:
            by_digits[only_digits(text)] = text
    return " | ".join(by_digits.values())


def _known_emails(raw: Dict[str, Any]) -> str:
    candidates: List[Any] = []
    for value in (
        raw.get("emails"),
        raw.get("email"),
        dig(raw, ("contacts", "emails")),
        dig(raw, ("contact", "emails")),
        dig(raw, ("profile", "email")),
    ):
        candidates.extend(_as_list(value))
    emails = [
        (str(e.get("email") or e.get("address") or e.get("value") or "") if isinstance(e, dict) else str(e)).strip()
        for e in candidates
    ]
    return " | ".join(dict.fromkeys(e for e in emails if e))


def _collect_names(value: Any) -> List[str]:
    entries = list(value.values()) if isinstance(value, dict) else _as_list(value)
    names = []
    for entry in entries:
        if isinstance(entry, dict):
            entry = (
                entry.get("nome")
                or entry.get("name")
                or entry.get("pessoa")
                or dig(entry, ("person", "name"))
                or entry.get("autor")
                or entry.get("reu")
            )
        text = str(entry or "").strip()
        if text:
            names.append(text)
    return names


def _known_directors(raw: Dict[str, Any]) -> str:
    partners = raw.get("qsa") or raw.get("socios") or raw.get("partners") or raw.get("diretores")
    members = dig(raw, ("company", "members"))
    parties = raw.get("partes") or raw.get("parts") or dig(raw, ("processo", "partes"))
    names = _collect_names(partners) + _collect_names(members) + _collect_names(parties)
    return " | ".join(dict.fromkeys(names))


def extract_known_fields(item: SearchItem) -> Dict[str, str]:
    """Address, phones, emails and directors found in an item's payload."""
    raw = item.raw if isinstance(item.raw, dict) else item.extras
    return {
        "endereco": _known_address(raw),
        "telefones": _known_phones(raw),
        "emails": _known_emails(raw),
        "diretores": _known_directors(raw),
    }


def iter_items(
    result_set: ResultSet,
    *,
    only_crossed: bool = False,
    membership: MembershipIndex | None = None,
    field: str | None = None,
    provider: str | None = None,
) -> Iterator[Tuple[str, str, SearchItem]]:
    for field_key, by_provider in result_set.items():
        if field is not None and field_key != field:
            continue
        for provider_key, items in (by_provider or {}).items():
            if provider is not None and provider_key != provider:
                continue
            for item in items or []:
                if only_crossed and (membership is None or not membership.contains(item, field_key, provider_key)):
                    continue
                yield field_key, provider_key, item


def build_row(
    field: str,
    provider: str,
    item: SearchItem,
    columns: Sequence[str],
    subject: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "campo": field,
        "provedor": provider,
        "titulo": item.title or "",
        "descricao": item.description or "",
        "url": item.url or "",
        "fonte": item.source.value or provider,
    }
    known = extract_known_fields(item) if {"endereco", "telefones", "emails", "diretores"} & set(columns) else {}
    for key in columns:
        if key == "consulta":
            row[key] = searched_value(field, subject)
        elif key == "data":
            row[key] = pick_date(item)
        elif key == "json":
            row[key] = json.dumps(item.to_dict(), ensure_ascii=False)
        elif key == "raw":
            row[key] = json.dumps(item.raw, ensure_ascii=False) if item.raw is not None else ""
        else:
            row[key] = known.get(key, "")
    return row


def build_rows(
    result_set: ResultSet,
    columns: Sequence[str],
    *,
    subject: Optional[Dict[str, str]] = None,
    only_crossed: bool = False,
    membership: MembershipIndex | None = None,
    field: str | None = None,
    provider: str | None = None,
) -> List[Dict[str, Any]]:
    return [
        build_row(f, p, item, columns, subject)
        for f, p, item in iter_items(
            result_set,
            only_crossed=only_crossed,
            membership=membership,
            field=field,
            provider=provider,
        )
    ]
