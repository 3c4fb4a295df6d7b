"""Markdown dossier of a subject and its results.

Items may be ``SearchItem`` records or plain JSON objects as posted by a client;
both render the same way, so items from sources this package does not know
still appear in the dossier.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from investiga.normalization.field_picker import FieldPicker, as_scalar_text
from investiga.providers.models import SearchItem

DOSSIER_KEYS = ("nome", "cpf", "telefone", "cep", "rg", "email", "cnh", "clt")
DEFAULT_TITLE = "Dossiê OSINT"

DossierItem = Union[SearchItem, Mapping[str, Any]]
DossierResults = Mapping[str, Mapping[str, Sequence[DossierItem]]]

_TITLE = FieldPicker.keys("title", "name", "heading", "snippet", extractor=as_scalar_text)
_NOTE = FieldPicker.keys("snippet", "description", "summary", extractor=as_scalar_text)
_URL = FieldPicker.keys("url", "link", extractor=as_scalar_text)

_NON_EXTRA_KEYS = frozenset({"title", "snippet", "description", "url", "source", "raw"})
# Subject attribute holding each dossier key, when named differently
_SUBJECT_ALIASES = {"telefone": ("telefone", "celular")}


def _scalar(value: Any) -> str:
    return as_scalar_text(value) or ""


def _subject_value(subject: Mapping[str, Any], key: str) -> str:
    for name in _SUBJECT_ALIASES.get(key, (key,)):
        value = _scalar(subject.get(name))
        if value:
            return value
    return ""


def format_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _item_lines(item: DossierItem) -> List[str]:
    data = item.to_dict() if isinstance(item, SearchItem) else item
    lines = [f"- {_TITLE.pick(data, default='')}"]
    note = _NOTE.pick(data)
    if note:
        lines.append(f"  - Nota: {note}")
    url = _URL.pick(data)
    if url:
        lines.append(f"  - URL: {url}")
    extras = [
        f"{key}: {text}"
        for key, value in data.items()
        if key not in _NON_EXTRA_KEYS and (text := _scalar(value))
    ]
    if extras:
        lines.append(f"  - Extras: {'; '.join(extras)}")
    return lines


def build_dossier(
    subject: Mapping[str, Any],
    result_set: DossierResults,
    *,
    generated_at: Optional[datetime] = None,
) -> str:
    generated_at = generated_at or datetime.now(UTC)
    values: Dict[str, str] = {key: _subject_value(subject, key) for key in DOSSIER_KEYS}

    title_parts = [f"{key.upper()}: {value}" for key, value in values.items() if value]
    lines = [
        f"# {' · '.join(title_parts) if title_parts else DEFAULT_TITLE}",
        "",
        f"Gerado em {format_timestamp(generated_at)}",
        "",
        "## Sumário do Sujeito",
    ]
    lines.extend(f"- {key.upper()}: {value or '(não informado)'}" for key, value in values.items())
    lines.append("")

    for field, by_provider in result_set.items():
        lines.append(f"## {field.upper()}")
        for provider, items in (by_provider or {}).items():
            lines.append(f"### {provider}")
            if not items:
                lines.append("- (sem itens)")
                continue
            for item in items:
                lines.extend(_item_lines(item))
            lines.append("")
        lines.append("")

    return "\n".join(lines)
