"""XLSX export (pandas + openpyxl) with one of four sheet layouts."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, List, Literal, Optional, Sequence, Tuple

import pandas as pd
from loguru import logger

from investiga.crossref.models import MembershipIndex
from investiga.export.rows import BASE_COLUMNS, DYNAMIC_LABELS, build_rows
from investiga.providers.models import ResultSet

XlsxMode = Literal["single", "per_field", "per_provider", "field_provider"]

MAX_SHEET_NAME = 31

FIELD_LABELS: Dict[str, str] = {
    "cpf": "CPF",
    "cnpj": "CNPJ",
    "rg": "RG",
    "cep": "CEP",
    "celular": "Celular",
    "nome": "Nome",
    "email": "Email",
    "clt": "CLT",
}

PROVIDER_LABELS: Dict[str, str] = {
    "cpf": "CPF",
    "cnpj": "CNPJ",
    "cep": "CEP",
    "phone": "Telefone",
    "phone_portabilidade": "Portabilidade",
    "ddd_brasilapi": "DDD (BrasilAPI)",
    "ddd_apibrasil": "DDD (APIBrasil)",
    "duckduckgo": "DuckDuckGo",
    "wikipedia": "Wikipedia",
    "github": "GitHub",
    "directdata": "Direct Data",
    "datajud": "Datajud (CNJ)",
    "email_hibp": "HIBP",
    "emailrep": "EmailRep",
    "hunter": "Hunter.io",
    "gravatar": "Gravatar",
    "clearbit": "Clearbit",
    "clt_pis": "CLT/PIS",
}

# Characters Excel refuses in sheet names
_INVALID_SHEET_CHARS = str.maketrans({c: "-" for c in "[]:*?/\\"})


def sheet_name(label: str, used: set[str]) -> str:
    """Excel-safe, unique sheet name of at most 31 characters."""
    base = label.translate(_INVALID_SHEET_CHARS)[:MAX_SHEET_NAME] or "Sheet"
    name, n = base, 2
    while name in used:
        suffix = f" ({n})"
        name = base[: MAX_SHEET_NAME - len(suffix)] + suffix
        n += 1
    used.add(name)
    return name


def _frame(rows: List[Dict[str, object]], columns: Sequence[str]) -> pd.DataFrame:
    keys = [k for k, _ in BASE_COLUMNS] + list(columns)
    labels = [label for _, label in BASE_COLUMNS] + [DYNAMIC_LABELS[k] for k in columns]
    frame = pd.DataFrame(rows, columns=keys)
    frame.columns = labels
    return frame


def _sheets(
    result_set: ResultSet, mode: XlsxMode
) -> List[Tuple[str, Optional[str], Optional[str]]]:
    """(label, field filter, provider filter) per sheet."""
    if mode == "single":
        return [("Resultados", None, None)]
    if mode == "per_field":
        return [(FIELD_LABELS.get(f, f), f, None) for f in result_set]
    if mode == "per_provider":
        providers: List[str] = []
        for by_provider in result_set.values():
            providers.extend(p for p in by_provider if p not in providers)
        return [(PROVIDER_LABELS.get(p, p), None, p) for p in providers]
    if mode == "field_provider":
        return [
            (f"{FIELD_LABELS.get(f, f).upper()}-{PROVIDER_LABELS.get(p, p)}", f, p)
            for f, by_provider in result_set.items()
            for p in by_provider
        ]
    raise ValueError(f"Unknown XLSX mode: {mode}")


def build_xlsx(
    result_set: ResultSet,
    columns: Sequence[str],
    *,
    mode: XlsxMode = "single",
    only_crossed: bool = False,
    membership: MembershipIndex | None = None,
    subject: Optional[Dict[str, str]] = None,
) -> bytes:
    """Build the workbook in memory and return its bytes."""
    buffer = io.BytesIO()
    used: set[str] = set()
    sheets = _sheets(result_set, mode) or [("Resultados", None, None)]
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for label, field, provider in sheets:
            rows = build_rows(
                result_set,
                columns,
                subject=subject,
                only_crossed=only_crossed,
                membership=membership,
                field=field,
                provider=provider,
            )
            _frame(rows, columns).to_excel(writer, sheet_name=sheet_name(label, used), index=False)
    logger.debug(f"Built XLSX workbook with {len(used)} sheets (mode={mode})")
    return buffer.getvalue()


def write_xlsx(output_path: Path, content: bytes) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(content)
    logger.info(f"Wrote XLSX export to {output_path}")
    return output_path
