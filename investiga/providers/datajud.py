"""DataJud (CNJ) public API: court proceedings by process number or free text."""

from __future__ import annotations

import re
from typing import Any, Dict, List

from investiga.normalization.field_picker import FieldPicker, dig
from investiga.normalization.identifiers import only_digits
from investiga.providers.base import (
    BaseProvider,
    ProviderError,
    ProviderNotConfiguredError,
    SearchOptions,
)
from investiga.providers.models import Provider, SearchItem

DATAJUD_SEARCH_URL = "https://api-publica.datajud.cnj.jus.br/api_publica_{tribunal}/_search"

_TRIBUNAL_RE = re.compile(r"^[a-z0-9]+$")
# CNJ unified numbering: NNNNNNN-DD.AAAA.J.TR.OOOO (20 digits)
_PROCESS_PUNCTUATION_RE = re.compile(r"[\s.\-]")

_CLASS = FieldPicker.paths(("classe", "nome"), ("classe",))
_COURT = FieldPicker.paths(("orgaoJulgador", "nome"), ("orgaoJulgador",))
_FILED = FieldPicker.keys("dataAjuizamento", "dataHoraUltimaAtualizacao")


def build_datajud_query(query: str, *, size: int = 5) -> Dict[str, Any]:
    """Process numbers match exactly; anything else goes to ``query_string``."""
    digits = only_digits(query)
    if len(digits) == 20 and digits == _PROCESS_PUNCTUATION_RE.sub("", query):
        clause: Dict[str, Any] = {"match": {"numeroProcesso": digits}}
    else:
        clause = {"query_string": {"query": query}}
    return {"size": size, "query": clause}


def normalize_datajud(tribunal: str, payload: Any, *, limit: int = 5) -> List[SearchItem]:
    hits = dig(payload, ("hits", "hits"))
    if not isinstance(hits, list):
        return []
    items: List[SearchItem] = []
    for hit in hits[:limit]:
        source = hit.get("_source") if isinstance(hit, dict) else None
        if not isinstance(source, dict):
            continue
        number = source.get("numeroProcesso") or hit.get("_id")
        klass = _CLASS.pick(source)
        court = _COURT.pick(source)
        filed = _FILED.pick(source)
        description = " • ".join(p for p in (klass, court, f"Ajuizamento: {filed}" if filed else None) if p)
        items.append(
            SearchItem(
                title=f"Processo {number}" if number else "Processo",
                description=description or None,
                url=f"https://api-publica.datajud.cnj.jus.br/api_publica_{tribunal}",
                source=Provider.DATAJUD,
                process_number=number,
                tribunal=source.get("tribunal") or tribunal.upper(),
                raw=source,
            )
        )
    return items


class DataJudProvider(BaseProvider):
    provider = Provider.DATAJUD

    async def search(self, query: str, options: SearchOptions) -> List[SearchItem]:
        if not query:
            return []
        if not self.credentials.datajud_api_key:
            raise ProviderNotConfiguredError("DataJud não configurado")
        tribunal = (options.datajud_tribunal or "tjsp").lower()
        if not _TRIBUNAL_RE.match(tribunal):
            raise ValueError(f"Tribunal inválido: {tribunal}")

        url = DATAJUD_SEARCH_URL.format(tribunal=tribunal)
        headers = {
            "Authorization": f"APIKey {self.credentials.datajud_api_key}",
            "Content-Type": "application/json",
        }
        body = build_datajud_query(query, size=self.max_items)
        status, data = await self._post_json(url, json_body=body, headers=headers)
        if data is None:
            raise ProviderError(f"DataJud HTTP {status}")
        return normalize_datajud(tribunal, data, limit=self.max_items)
