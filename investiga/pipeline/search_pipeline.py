"""Subject search pipeline.

Fields are searched one after another (``cpf, cnpj, rg, cep, celular, nome,
email, clt``); the providers selected for a field run concurrently. Once every field
has answered, identifiers found in the phone results can trigger a second round
of CPF/CEP lookups (auto enrichment), and the complete result set is
cross-referenced.
"""

from __future__ import annotations

import asyncio
import time
from typing import Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from investiga.crossref.engine import CrossReferenceEngine
from investiga.crossref.extractor import AttributeExtractor
from investiga.crossref.models import CrossReferenceResult
from investiga.normalization.identifiers import format_cnpj, format_cpf, normalize_email, only_digits
from investiga.normalization.names import NameNormalizer, format_name, load_name_normalizer
from investiga.providers.base import SearchOptions
from investiga.providers.models import Provider, ResultSet, SearchItem
from investiga.providers.registry import EMAIL_PROVIDERS, ProviderRegistry
from investiga.utils.config import Config

SEARCH_FIELDS: Tuple[str, ...] = ("cpf", "cnpj", "rg", "cep", "celular", "nome", "email", "clt")

DUCKDUCKGO_REFINEMENT = " site:gov.br OR site:jus.br OR site:mp.br"


class Subject(BaseModel):
    """What the analyst knows about the person or company being searched."""

    model_config = ConfigDict(str_strip_whitespace=True)

    nome: str = ""
    cpf: str = ""
    cnpj: str = ""
    rg: str = ""
    cep: str = ""
    celular: str = ""
    email: str = ""
    cnh: str = ""
    clt: str = ""

    def query_for(self, field: str) -> str:
        """Value sent to providers: digits for documents, raw text for names/RG."""
        value = getattr(self, field, "") or ""
        if not value:
            return ""
        if field in ("rg", "nome"):
            return value
        if field == "email":
            return normalize_email(value)
        return only_digits(value)

    def is_empty(self) -> bool:
        return not any(self.query_for(f) for f in SEARCH_FIELDS)


class SearchOutcome(BaseModel):
    """Result of one pipeline run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    subject: Subject
    results: ResultSet = Field(default_factory=dict)
    cross: CrossReferenceResult = Field(default_factory=CrossReferenceResult)
    enriched_cpfs: List[str] = Field(default_factory=list)
    enriched_ceps: List[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    def item_count(self) -> int:
        return sum(len(items) for by_provider in self.results.values() for items in by_provider.values())


class SearchPipeline:
    """Runs provider lookups field by field and cross-references the answers."""

    def __init__(
        self,
        config: Config,
        registry: ProviderRegistry,
        *,
        engine: CrossReferenceEngine | None = None,
        name_normalizer: NameNormalizer | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.name_normalizer = name_normalizer or load_name_normalizer(config.cross_reference.rules_file)
        self.engine = engine or CrossReferenceEngine(
            extract_names_from_text=config.cross_reference.extract_names_from_text,
            name_normalizer=self.name_normalizer,
        )
        self.options = SearchOptions(
            apibrasil_no_fallback=config.search.apibrasil_no_fallback,
            datajud_tribunal=config.search.datajud_tribunal,
        )

        logger.info("Initialized SearchPipeline", auto_enrichment=config.search.auto_enrichment)

    def providers_for_field(self, field: str, subject: Subject) -> List[Provider]:
        """Enabled providers to query for one subject field."""
        search = self.config.search
        enabled = self.registry.is_enabled

        if field == "cpf":
            candidates = [Provider.CPF, Provider.DIRECTDATA]
            if search.force_duckduckgo_for_cpf:
                candidates.append(Provider.DUCKDUCKGO)
        elif field == "cnpj":
            candidates = [Provider.CNPJ, Provider.DIRECTDATA]
            if search.force_duckduckgo_for_cnpj:
                candidates.append(Provider.DUCKDUCKGO)
        elif field == "cep":
            candidates = [Provider.CEP]
        elif field == "celular":
            candidates = [
                Provider.PHONE,
                Provider.PHONE_PORTABILIDADE,
                Provider.DDD_BRASILAPI,
                Provider.DDD_APIBRASIL,
                Provider.DIRECTDATA,
            ]
        elif field == "rg":
            candidates = [Provider.DIRECTDATA, Provider.DUCKDUCKGO]
        elif field == "nome":
            candidates = [Provider.DATAJUD]
            generic = self.name_normalizer.is_generic(subject.nome)
            if search.force_generic_providers or not generic:
                candidates += [Provider.DUCKDUCKGO, Provider.WIKIPEDIA]
            else:
                logger.debug(f"Skipping generic web providers for common name: {subject.nome}")
        elif field == "email":
            candidates = list(EMAIL_PROVIDERS)
        elif field == "clt":
            candidates = [Provider.CLT_PIS]
        else:
            return []
        return [p for p in candidates if enabled(p)]

    def duckduckgo_query(self, field: str, value: str) -> str:
        """Quoted, formatted DuckDuckGo query for a document, name or RG."""
        search = self.config.search
        if field == "cpf":
            base, refine = f"CPF {format_cpf(value)}", search.refine_duckduckgo_for_cpf_cnpj
        elif field == "cnpj":
            base, refine = f"CNPJ {format_cnpj(value)}", search.refine_duckduckgo_for_cpf_cnpj
        elif field == "nome":
            base, refine = format_name(value), search.refine_duckduckgo_for_nome_rg
        elif field == "rg":
            base, refine = f"RG {value}", search.refine_duckduckgo_for_nome_rg
        else:
            return value
        return f'"{base}"' + (DUCKDUCKGO_REFINEMENT if refine else "")

    async def search_field(self, field: str, subject: Subject) -> Dict[str, List[SearchItem]]:
        """Query every provider of one field concurrently."""
        value = subject.query_for(field)
        if not value:
            return {}
        providers = self.providers_for_field(field, subject)
        if not providers:
            logger.debug(f"No enabled providers for field {field}")
            return {}

        requests: List[Tuple[Provider, str]] = []
        for provider in providers:
            query = value
            if provider == Provider.DUCKDUCKGO and field in ("cpf", "cnpj", "nome", "rg"):
                query = self.duckduckgo_query(field, value)
            requests.append((provider, query))

        answers = await asyncio.gather(
            *(self.registry.fetch_provider(p, q, self.options) for p, q in requests)
        )
        by_provider = {provider.value: items for (provider, _), items in zip(requests, answers)}
        logger.info(
            f"Field {field}: {sum(len(v) for v in by_provider.values())} items "
            f"from {len(by_provider)} providers"
        )
        return by_provider

    async def enrich(self, results: ResultSet) -> Tuple[List[str], List[str]]:
        """Look up CPFs and CEPs found in the phone results.

        New items are appended to ``results["cpf"]["cpf"]`` and
        ``results["cep"]["cep"]``. Returns the values that were searched.
        """
        by_provider = results.get("celular")
        if not by_provider:
            return [], []

        extractor: AttributeExtractor = self.engine.extractor
        cpfs: List[str] = []
        ceps: List[str] = []
        for items in by_provider.values():
            for item in items:
                attrs = extractor.extract(item)
                cpfs.extend(v for v in attrs.cpf if v not in cpfs)
                ceps.extend(v for v in attrs.cep if v not in ceps)

        limit = self.config.search.enrichment_limit
        cpfs, ceps = cpfs[:limit], ceps[:limit]
        for provider, field, values in ((Provider.CPF, "cpf", cpfs), (Provider.CEP, "cep", ceps)):
            for value in values:
                items = await self.registry.fetch_provider(provider, value, self.options)
                bucket = results.setdefault(field, {})
                bucket[provider.value] = [*bucket.get(provider.value, []), *items]

        if cpfs or ceps:
            logger.info(f"Auto enrichment searched {len(cpfs)} CPFs and {len(ceps)} CEPs")
        return cpfs, ceps

    async def run(self, subject: Subject) -> SearchOutcome:
        start = time.time()
        results: ResultSet = {}

        for field in SEARCH_FIELDS:
            by_provider = await self.search_field(field, subject)
            if by_provider:
                results[field] = by_provider

        enriched_cpfs: List[str] = []
        enriched_ceps: List[str] = []
        if self.config.search.auto_enrichment:
            enriched_cpfs, enriched_ceps = await self.enrich(results)

        cross = self.engine.compute(results)
        elapsed = time.time() - start
        logger.success(f"Search finished in {elapsed:.2f}s with {len(cross.groups)} cross groups")

        return SearchOutcome(
            subject=subject,
            results=results,
            cross=cross,
            enriched_cpfs=enriched_cpfs,
            enriched_ceps=enriched_ceps,
            elapsed_seconds=elapsed,
        )


class SearchSession:
    """Keeps at most one search in flight; a new search supersedes the previous one."""

    def __init__(self, pipeline: SearchPipeline) -> None:
        self.pipeline = pipeline
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self.running:
            self._task.cancel()

    async def search(self, subject: Subject) -> Optional[SearchOutcome]:
        """Run a search; returns None when a newer search superseded this one."""
        self.cancel()
        task = asyncio.ensure_future(self.pipeline.run(subject))
        self._task = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("Search superseded or cancelled, discarding results")
            return None
        finally:
            if self._task is task:
                self._task = None
