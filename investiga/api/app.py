"""FastAPI application exposing search, cross-reference and dossier endpoints."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from investiga.crossref.engine import CrossReferenceEngine
from investiga.export.dossier import build_dossier
from investiga.normalization.names import load_name_normalizer
from investiga.providers.base import SearchOptions
from investiga.providers.models import ResultSet, SearchItem
from investiga.providers.registry import ProviderRegistry, build_http_client, parse_provider
from investiga.utils.config import Config

DEFAULT_PROVIDERS = ["wikipedia", "duckduckgo", "github"]

RawResults = Dict[str, Dict[str, List[Dict[str, Any]]]]


class SearchRequest(BaseModel):
    query: str = ""
    providers: Optional[List[str]] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class CrossRequest(BaseModel):
    results: RawResults = Field(default_factory=dict)
    extract_names_from_text: Optional[bool] = None
    hide_generic_names: Optional[bool] = None


class DossierRequest(BaseModel):
    subject: Dict[str, Any] = Field(default_factory=dict)
    resultsByField: RawResults = Field(default_factory=dict)


def parse_result_set(raw: RawResults) -> ResultSet:
    """Rebuild ``SearchItem`` records from JSON; items without a known source are dropped."""
    result_set: ResultSet = {}
    for field, by_provider in raw.items():
        bucket: Dict[str, List[SearchItem]] = {}
        for provider, items in (by_provider or {}).items():
            parsed: List[SearchItem] = []
            for data in items or []:
                payload = dict(data)
                payload.setdefault("source", provider)
                if parse_provider(payload["source"]) is None:
                    logger.warning(f"Dropping item with unknown source: {payload['source']}")
                    continue
                try:
                    parsed.append(SearchItem.model_validate(payload))
                except ValidationError as e:
                    logger.warning(f"Dropping malformed item from {provider}: {e}")
            bucket[provider] = parsed
        result_set[field] = bucket
    return result_set


def create_app(config: Config | None = None, registry: ProviderRegistry | None = None) -> FastAPI:
    config = config or Config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if registry is None:
            client = build_http_client(config.providers)
            app.state.registry = ProviderRegistry(
                client, providers_config=config.providers, credentials=config.credentials
            )
        else:
            app.state.registry = registry
        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    app = FastAPI(title="Investiga API", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    name_normalizer = load_name_normalizer(config.cross_reference.rules_file)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=500)

    @app.get("/api/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/search")
    async def search(body: SearchRequest, request: Request) -> JSONResponse:
        query = body.query.strip()
        if not query:
            return JSONResponse({"error": "Query ausente"}, status_code=400)

        registry_: ProviderRegistry = request.app.state.registry
        providers = body.providers if body.providers is not None else DEFAULT_PROVIDERS
        options = SearchOptions(
            **{
                "apibrasil_no_fallback": config.search.apibrasil_no_fallback,
                "datajud_tribunal": config.search.datajud_tribunal,
                **body.options,
            }
        )

        known = [p for p in providers if parse_provider(p) is not None]
        for unknown in sorted(set(providers) - set(known)):
            logger.warning(f"Ignoring unknown provider: {unknown}")

        answers = await asyncio.gather(*(registry_.fetch_provider(p, query, options) for p in known))
        results = {
            parse_provider(p).value: [item.to_dict() for item in items]
            for p, items in zip(known, answers)
        }
        return JSONResponse({"query": query, "results": results})

    @app.post("/api/cross")
    async def cross(body: CrossRequest) -> Dict[str, Any]:
        extract_names = (
            body.extract_names_from_text
            if body.extract_names_from_text is not None
            else config.cross_reference.extract_names_from_text
        )
        hide_generic = (
            body.hide_generic_names
            if body.hide_generic_names is not None
            else config.cross_reference.hide_generic_names
        )
        engine = CrossReferenceEngine(
            extract_names_from_text=extract_names, name_normalizer=name_normalizer
        )
        result = engine.compute(parse_result_set(body.results))
        groups = result.visible_groups(hide_generic, normalizer=name_normalizer)
        return {
            "groups": [g.model_dump(mode="json") for g in groups],
            "membership": [str(key) for key in result.membership],
        }

    @app.post("/api/dossier")
    async def dossier(body: DossierRequest) -> Dict[str, str]:
        markdown = build_dossier(body.subject, body.resultsByField)
        return {"markdown": markdown}

    return app
